# src/hookgraft/contracts/extension.py
"""Extension descriptor contract.

An extension descriptor is created when its module is imported during the
load phase and is immutable afterwards. The shape of `wrap` depends on kind:

- component: wrap(*args, wrapped_component=<inner component>, **props)
- function:  wrap(next_stage, *args, **kwargs)
- value:     wrap(accumulated_value) -> replacement value
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from hookgraft.contracts.enums import ExtensionKind
from hookgraft.contracts.errors import ExtensionDefinitionError

# Keyword under which a component extension receives its inner component
WRAPPED_COMPONENT_KWARG = "wrapped_component"

# Module attribute holding a module's default export
DEFAULT_EXPORT = "__default__"


@dataclass(frozen=True, slots=True)
class Extension:
    """Registration record for one extension.

    Attributes:
        name: Human-readable name, should be unique within its module
        resource_id: Canonical id of the targeted export
        kind: Which composition entry point this extension applies to
        wrap: The extension behavior (shape depends on kind)
        sort_order: Lower values apply first (outermost); default 0
    """

    name: str
    resource_id: str
    kind: ExtensionKind
    wrap: Callable[..., Any]
    sort_order: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ExtensionDefinitionError(f"Extension name must be a non-empty string, got {self.name!r}")
        if not isinstance(self.resource_id, str) or not self.resource_id:
            raise ExtensionDefinitionError(f"Extension '{self.name}' has an empty resource_id")
        # bool is an int subclass but never a meaningful sort order
        if isinstance(self.sort_order, bool) or not isinstance(self.sort_order, int):
            raise ExtensionDefinitionError(f"Extension '{self.name}' sort_order must be an int, got {self.sort_order!r}")
        if not callable(self.wrap):
            raise ExtensionDefinitionError(f"Extension '{self.name}' wrap must be callable")
        if not isinstance(self.kind, ExtensionKind):
            raise ExtensionDefinitionError(f"Extension '{self.name}' has unknown kind {self.kind!r}")

    def describe(self) -> str:
        """Short form used in log events and diagnostic names."""
        return f"{self.resource_id}({self.name})"
