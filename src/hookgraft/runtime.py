# src/hookgraft/runtime.py
"""Runtime entry points called by rewritten modules.

A rewritten module imports the decorator factories below and routes each
instrumented export through them:

    from hookgraft.runtime import extend_component, extend_value
    from hookgraft_generated.ext_1a2b3c4d import EXTENSIONS as _ext_1a2b3c4d

    @extend_component("shop/widgets/card", _ext_1a2b3c4d)
    def card(title):
        return f"<div class='card'>{title}</div>"

    CURRENCY = extend_value("shop/config:CURRENCY")("USD")

The factories delegate to the process-wide ExtensionContext. The context owns
exactly one registry and one engine and is created lazily on first use;
hosts that need explicit control call set_context() before importing any
rewritten module.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from hookgraft.contracts.enums import Environment
from hookgraft.contracts.extension import Extension
from hookgraft.engine.composer import CompositionEngine
from hookgraft.extensions.registry import ExtensionRegistry

T = TypeVar("T")

# Environment variables read when the default context is created
ENVIRONMENT_VAR = "HOOKGRAFT_ENVIRONMENT"
SHUFFLE_TIES_VAR = "HOOKGRAFT_SHUFFLE_TIES"


class ExtensionContext:
    """Owner of one registry and the engine composing from it."""

    def __init__(self, *, development: bool = False, shuffle_ties: bool = False) -> None:
        self.registry = ExtensionRegistry(development=development)
        self.engine = CompositionEngine(self.registry, shuffle_ties=shuffle_ties)

    @classmethod
    def from_environment(cls) -> ExtensionContext:
        """Build a context configured from HOOKGRAFT_* environment variables."""
        development = os.environ.get(ENVIRONMENT_VAR, Environment.PRODUCTION) == Environment.DEVELOPMENT
        shuffle_ties = os.environ.get(SHUFFLE_TIES_VAR, "").lower() in {"1", "true", "yes"}
        return cls(development=development, shuffle_ties=shuffle_ties)


_context: ExtensionContext | None = None
_context_lock = threading.Lock()


def get_context() -> ExtensionContext:
    """Return the process-wide context, creating it on first use."""
    global _context

    if _context is None:
        with _context_lock:
            if _context is None:
                _context = ExtensionContext.from_environment()
    return _context


def set_context(context: ExtensionContext) -> None:
    """Install an explicit process-wide context."""
    global _context

    with _context_lock:
        _context = context


def reset_context() -> None:
    """Drop the process-wide context (next use creates a fresh one)."""
    global _context

    with _context_lock:
        _context = None


def extend_component(
    resource_id: str,
    extensions: Iterable[Extension] | None = None,
) -> Callable[[T], T]:
    """Decorator routing a component through its component extensions."""

    def decorator(original: T) -> T:
        return get_context().engine.compose_component(resource_id, original, extensions)  # type: ignore[type-var]

    return decorator


def extend_function(
    resource_id: str,
    extensions: Iterable[Extension] | None = None,
) -> Callable[[T], T]:
    """Decorator routing a plain function through its function extensions."""

    def decorator(original: T) -> T:
        return get_context().engine.compose_function(resource_id, original, extensions)  # type: ignore[type-var]

    return decorator


def extend_value(
    resource_id: str,
    extensions: Iterable[Extension] | None = None,
) -> Callable[[T], T]:
    """Wrapper folding value extensions over a value (or class) once."""

    def decorator(original: T) -> T:
        result: Any = get_context().engine.compose_value(resource_id, original, extensions)
        return result  # type: ignore[no-any-return]

    return decorator


# Names the rewriter imports into rewritten modules
ENTRY_POINTS: tuple[str, ...] = ("extend_component", "extend_function", "extend_value")
