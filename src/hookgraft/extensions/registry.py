# src/hookgraft/extensions/registry.py
"""Process-wide extension registry.

Two-phase lifecycle:
    1. Load phase: extension modules are imported and their descriptors
       registered. Registration is append-only; there is no unregister.
    2. Frozen: the first lookup ends the load phase. Any later register()
       raises RegistryFrozenError, so the composition engine's sorted cache
       can never go stale.

Usage:
    registry = ExtensionRegistry(development=True)
    registry.register(banner)
    registry.register(tracker)

    extensions = registry.lookup("pkg/widgets/card", ExtensionKind.COMPONENT)
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator

from hookgraft.contracts.enums import ExtensionKind
from hookgraft.contracts.errors import RegistryFrozenError
from hookgraft.contracts.extension import Extension
from hookgraft.core.logging import get_logger

logger = get_logger(__name__)


def filter_by_kind(
    extensions: Iterable[Extension],
    resource_id: str,
    expected_kind: ExtensionKind,
    *,
    development: bool,
) -> list[Extension]:
    """Keep extensions of the expected kind, diagnosing the rest.

    Mismatches are dropped from composition. In development each one is
    logged with the descriptor name, resource id, expected and actual kind.

    Args:
        extensions: Candidate extensions
        resource_id: Resource id being composed (for diagnostics)
        expected_kind: Kind of the composition entry point
        development: Whether to emit mismatch diagnostics

    Returns:
        Extensions whose kind equals expected_kind, in input order
    """
    matching: list[Extension] = []
    for extension in extensions:
        if extension.kind == expected_kind:
            matching.append(extension)
        elif development:
            logger.error(
                "Extension kind mismatch",
                extension=extension.name,
                resource_id=resource_id,
                expected_kind=str(expected_kind),
                actual_kind=str(extension.kind),
            )
    return matching


class ExtensionRegistry:
    """Append-only mapping of resource id to extension descriptors."""

    def __init__(self, *, development: bool = False) -> None:
        self._development = development
        self._entries: dict[str, list[Extension]] = {}
        self._frozen = False
        self._lock = threading.Lock()

    @property
    def development(self) -> bool:
        """Whether kind-mismatch diagnostics are emitted."""
        return self._development

    @property
    def frozen(self) -> bool:
        """Whether the load phase has ended."""
        return self._frozen

    def freeze(self) -> None:
        """End the load phase. Idempotent."""
        with self._lock:
            if not self._frozen:
                self._frozen = True
                logger.debug("Extension registry frozen", resource_ids=len(self._entries))

    def register(self, extension: Extension) -> None:
        """Append an extension to its resource id's list.

        Duplicate names for the same resource id are accepted and warned about.

        Raises:
            RegistryFrozenError: If the load phase has ended
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(extension.resource_id, extension.name)

            entries = self._entries.setdefault(extension.resource_id, [])
            if any(existing.name == extension.name for existing in entries):
                logger.warning(
                    "Duplicate extension name",
                    extension=extension.name,
                    resource_id=extension.resource_id,
                )
            entries.append(extension)

    def register_many(self, extensions: Iterable[Extension]) -> None:
        """Register several extensions in order."""
        for extension in extensions:
            self.register(extension)

    def lookup(self, resource_id: str, expected_kind: ExtensionKind) -> list[Extension]:
        """Extensions registered for resource_id with the expected kind.

        The first lookup freezes the registry.

        Returns:
            A new list, in registration order
        """
        self.freeze()
        entries = self._entries.get(resource_id, ())
        return filter_by_kind(entries, resource_id, expected_kind, development=self._development)

    def resource_ids(self) -> list[str]:
        """All resource ids with at least one registered extension, sorted."""
        return sorted(self._entries)

    def __contains__(self, resource_id: object) -> bool:
        return resource_id in self._entries

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    def __iter__(self) -> Iterator[Extension]:
        for entries in self._entries.values():
            yield from entries
