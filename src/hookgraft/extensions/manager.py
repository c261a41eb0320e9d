# src/hookgraft/extensions/manager.py
"""Extension manager for the registry's load phase.

Uses pluggy for hook-based extension registration. Extensions reach the
registry from three places, all funnelled through the
`hookgraft_get_extensions` hook:

- objects passed to register() (tests, host bootstrap code)
- installed distributions advertising the "hookgraft" entry-point group
- discovered extension modules (dynamic mode, where no aggregator exists)
"""

from __future__ import annotations

import importlib
from collections.abc import Iterable
from typing import Any

import pluggy

from hookgraft.contracts.extension import DEFAULT_EXPORT, Extension
from hookgraft.contracts.errors import ExtensionModuleError
from hookgraft.core.logging import get_logger
from hookgraft.extensions.discovery import DiscoveredExtension
from hookgraft.extensions.hookspecs import PROJECT_NAME, HookgraftExtensionSpec, hookimpl
from hookgraft.extensions.registry import ExtensionRegistry

logger = get_logger(__name__)


def create_dynamic_hookimpl(extensions: list[Extension]) -> object:
    """Create a pluggy hookimpl object returning the given extensions.

    Args:
        extensions: Extension descriptors to contribute

    Returns:
        Object instance with a decorated hookgraft_get_extensions method
    """

    class DynamicHookImpl:
        """Dynamically generated hook implementer."""

        @hookimpl
        def hookgraft_get_extensions(self) -> list[Extension]:
            return extensions

    return DynamicHookImpl()


def load_extension_module(discovered: DiscoveredExtension) -> Extension:
    """Import a discovered extension module and return its descriptor.

    Raises:
        ExtensionModuleError: If the module has no Extension default export,
            or the descriptor targets another resource id than its source says
    """
    module = importlib.import_module(discovered.module_name)
    descriptor = getattr(module, DEFAULT_EXPORT, None)
    if not isinstance(descriptor, Extension):
        raise ExtensionModuleError(discovered.path, f"{DEFAULT_EXPORT} must be an Extension, got {type(descriptor).__name__}")
    if descriptor.resource_id != discovered.resource_id:
        raise ExtensionModuleError(
            discovered.path,
            f"descriptor targets '{descriptor.resource_id}' but source declares '{discovered.resource_id}'",
        )
    return descriptor


class ExtensionManager:
    """Collects extensions from hook implementations into a registry.

    Usage:
        manager = ExtensionManager()
        manager.load_entrypoints()
        manager.register(MyHooks())

        manager.populate(context.registry)
    """

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(HookgraftExtensionSpec)

    def register(self, plugin: Any, name: str | None = None) -> None:
        """Register an object (or module) implementing hookgraft_get_extensions."""
        self._pm.register(plugin, name=name)

    def register_extensions(self, extensions: Iterable[Extension]) -> None:
        """Register descriptors directly."""
        self.register(create_dynamic_hookimpl(list(extensions)))

    def load_entrypoints(self) -> int:
        """Load installed distributions advertising the hookgraft entry-point group.

        Returns:
            Number of entry points loaded
        """
        count = self._pm.load_setuptools_entrypoints(PROJECT_NAME)
        if count:
            logger.debug("Extension entry points loaded", count=count)
        return count

    def load_modules(self, discovered: Iterable[DiscoveredExtension]) -> int:
        """Import discovered extension modules and register their descriptors.

        Extension modules are project code: import errors propagate.

        Returns:
            Number of extensions registered
        """
        extensions = [load_extension_module(found) for found in discovered]
        self.register_extensions(extensions)
        return len(extensions)

    def collect(self) -> list[Extension]:
        """All extensions contributed by registered hook implementations."""
        collected: list[Extension] = []
        # pluggy calls implementations LIFO; reverse for registration order
        for batch in reversed(self._pm.hook.hookgraft_get_extensions()):
            for extension in batch:
                if not isinstance(extension, Extension):
                    raise TypeError(f"hookgraft_get_extensions must return Extension objects, got {type(extension).__name__}")
                collected.append(extension)
        return collected

    def populate(self, registry: ExtensionRegistry, *, freeze: bool = True) -> int:
        """Register every collected extension into registry.

        Args:
            registry: Registry in its load phase
            freeze: End the load phase afterwards

        Returns:
            Number of extensions registered
        """
        extensions = self.collect()
        registry.register_many(extensions)
        if freeze:
            registry.freeze()
        logger.debug("Extension registry populated", extensions=len(extensions))
        return len(extensions)
