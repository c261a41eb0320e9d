# src/hookgraft/extensions/__init__.py
"""Extension system: descriptors, registry, discovery and aggregators.

- Builders: component_extension / function_extension / value_extension
- Registry: append-only, frozen after the load phase
- Manager: pluggy-based load phase (entry points, discovered modules)
- Discovery: filesystem scan of extension modules
- Aggregator: generated per-resource-id extension lists
"""

from hookgraft.extensions.aggregator import (
    IndexedExtensions,
    aggregator_path,
    clean_aggregators,
    load_index,
    render_aggregator,
    write_aggregators,
)
from hookgraft.extensions.builders import component_extension, function_extension, value_extension
from hookgraft.extensions.discovery import (
    DiscoveredExtension,
    ExtensionGroup,
    discover_extensions,
    read_resource_id,
)
from hookgraft.extensions.hookspecs import hookimpl, hookspec
from hookgraft.extensions.manager import ExtensionManager, create_dynamic_hookimpl
from hookgraft.extensions.registry import ExtensionRegistry

__all__ = [
    "DiscoveredExtension",
    "ExtensionGroup",
    "ExtensionManager",
    "ExtensionRegistry",
    "IndexedExtensions",
    "aggregator_path",
    "clean_aggregators",
    "component_extension",
    "create_dynamic_hookimpl",
    "discover_extensions",
    "function_extension",
    "hookimpl",
    "hookspec",
    "load_index",
    "read_resource_id",
    "render_aggregator",
    "value_extension",
    "write_aggregators",
]
