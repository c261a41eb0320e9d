# src/hookgraft/extensions/discovery.py
"""Extension module discovery by folder scanning.

Scans extension roots for modules matching the configured pattern
(default `**/extensions/*.py`) and reads the `resource_id` each one targets
straight from its source with `ast`. Nothing is imported here: discovery
runs at build time, before the host's module graph exists.

An extension module declares its descriptor as its default export:

    # shop_theme/extensions/banner.py
    from hookgraft import component_extension

    @component_extension(resource_id="shop/widgets/card", sort_order=-5)
    def banner(*args, wrapped_component, **props):
        ...

    __default__ = banner
"""

from __future__ import annotations

import ast
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from hookgraft.contracts.errors import ExtensionModuleError
from hookgraft.core.logging import get_logger
from hookgraft.core.resolver import extension_hash, is_dependency_path, relative_module_path

logger = get_logger(__name__)

DEFAULT_PATTERN = "**/extensions/*.py"

# Files that are never extension modules
EXCLUDED_FILES: frozenset[str] = frozenset({"__init__.py", "conftest.py"})

# Keyword the builders take the target resource id under
RESOURCE_ID_KEYWORD = "resource_id"


@dataclass(frozen=True)
class DiscoveredExtension:
    """An extension module found on disk.

    Attributes:
        extension_id: Canonical id of the extension module itself
        resource_id: Resource id the extension targets
        path: Absolute path of the module
        module_name: Dotted import name (relative to its base path)
    """

    extension_id: str
    resource_id: str
    path: Path
    module_name: str


@dataclass(frozen=True)
class ExtensionGroup:
    """All discovered extensions targeting one resource id."""

    resource_id: str
    hash: str
    extensions: tuple[DiscoveredExtension, ...]


def read_resource_id(path: Path) -> str | None:
    """Find the resource id an extension module targets.

    Looks for a string literal passed as `resource_id=` to any call.

    Args:
        path: Extension module path

    Returns:
        The first resource id found, or None

    Raises:
        SyntaxError: If the module does not parse
    """
    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    found: list[str] = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        for kw in node.keywords:
            if kw.arg == RESOURCE_ID_KEYWORD and isinstance(kw.value, ast.Constant) and isinstance(kw.value.value, str):
                found.append(kw.value.value)

    if not found:
        return None
    if len(set(found)) > 1:
        logger.warning(
            "Extension module targets several resource ids; only the first is aggregated",
            path=str(path),
            resource_ids=sorted(set(found)),
        )
    return found[0]


def module_name_for(path: Path) -> tuple[str, str]:
    """Return (extension id, dotted module name) for an extension module.

    Raises:
        ManifestNotFoundError: If the module has no pyproject.toml above it
        ExtensionModuleError: If the module is not importable from its base path
    """
    package, relative = relative_module_path(path)
    module_name = relative.replace("/", ".")
    if not module_name or not all(part.isidentifier() for part in module_name.split(".")):
        raise ExtensionModuleError(path, f"'{relative}' is not importable from its package base path")
    return f"{package}/{relative}", module_name


def discover_in_root(root: Path, pattern: str = DEFAULT_PATTERN) -> list[DiscoveredExtension]:
    """Discover extension modules under one root.

    Args:
        root: Directory to scan
        pattern: Glob relative to root

    Returns:
        Discovered extensions, sorted by path
    """
    discovered: list[DiscoveredExtension] = []

    if not root.exists():
        logger.warning("Extension root does not exist", root=str(root))
        return discovered

    for path in sorted(root.glob(pattern)):
        if path.name in EXCLUDED_FILES or not path.is_file():
            continue
        if is_dependency_path(path.relative_to(root)):
            continue

        # Extension sources are part of the build: a syntax error must surface
        resource_id = read_resource_id(path)
        if resource_id is None:
            logger.warning("Extension module has no resource_id, skipping", path=str(path))
            continue

        extension_id, module_name = module_name_for(path)
        discovered.append(
            DiscoveredExtension(
                extension_id=extension_id,
                resource_id=resource_id,
                path=path.resolve(),
                module_name=module_name,
            )
        )

    return discovered


def discover_extensions(roots: Iterable[Path], pattern: str = DEFAULT_PATTERN) -> dict[str, ExtensionGroup]:
    """Discover extension modules and group them by target resource id.

    Args:
        roots: Directories to scan
        pattern: Glob relative to each root

    Returns:
        Mapping of resource id to its extension group, sorted by resource id
    """
    by_resource: dict[str, list[DiscoveredExtension]] = {}
    seen_paths: set[Path] = set()

    for root in roots:
        for found in discover_in_root(root, pattern):
            # Overlapping roots must not aggregate a module twice
            if found.path in seen_paths:
                continue
            seen_paths.add(found.path)
            by_resource.setdefault(found.resource_id, []).append(found)

    return {
        resource_id: ExtensionGroup(
            resource_id=resource_id,
            hash=extension_hash(resource_id),
            extensions=tuple(by_resource[resource_id]),
        )
        for resource_id in sorted(by_resource)
    }
