# src/hookgraft/core/resolver.py
"""Canonical resource id derivation.

A resource id names exactly one exported symbol across a workspace:

    <package name>/<relative path without extension>              (default export)
    <package name>/<relative path without extension>:<export name> (named export)

The package name comes from the nearest pyproject.toml above the module; the
relative path is computed against the manifest directory joined with the
`base_path` of the nearest hookgraft.yaml (default ".", overridable through
HOOKGRAFT_BASE_PATH like every other setting). A trailing
`__init__` segment is dropped, so a package and its index module share an id.

Package names and base paths are pure functions of file content and are
memoized per file path.
"""

from __future__ import annotations

import hashlib
import os
import tomllib
from functools import cache
from pathlib import Path

from hookgraft.contracts.errors import ManifestNotFoundError
from hookgraft.core.config import load_settings

MANIFEST_FILENAME = "pyproject.toml"
PROJECT_CONFIG_FILENAME = "hookgraft.yaml"
UNKNOWN_PACKAGE = "unknown-package"
INDEX_SEGMENT = "__init__"
SOURCE_SUFFIXES: tuple[str, ...] = (".pyi", ".py")

# Length of the hex digest prefix keying aggregator modules
HASH_LENGTH = 8

# Path segments marking installed third-party code
DEPENDENCY_DIRS: frozenset[str] = frozenset(
    {
        "site-packages",
        "dist-packages",
        "node_modules",
        ".venv",
        "venv",
        "__pypackages__",
    }
)


def is_dependency_path(path: Path) -> bool:
    """Whether path lies inside an installed-dependency directory."""
    return any(part in DEPENDENCY_DIRS for part in path.parts)


def find_up(filename: str, start_dir: Path) -> Path | None:
    """Search for a file by walking up the directory tree.

    Stops at the filesystem root.

    Args:
        filename: Name of the file to find
        start_dir: Directory to start searching from

    Returns:
        Full path to the nearest match, or None
    """
    directory = start_dir.resolve()
    while True:
        candidate = directory / filename
        if candidate.is_file():
            return candidate
        if directory.parent == directory:
            return None
        directory = directory.parent


@cache
def package_name(manifest_path: Path) -> str:
    """Read the package name from a pyproject.toml.

    Prefers [project].name, then [tool.poetry].name.
    """
    with manifest_path.open("rb") as f:
        data = tomllib.load(f)
    project = data.get("project", {})
    if project.get("name"):
        return str(project["name"])
    poetry = data.get("tool", {}).get("poetry", {})
    if poetry.get("name"):
        return str(poetry["name"])
    return UNKNOWN_PACKAGE


@cache
def base_path(config_path: Path | None) -> str:
    """Base import root from a hookgraft.yaml, HOOKGRAFT_BASE_PATH applied (default ".")."""
    if config_path is None:
        return "."
    return load_settings(config_path).base_path


def clear_resolver_caches() -> None:
    """Forget memoized manifest and config contents."""
    package_name.cache_clear()
    base_path.cache_clear()


def strip_source_suffix(path: str) -> str:
    """Remove a trailing .py/.pyi extension."""
    for suffix in SOURCE_SUFFIXES:
        if path.endswith(suffix):
            return path[: -len(suffix)]
    return path


def relative_module_path(file_path: Path) -> tuple[str, str]:
    """Return (package name, relative path without extension) for a module.

    Raises:
        ManifestNotFoundError: If no pyproject.toml exists above the file
    """
    absolute = file_path.resolve()
    manifest = find_up(MANIFEST_FILENAME, absolute.parent)
    if manifest is None:
        raise ManifestNotFoundError(file_path)

    config = find_up(PROJECT_CONFIG_FILENAME, absolute.parent)
    root = (manifest.parent / base_path(config)).resolve()

    # Lexical relative path; a module outside the base root keeps its ".." parts
    relative = Path(os.path.relpath(absolute, root)).as_posix()
    parts = strip_source_suffix(relative).split("/")
    if parts and parts[-1] == INDEX_SEGMENT:
        parts.pop()
    return package_name(manifest), "/".join(parts)


def resolve_resource_id(file_path: Path, export_name: str | None, is_default: bool) -> str:
    """Derive the canonical resource id of an exported symbol.

    Args:
        file_path: Path of the module defining the export
        export_name: Local binding name (ignored for default exports)
        is_default: Whether this is the module's default export

    Returns:
        Canonical resource id

    Raises:
        ManifestNotFoundError: If no pyproject.toml exists above the file
        ValueError: If a named export has no name
    """
    package, relative = relative_module_path(file_path)
    module_id = f"{package}/{relative}" if relative else package
    if is_default:
        return module_id
    if not export_name:
        raise ValueError(f"Named export in {file_path} requires an export name")
    return f"{module_id}:{export_name}"


def extension_hash(resource_id: str) -> str:
    """Stable identifier-safe key for a resource id's aggregator module."""
    digest = hashlib.sha256(resource_id.encode("utf-8")).hexdigest()
    return f"ext_{digest[:HASH_LENGTH]}"
