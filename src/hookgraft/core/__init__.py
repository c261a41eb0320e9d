# src/hookgraft/core/__init__.py
"""Core infrastructure: Configuration, Logging, Resource id resolution."""

from hookgraft.core.config import HookgraftSettings, find_settings, load_settings
from hookgraft.core.logging import configure_logging, get_logger
from hookgraft.core.resolver import (
    clear_resolver_caches,
    extension_hash,
    find_up,
    resolve_resource_id,
)

__all__ = [
    "HookgraftSettings",
    "clear_resolver_caches",
    "configure_logging",
    "extension_hash",
    "find_settings",
    "find_up",
    "get_logger",
    "load_settings",
    "resolve_resource_id",
]
