"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core, engine
or rewriter, so extension modules can import it cheaply.

Import patterns:
    from hookgraft.contracts import Extension, ExtensionKind
    from hookgraft.core.config import HookgraftSettings
"""

from hookgraft.contracts.enums import Environment, ExportForm, ExportKind, ExtensionKind
from hookgraft.contracts.errors import (
    AggregatorNotFoundError,
    ExtensionDefinitionError,
    ExtensionModuleError,
    HookgraftError,
    ManifestNotFoundError,
    RegistryFrozenError,
    RewriteSyntaxError,
)
from hookgraft.contracts.extension import DEFAULT_EXPORT, WRAPPED_COMPONENT_KWARG, Extension

__all__ = [
    "DEFAULT_EXPORT",
    "WRAPPED_COMPONENT_KWARG",
    "AggregatorNotFoundError",
    "Environment",
    "ExportForm",
    "ExportKind",
    "Extension",
    "ExtensionDefinitionError",
    "ExtensionKind",
    "ExtensionModuleError",
    "HookgraftError",
    "ManifestNotFoundError",
    "RegistryFrozenError",
    "RewriteSyntaxError",
]
