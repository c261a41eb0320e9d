"""Kinds used across the rewriter/engine boundary.

An export's kind is inferred once, at rewrite time, and decides which
composition entry point the rewritten module calls. An extension's kind is
declared by the builder that created it. The two must agree for the
extension to take part in composition.
"""

from enum import StrEnum


class ExtensionKind(StrEnum):
    """Kind of an extension descriptor (and of a composition entry point)."""

    COMPONENT = "component"
    FUNCTION = "function"
    VALUE = "value"


class ExportKind(StrEnum):
    """Structural classification of an exported symbol.

    Computed by the rewriter from source, never re-derived at runtime.
    """

    COMPONENT = "component"
    PLAIN_FUNCTION = "plain_function"
    VALUE = "value"

    @property
    def extension_kind(self) -> ExtensionKind:
        """Extension kind that can target an export of this kind."""
        return _EXPORT_TO_EXTENSION[self]


class ExportForm(StrEnum):
    """How an export is bound at module level.

    Decides how the rewriter splices the composition call in.
    """

    FUNCTION_DEF = "function_def"
    CLASS_DEF = "class_def"
    ASSIGNMENT = "assignment"
    LAMBDA_ASSIGNMENT = "lambda_assignment"
    UNPACKED = "unpacked"


class Environment(StrEnum):
    """Build environment. Kind-mismatch diagnostics only run in development."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"


_EXPORT_TO_EXTENSION: dict[ExportKind, ExtensionKind] = {
    ExportKind.COMPONENT: ExtensionKind.COMPONENT,
    ExportKind.PLAIN_FUNCTION: ExtensionKind.FUNCTION,
    ExportKind.VALUE: ExtensionKind.VALUE,
}
