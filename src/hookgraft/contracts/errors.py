"""Exceptions raised across hookgraft subsystems.

Fatal conditions (the affected module cannot be rewritten consistently):
- ManifestNotFoundError: no pyproject.toml above a module being rewritten
- RewriteSyntaxError: module source does not parse
- AggregatorNotFoundError: an instrumented export's aggregator module is missing

Everything else that can go wrong at composition time (kind mismatch,
duplicate extension names, re-wrapping, no extensions at all) is logged and
never raised.
"""

from pathlib import Path


class HookgraftError(Exception):
    """Base class for all hookgraft errors."""


class ManifestNotFoundError(HookgraftError):
    """Raised when no package manifest exists above a module.

    A resource id cannot be derived without a package name, and a build
    that guesses one would produce ids extensions can never target.
    """

    def __init__(self, file_path: Path) -> None:
        self.file_path = file_path
        super().__init__(f"No pyproject.toml was found for {file_path}")


class RewriteSyntaxError(HookgraftError):
    """Raised when a module selected for rewriting does not parse.

    The original SyntaxError is chained via __cause__.
    """

    def __init__(self, file_path: Path | str, line: int | None, message: str) -> None:
        self.file_path = file_path
        self.line = line
        self.message = message
        location = f"{file_path}:{line}" if line is not None else str(file_path)
        super().__init__(f"Cannot parse {location}: {message}")


class AggregatorNotFoundError(HookgraftError):
    """Raised when an export has extensions but its aggregator module is missing.

    Usually means `hookgraft setup` has not been run since the extension was added.
    """

    def __init__(self, resource_id: str, path: Path) -> None:
        self.resource_id = resource_id
        self.path = path
        super().__init__(f"Aggregator module for '{resource_id}' not found at {path}. Run 'hookgraft setup' to regenerate aggregators.")


class RegistryFrozenError(HookgraftError):
    """Raised when registering after the registry's load phase has ended."""

    def __init__(self, resource_id: str, name: str) -> None:
        self.resource_id = resource_id
        self.name = name
        super().__init__(
            f"Cannot register extension '{name}' for '{resource_id}': registry is frozen. "
            "Extensions must be registered before the first composition."
        )


class ExtensionDefinitionError(HookgraftError):
    """Raised when an extension descriptor is malformed."""


class ExtensionModuleError(HookgraftError):
    """Raised when an extension module does not export a usable descriptor."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid extension module {path}: {reason}")
