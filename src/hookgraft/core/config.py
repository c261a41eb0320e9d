# src/hookgraft/core/config.py
"""
Configuration schema and loading for hookgraft.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.

The same `hookgraft.yaml` file doubles as the project-config file the
resource id resolver walks up to: its `base_path` key is the base import
root resource ids are computed from.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from hookgraft.contracts.enums import Environment

CONFIG_FILENAME = "hookgraft.yaml"


class HookgraftSettings(BaseModel):
    """Top-level hookgraft configuration.

    Example YAML:
        base_path: src
        environment: development
        source_roots: [src]
        extension_roots: [extensions]
        generated_dir: build/hookgraft_generated
    """

    model_config = {"frozen": True}

    base_path: str = Field(
        default=".",
        description="Base import root, relative to the package manifest directory",
    )
    environment: Literal["development", "production"] = Field(
        default="production",
        description="Development enables kind-mismatch diagnostics",
    )
    instrument_all: bool = Field(
        default=False,
        description="Instrument every eligible export, not only those with known extensions",
    )
    source_roots: list[str] = Field(
        default_factory=lambda: ["."],
        description="Directories whose modules the import hook rewrites",
    )
    extension_roots: list[str] = Field(
        default_factory=lambda: ["."],
        description="Directories scanned for extension modules",
    )
    extension_pattern: str = Field(
        default="**/extensions/*.py",
        description="Glob (relative to each extension root) matching extension modules",
    )
    generated_dir: str = Field(
        default="hookgraft_generated",
        description="Directory aggregator modules are written to",
    )
    generated_package: str = Field(
        default="hookgraft_generated",
        description="Import name of the aggregator package",
    )
    shuffle_ties: bool = Field(
        default=False,
        description="Shuffle equal sort_order extensions to surface reliance on tie order",
    )
    exclude: list[str] = Field(
        default_factory=list,
        description="Extra path fragments the rewriter never touches",
    )
    config_dir: Path = Field(
        default_factory=Path.cwd,
        description="Directory relative paths resolve against (set by load_settings)",
    )

    @field_validator("generated_package")
    @classmethod
    def validate_generated_package(cls, v: str) -> str:
        """Aggregator package must be importable."""
        if not all(part.isidentifier() for part in v.split(".")):
            raise ValueError(f"generated_package '{v}' is not a valid dotted module name")
        return v

    @field_validator("extension_pattern")
    @classmethod
    def validate_extension_pattern(cls, v: str) -> str:
        """Pattern must target Python sources."""
        if not v.endswith(".py"):
            raise ValueError(f"extension_pattern '{v}' must match .py files")
        return v

    @property
    def is_development(self) -> bool:
        """Whether development diagnostics are enabled."""
        return self.environment == Environment.DEVELOPMENT

    def resolve_path(self, value: str) -> Path:
        """Resolve a configured path against the config file's directory."""
        path = Path(value).expanduser()
        if path.is_absolute():
            return path
        return (self.config_dir / path).resolve()

    @property
    def generated_path(self) -> Path:
        """Absolute directory for aggregator modules."""
        return self.resolve_path(self.generated_dir)

    @property
    def source_paths(self) -> list[Path]:
        """Absolute source roots."""
        return [self.resolve_path(root) for root in self.source_roots]

    @property
    def extension_paths(self) -> list[Path]:
        """Absolute extension roots."""
        return [self.resolve_path(root) for root in self.extension_roots]


def load_settings(config_path: Path) -> HookgraftSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (HOOKGRAFT_*) - highest priority
    2. Config file (hookgraft.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated HookgraftSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Explicit check for file existence (Dynaconf silently accepts missing files)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="HOOKGRAFT",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; convert to lowercase for Pydantic
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config: dict[str, Any] = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config["config_dir"] = config_path.resolve().parent

    return HookgraftSettings(**raw_config)


def find_settings(start: Path) -> HookgraftSettings:
    """Load the nearest hookgraft.yaml above start, or defaults rooted at start.

    Args:
        start: File or directory to search upward from

    Returns:
        Settings from the nearest config file, else defaults with config_dir=start
    """
    from hookgraft.core.resolver import find_up

    directory = start if start.is_dir() else start.parent
    config_path = find_up(CONFIG_FILENAME, directory)
    if config_path is None:
        return HookgraftSettings(config_dir=directory.resolve())
    return load_settings(config_path)
