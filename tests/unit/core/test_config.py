# tests/unit/core/test_config.py
"""Tests for configuration schema and loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError


class TestHookgraftSettings:
    """Settings validation."""

    def test_defaults(self) -> None:
        from hookgraft.core.config import HookgraftSettings

        settings = HookgraftSettings()
        assert settings.base_path == "."
        assert settings.environment == "production"
        assert settings.is_development is False
        assert settings.instrument_all is False
        assert settings.extension_pattern == "**/extensions/*.py"
        assert settings.generated_package == "hookgraft_generated"
        assert settings.exclude == []

    def test_settings_are_frozen(self) -> None:
        from hookgraft.core.config import HookgraftSettings

        settings = HookgraftSettings()
        with pytest.raises(ValidationError):
            settings.environment = "development"  # type: ignore[misc]

    def test_environment_must_be_known(self) -> None:
        from hookgraft.core.config import HookgraftSettings

        with pytest.raises(ValidationError):
            HookgraftSettings(environment="staging")  # type: ignore[arg-type]

    def test_generated_package_must_be_importable(self) -> None:
        from hookgraft.core.config import HookgraftSettings

        with pytest.raises(ValidationError, match="generated_package"):
            HookgraftSettings(generated_package="build/generated")

    def test_dotted_generated_package_allowed(self) -> None:
        from hookgraft.core.config import HookgraftSettings

        settings = HookgraftSettings(generated_package="build.generated")
        assert settings.generated_package == "build.generated"

    def test_extension_pattern_must_target_python(self) -> None:
        from hookgraft.core.config import HookgraftSettings

        with pytest.raises(ValidationError, match="extension_pattern"):
            HookgraftSettings(extension_pattern="**/extensions/*")

    def test_paths_resolve_against_config_dir(self, tmp_path: Path) -> None:
        from hookgraft.core.config import HookgraftSettings

        settings = HookgraftSettings(
            config_dir=tmp_path,
            source_roots=["src"],
            extension_roots=["themes", "/abs/extensions"],
            generated_dir="build/gen",
        )
        assert settings.source_paths == [(tmp_path / "src").resolve()]
        assert settings.extension_paths == [(tmp_path / "themes").resolve(), Path("/abs/extensions")]
        assert settings.generated_path == (tmp_path / "build" / "gen").resolve()


class TestLoadSettings:
    """Loading from YAML with environment overrides."""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        from hookgraft.core.config import load_settings

        config = tmp_path / "hookgraft.yaml"
        config.write_text(
            "base_path: src\nenvironment: development\nsource_roots: [src]\nexclude: [legacy/]\n",
            encoding="utf-8",
        )

        settings = load_settings(config)
        assert settings.base_path == "src"
        assert settings.is_development is True
        assert settings.source_roots == ["src"]
        assert settings.exclude == ["legacy/"]
        assert settings.config_dir == tmp_path.resolve()

    def test_environment_variable_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        from hookgraft.core.config import load_settings

        config = tmp_path / "hookgraft.yaml"
        config.write_text("environment: production\n", encoding="utf-8")
        monkeypatch.setenv("HOOKGRAFT_ENVIRONMENT", "development")
        monkeypatch.setenv("HOOKGRAFT_INSTRUMENT_ALL", "true")

        settings = load_settings(config)
        assert settings.environment == "development"
        assert settings.instrument_all is True

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        from hookgraft.core.config import load_settings

        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_settings(tmp_path / "missing.yaml")

    def test_invalid_values_raise_validation_error(self, tmp_path: Path) -> None:
        from hookgraft.core.config import load_settings

        config = tmp_path / "hookgraft.yaml"
        config.write_text("environment: staging\n", encoding="utf-8")

        with pytest.raises(ValidationError):
            load_settings(config)


class TestFindSettings:
    def test_finds_nearest_config(self, tmp_path: Path) -> None:
        from hookgraft.core.config import find_settings

        (tmp_path / "hookgraft.yaml").write_text("generated_dir: gen\n", encoding="utf-8")
        nested = tmp_path / "src" / "shop"
        nested.mkdir(parents=True)

        settings = find_settings(nested)
        assert settings.generated_path == (tmp_path / "gen").resolve()

    def test_defaults_rooted_at_start(self, tmp_path: Path) -> None:
        from hookgraft.core.config import find_settings

        settings = find_settings(tmp_path)
        assert settings.config_dir == tmp_path.resolve()
        assert settings.generated_path == (tmp_path / "hookgraft_generated").resolve()
