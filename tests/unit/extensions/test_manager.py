# tests/unit/extensions/test_manager.py
"""Tests for the pluggy-based extension manager."""

from pathlib import Path
from typing import Any

import pytest

from hookgraft.contracts import Extension, ExtensionKind, ExtensionModuleError
from hookgraft.extensions.discovery import DiscoveredExtension
from hookgraft.extensions.hookspecs import hookimpl
from hookgraft.extensions.manager import ExtensionManager, create_dynamic_hookimpl, load_extension_module
from hookgraft.extensions.registry import ExtensionRegistry


def _ext(name: str, resource_id: str = "shop/widgets/card") -> Extension:
    return Extension(name=name, resource_id=resource_id, kind=ExtensionKind.COMPONENT, wrap=lambda *a, **k: None)


class TestExtensionManager:
    """Hook implementations feeding the registry."""

    def test_register_plugin(self) -> None:
        class ThemeHooks:
            @hookimpl
            def hookgraft_get_extensions(self) -> list[Extension]:
                return [_ext("banner"), _ext("tracker")]

        manager = ExtensionManager()
        manager.register(ThemeHooks())

        assert [ext.name for ext in manager.collect()] == ["banner", "tracker"]

    def test_collect_keeps_plugin_registration_order(self) -> None:
        manager = ExtensionManager()
        manager.register_extensions([_ext("first")])
        manager.register_extensions([_ext("second")])

        assert [ext.name for ext in manager.collect()] == ["first", "second"]

    def test_non_extension_results_rejected(self) -> None:
        class BrokenHooks:
            @hookimpl
            def hookgraft_get_extensions(self) -> list[Any]:
                return ["not an extension"]

        manager = ExtensionManager()
        manager.register(BrokenHooks())

        with pytest.raises(TypeError, match="Extension objects"):
            manager.collect()

    def test_populate_registers_and_freezes(self) -> None:
        manager = ExtensionManager()
        manager.register_extensions([_ext("banner"), _ext("euro", resource_id="shop/config:CURRENCY")])
        registry = ExtensionRegistry()

        count = manager.populate(registry)

        assert count == 2
        assert registry.frozen is True
        assert registry.resource_ids() == ["shop/config:CURRENCY", "shop/widgets/card"]

    def test_populate_without_freeze(self) -> None:
        manager = ExtensionManager()
        manager.register_extensions([_ext("banner")])
        registry = ExtensionRegistry()

        manager.populate(registry, freeze=False)

        assert registry.frozen is False

    def test_load_entrypoints_without_distributions(self) -> None:
        manager = ExtensionManager()
        assert manager.load_entrypoints() >= 0

    def test_dynamic_hookimpl_returns_given_list(self) -> None:
        extensions = [_ext("banner")]
        impl = create_dynamic_hookimpl(extensions)
        assert impl.hookgraft_get_extensions() is extensions  # type: ignore[attr-defined]


class TestLoadExtensionModule:
    """Importing discovered extension modules."""

    def test_loads_default_descriptor(self, write_module: Any, importable: Path) -> None:
        path = write_module(
            "theme/extensions/banner.py",
            """
            from hookgraft import component_extension

            @component_extension(resource_id="shop/widgets/card", sort_order=-5)
            def banner(*args, wrapped_component, **props):
                return "<aside/>" + wrapped_component(*args, **props)

            __default__ = banner
            """,
        )
        discovered = DiscoveredExtension("shop/theme/extensions/banner", "shop/widgets/card", path, "theme.extensions.banner")

        ext = load_extension_module(discovered)

        assert ext.name == "banner"
        assert ext.sort_order == -5

    def test_module_without_descriptor_rejected(self, write_module: Any, importable: Path) -> None:
        path = write_module("theme/extensions/empty.py", "VALUE = 1\n")
        discovered = DiscoveredExtension("shop/theme/extensions/empty", "shop/widgets/card", path, "theme.extensions.empty")

        with pytest.raises(ExtensionModuleError, match="__default__"):
            load_extension_module(discovered)

    def test_descriptor_for_other_resource_rejected(self, write_module: Any, importable: Path) -> None:
        path = write_module(
            "theme/extensions/euro.py",
            """
            from hookgraft import value_extension

            __default__ = value_extension(name="euro", resource_id="shop/config:CURRENCY", wrap=lambda c: "EUR")
            """,
        )
        discovered = DiscoveredExtension("shop/theme/extensions/euro", "shop/widgets/card", path, "theme.extensions.euro")

        with pytest.raises(ExtensionModuleError, match="targets"):
            load_extension_module(discovered)

    def test_load_modules_registers_descriptors(self, write_module: Any, importable: Path) -> None:
        path = write_module(
            "theme/extensions/suffix.py",
            """
            from hookgraft import value_extension

            __default__ = value_extension(name="suffix", resource_id="shop/config:CURRENCY", wrap=lambda c: c + "-001")
            """,
        )
        manager = ExtensionManager()
        count = manager.load_modules(
            [DiscoveredExtension("shop/theme/extensions/suffix", "shop/config:CURRENCY", path, "theme.extensions.suffix")]
        )

        assert count == 1
        assert [ext.name for ext in manager.collect()] == ["suffix"]
