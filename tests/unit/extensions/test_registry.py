# tests/unit/extensions/test_registry.py
"""Tests for the append-only extension registry."""

import pytest
from structlog.testing import capture_logs

from hookgraft.contracts import Extension, ExtensionKind, RegistryFrozenError
from hookgraft.extensions.registry import ExtensionRegistry, filter_by_kind

CARD = "shop/widgets/card"


def _ext(name: str, kind: ExtensionKind = ExtensionKind.COMPONENT, resource_id: str = CARD, sort_order: int = 0) -> Extension:
    return Extension(name=name, resource_id=resource_id, kind=kind, wrap=lambda *a, **k: None, sort_order=sort_order)


class TestRegister:
    def test_lookup_preserves_registration_order(self) -> None:
        registry = ExtensionRegistry()
        registry.register(_ext("tracker"))
        registry.register(_ext("banner", sort_order=-5))

        names = [ext.name for ext in registry.lookup(CARD, ExtensionKind.COMPONENT)]
        assert names == ["tracker", "banner"]

    def test_lookup_unknown_resource_is_empty(self) -> None:
        registry = ExtensionRegistry()
        assert registry.lookup("shop/nothing", ExtensionKind.VALUE) == []

    def test_lookup_returns_new_list(self) -> None:
        registry = ExtensionRegistry()
        registry.register(_ext("banner"))

        first = registry.lookup(CARD, ExtensionKind.COMPONENT)
        first.clear()
        assert len(registry.lookup(CARD, ExtensionKind.COMPONENT)) == 1

    def test_duplicate_name_accepted_with_warning(self) -> None:
        registry = ExtensionRegistry()
        registry.register(_ext("banner"))

        with capture_logs() as logs:
            registry.register(_ext("banner"))

        assert len(registry) == 2
        warnings = [entry for entry in logs if entry["event"] == "Duplicate extension name"]
        assert warnings == [
            {"event": "Duplicate extension name", "extension": "banner", "resource_id": CARD, "log_level": "warning"}
        ]

    def test_same_name_on_other_resource_is_not_duplicate(self) -> None:
        registry = ExtensionRegistry()
        registry.register(_ext("banner"))

        with capture_logs() as logs:
            registry.register(_ext("banner", resource_id="shop/widgets/list"))

        assert not [entry for entry in logs if entry["event"] == "Duplicate extension name"]

    def test_register_many(self) -> None:
        registry = ExtensionRegistry()
        registry.register_many([_ext("a"), _ext("b", resource_id="shop/other")])

        assert len(registry) == 2
        assert registry.resource_ids() == ["shop/other", CARD]
        assert CARD in registry
        assert "shop/missing" not in registry
        assert [ext.name for ext in registry] == ["a", "b"]


class TestLifecycle:
    def test_first_lookup_freezes(self) -> None:
        registry = ExtensionRegistry()
        assert registry.frozen is False

        registry.lookup(CARD, ExtensionKind.COMPONENT)

        assert registry.frozen is True
        with pytest.raises(RegistryFrozenError):
            registry.register(_ext("late"))

    def test_explicit_freeze_is_idempotent(self) -> None:
        registry = ExtensionRegistry()
        registry.freeze()
        registry.freeze()
        assert registry.frozen is True

    def test_no_unregister(self) -> None:
        assert not hasattr(ExtensionRegistry, "unregister")


class TestKindFiltering:
    def test_mismatch_excluded(self) -> None:
        registry = ExtensionRegistry()
        registry.register(_ext("banner"))
        registry.register(_ext("cache", kind=ExtensionKind.FUNCTION))

        assert [ext.name for ext in registry.lookup(CARD, ExtensionKind.FUNCTION)] == ["cache"]

    def test_mismatch_logged_in_development(self) -> None:
        registry = ExtensionRegistry(development=True)
        registry.register(_ext("cache", kind=ExtensionKind.FUNCTION))

        with capture_logs() as logs:
            assert registry.lookup(CARD, ExtensionKind.COMPONENT) == []

        mismatches = [entry for entry in logs if entry["event"] == "Extension kind mismatch"]
        assert mismatches == [
            {
                "event": "Extension kind mismatch",
                "extension": "cache",
                "resource_id": CARD,
                "expected_kind": "component",
                "actual_kind": "function",
                "log_level": "error",
            }
        ]

    def test_mismatch_silent_in_production(self) -> None:
        registry = ExtensionRegistry(development=False)
        registry.register(_ext("cache", kind=ExtensionKind.FUNCTION))

        with capture_logs() as logs:
            registry.lookup(CARD, ExtensionKind.COMPONENT)

        assert not [entry for entry in logs if entry["event"] == "Extension kind mismatch"]

    def test_filter_by_kind_keeps_input_order(self) -> None:
        extensions = [_ext("a"), _ext("b", kind=ExtensionKind.VALUE), _ext("c")]
        kept = filter_by_kind(extensions, CARD, ExtensionKind.COMPONENT, development=False)
        assert [ext.name for ext in kept] == ["a", "c"]
