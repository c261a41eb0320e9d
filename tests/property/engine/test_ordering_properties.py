# tests/property/engine/test_ordering_properties.py
"""Property-based tests for extension ordering and composition.

Whatever order extensions are registered in, composition must apply them
outer to inner by ascending sort_order, with registration order breaking
ties. A stage that never calls its next stage hides everything inside it.
"""

from __future__ import annotations

import random
from collections.abc import Callable
from typing import Any

from hypothesis import given
from hypothesis import strategies as st

from hookgraft.contracts import Extension, ExtensionKind
from hookgraft.engine.composer import CompositionEngine
from hookgraft.extensions.builders import function_extension, value_extension
from hookgraft.extensions.registry import ExtensionRegistry
from tests.property.settings import DETERMINISM_SETTINGS, STANDARD_SETTINGS

RID = "shop/pricing:total"

# =============================================================================
# Strategies
# =============================================================================

sort_orders = st.lists(st.integers(min_value=-1000, max_value=1000), min_size=1, max_size=12)
distinct_sort_orders = st.lists(st.integers(min_value=-1000, max_value=1000), min_size=1, max_size=12, unique=True)


def _tracing(name: str, sort_order: int, *, calls_next: bool = True) -> Extension:
    def wrap(next_stage: Callable[[list[str]], list[str]], trace: list[str]) -> list[str]:
        trace.append(name)
        return next_stage(trace) if calls_next else trace

    return function_extension(name=name, resource_id=RID, sort_order=sort_order, wrap=wrap)


def _original(trace: list[str]) -> list[str]:
    trace.append("original")
    return trace


def _engine(extensions: list[Extension], **kwargs: Any) -> CompositionEngine:
    registry = ExtensionRegistry()
    registry.register_many(extensions)
    return CompositionEngine(registry, **kwargs)


# =============================================================================
# Ordering Properties
# =============================================================================


class TestSortedOrder:
    """get_sorted() orders by sort_order, stably."""

    @given(orders=sort_orders)
    @STANDARD_SETTINGS
    def test_ascending_and_stable(self, orders: list[int]) -> None:
        """Property: the chain is the stable sort of registration order by sort_order."""
        extensions = [_tracing(f"ext{i}", order) for i, order in enumerate(orders)]

        chain = _engine(extensions).get_sorted(RID, ExtensionKind.FUNCTION)

        expected = sorted(range(len(orders)), key=lambda i: orders[i])
        assert [ext.name for ext in chain] == [f"ext{i}" for i in expected]

    @given(orders=distinct_sort_orders, data=st.data())
    @STANDARD_SETTINGS
    def test_registration_order_irrelevant(self, orders: list[int], data: st.DataObject) -> None:
        """Property: with distinct sort orders, any registration order gives one chain."""
        extensions = [_tracing(f"ext{order}", order) for order in orders]
        shuffled = data.draw(st.permutations(extensions))

        first = _engine(extensions).get_sorted(RID, ExtensionKind.FUNCTION)
        second = _engine(list(shuffled)).get_sorted(RID, ExtensionKind.FUNCTION)

        assert [ext.name for ext in first] == [ext.name for ext in second]
        assert [ext.sort_order for ext in first] == sorted(orders)

    @given(orders=sort_orders, seed=st.integers(min_value=0, max_value=2**32 - 1))
    @STANDARD_SETTINGS
    def test_shuffled_ties_still_sorted(self, orders: list[int], seed: int) -> None:
        """Property: shuffle_ties only permutes extensions with equal sort_order."""
        extensions = [_tracing(f"ext{i}", order) for i, order in enumerate(orders)]

        chain = _engine(extensions, shuffle_ties=True, rng=random.Random(seed)).get_sorted(RID, ExtensionKind.FUNCTION)

        assert [ext.sort_order for ext in chain] == sorted(orders)
        assert sorted(ext.name for ext in chain) == sorted(ext.name for ext in extensions)

    @given(orders=sort_orders)
    @DETERMINISM_SETTINGS
    def test_sorted_once(self, orders: list[int]) -> None:
        """Property: repeated requests return the cached chain."""
        engine = _engine([_tracing(f"ext{i}", order) for i, order in enumerate(orders)])
        assert engine.get_sorted(RID, ExtensionKind.FUNCTION) is engine.get_sorted(RID, ExtensionKind.FUNCTION)


# =============================================================================
# Composition Properties
# =============================================================================


class TestFunctionComposition:
    """compose_function() runs stages outer to inner."""

    @given(orders=sort_orders)
    @STANDARD_SETTINGS
    def test_trace_follows_chain(self, orders: list[int]) -> None:
        """Property: call order equals sorted order, then the original."""
        engine = _engine([_tracing(f"ext{i}", order) for i, order in enumerate(orders)])

        composed = engine.compose_function(RID, _original)

        expected = [f"ext{i}" for i in sorted(range(len(orders)), key=lambda i: orders[i])]
        assert composed([]) == [*expected, "original"]

    @given(orders=distinct_sort_orders, data=st.data())
    @STANDARD_SETTINGS
    def test_short_circuit_hides_inner_stages(self, orders: list[int], data: st.DataObject) -> None:
        """Property: a stage that skips next_stage suppresses every higher sort order."""
        ascending = sorted(orders)
        stop = data.draw(st.sampled_from(ascending))
        extensions = [_tracing(f"ext{order}", order, calls_next=order != stop) for order in orders]

        composed = _engine(extensions).compose_function(RID, _original)

        assert composed([]) == [f"ext{order}" for order in ascending if order <= stop]

    @given(resource_id=st.text(min_size=1, max_size=40))
    @STANDARD_SETTINGS
    def test_zero_extensions_is_identity(self, resource_id: str) -> None:
        """Property: with nothing registered the original object comes back."""
        engine = _engine([])
        assert engine.compose_function(resource_id, _original) is _original
        assert engine.compose_component(resource_id, _original) is _original


class TestValueComposition:
    """compose_value() folds each extension exactly once."""

    @given(orders=sort_orders, initial=st.integers())
    @STANDARD_SETTINGS
    def test_fold_in_sort_order(self, orders: list[int], initial: int) -> None:
        """Property: each wrap runs once, lowest sort_order first."""
        calls: list[str] = []

        def appender(name: str) -> Callable[[tuple[Any, ...]], tuple[Any, ...]]:
            def wrap(value: tuple[Any, ...]) -> tuple[Any, ...]:
                calls.append(name)
                return (*value, name)

            return wrap

        extensions = [
            value_extension(name=f"ext{i}", resource_id=RID, sort_order=order, wrap=appender(f"ext{i}")) for i, order in enumerate(orders)
        ]

        result = _engine(extensions).compose_value(RID, (initial,))

        expected = [f"ext{i}" for i in sorted(range(len(orders)), key=lambda i: orders[i])]
        assert result == (initial, *expected)
        assert calls == expected
