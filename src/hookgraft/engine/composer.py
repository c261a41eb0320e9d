# src/hookgraft/engine/composer.py
"""Composition engine: ordered folds over registered extensions.

Per (resource id, kind) the engine moves through three states:

    UNCOMPOSED -> SORTED (cached) -> APPLIED

Ordering contract:
    Lower sort_order applies first. For components and functions that
    means OUTERMOST: the lowest sort_order extension runs first and decides
    whether anything further in runs at all. For values it is the first
    transform step. Equal sort_order is an unordered tie; the stable sort
    keeps registration order but nothing may rely on it.

Zero extensions is the default, not an error: compose_component and
compose_function hand back the original object itself, so callers can rely
on identity to skip redundant work.
"""

from __future__ import annotations

import functools
import inspect
import random
import threading
from collections.abc import Callable, Iterable, Sequence
from enum import StrEnum
from operator import attrgetter
from typing import Any, TypeVar

from hookgraft.contracts.enums import ExtensionKind
from hookgraft.contracts.extension import WRAPPED_COMPONENT_KWARG, Extension
from hookgraft.core.logging import get_logger
from hookgraft.extensions.registry import ExtensionRegistry, filter_by_kind

logger = get_logger(__name__)

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])


class CompositionState(StrEnum):
    """Lifecycle of one (resource id, kind) in the engine."""

    UNCOMPOSED = "uncomposed"
    SORTED = "sorted"
    APPLIED = "applied"


def display_name(target: Any) -> str:
    """Best available human name for a composed target."""
    name = getattr(target, "__name__", None) or getattr(target, "__qualname__", None)
    return str(name) if name else type(target).__name__


async def _await_if_needed(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class CompositionEngine:
    """Sorts and folds extensions for resource ids.

    The registry is injected rather than looked up globally so the engine can
    be tested in isolation. Rewritten modules may also pass the extension list
    imported from their aggregator module; it is merged with whatever the
    registry holds for the same resource id.
    """

    def __init__(
        self,
        registry: ExtensionRegistry,
        *,
        shuffle_ties: bool = False,
        rng: random.Random | None = None,
    ) -> None:
        self._registry = registry
        self._shuffle_ties = shuffle_ties
        self._rng = rng if rng is not None else random.Random()
        self._sorted: dict[tuple[str, ExtensionKind], tuple[Extension, ...]] = {}
        self._applied: set[tuple[str, ExtensionKind]] = set()
        self._lock = threading.Lock()

    @property
    def registry(self) -> ExtensionRegistry:
        """Registry this engine reads from."""
        return self._registry

    def state(self, resource_id: str, kind: ExtensionKind) -> CompositionState:
        """Current lifecycle state of a (resource id, kind)."""
        key = (resource_id, kind)
        if key in self._applied:
            return CompositionState.APPLIED
        if key in self._sorted:
            return CompositionState.SORTED
        return CompositionState.UNCOMPOSED

    def get_sorted(
        self,
        resource_id: str,
        kind: ExtensionKind,
        extensions: Iterable[Extension] | None = None,
    ) -> tuple[Extension, ...]:
        """Extensions for resource_id of the given kind, ascending by sort_order.

        Built on first request and cached for the life of the engine.

        Args:
            resource_id: Resource id being composed
            kind: Kind of the composition entry point
            extensions: Extension list from the resource id's aggregator module

        Returns:
            Sorted tuple (possibly empty)
        """
        key = (resource_id, kind)
        cached = self._sorted.get(key)
        if cached is not None:
            return cached

        with self._lock:
            cached = self._sorted.get(key)
            if cached is None:
                cached = self._build_sorted(resource_id, kind, extensions)
                self._sorted[key] = cached
        return cached

    def _build_sorted(
        self,
        resource_id: str,
        kind: ExtensionKind,
        extensions: Iterable[Extension] | None,
    ) -> tuple[Extension, ...]:
        candidates = self._registry.lookup(resource_id, kind)
        if extensions is not None:
            aggregated = filter_by_kind(
                (ext for ext in extensions if ext.resource_id == resource_id),
                resource_id,
                kind,
                development=self._registry.development,
            )
            # An extension both discovered and registered by entry point counts once
            candidates.extend(ext for ext in aggregated if ext not in candidates)

        if self._shuffle_ties:
            self._rng.shuffle(candidates)
        return tuple(sorted(candidates, key=attrgetter("sort_order")))

    def _mark_applied(self, resource_id: str, kind: ExtensionKind, chain: Sequence[Extension]) -> None:
        self._applied.add((resource_id, kind))
        logger.debug(
            "Extensions applied",
            resource_id=resource_id,
            kind=str(kind),
            extensions=[ext.name for ext in chain],
        )

    def compose_component(
        self,
        resource_id: str,
        original: F,
        extensions: Iterable[Extension] | None = None,
    ) -> F:
        """Wrap a markup-producing callable with its component extensions.

        Each extension is called as wrap(*args, wrapped_component=inner, **props)
        where `inner` is the next extension in (or the original). The result's
        name records the wrapping chain outer to inner.

        Returns:
            `original` itself if there are no extensions, else the composed callable
        """
        chain = self.get_sorted(resource_id, ExtensionKind.COMPONENT, extensions)
        if not chain:
            return original

        inner: Callable[..., Any] = original
        for extension in reversed(chain):
            inner = _component_stage(extension, inner)
        outer = inner

        if inspect.iscoroutinefunction(original):

            async def composed(*args: Any, **props: Any) -> Any:
                return await _await_if_needed(outer(*args, **props))

        else:

            def composed(*args: Any, **props: Any) -> Any:
                return outer(*args, **props)

        functools.update_wrapper(composed, original)
        names = [ext.name for ext in chain]
        label = f"WithExtensions[{', '.join(names)}]({display_name(original)})"
        composed.__name__ = label
        composed.__qualname__ = label
        composed.__extension_chain__ = tuple(names)  # type: ignore[attr-defined]
        composed.__resource_id__ = resource_id  # type: ignore[attr-defined]

        self._mark_applied(resource_id, ExtensionKind.COMPONENT, chain)
        return composed  # type: ignore[return-value]

    def compose_function(
        self,
        resource_id: str,
        original: F,
        extensions: Iterable[Extension] | None = None,
    ) -> F:
        """Wrap a plain function with its function extensions.

        The stage chain is built once here; each call only supplies arguments.
        Each extension is called as wrap(next_stage, *args, **kwargs).

        Returns:
            `original` itself if there are no extensions, else the composed callable
        """
        chain = self.get_sorted(resource_id, ExtensionKind.FUNCTION, extensions)
        if not chain:
            return original

        stage: Callable[..., Any] = original
        for extension in reversed(chain):
            stage = functools.partial(extension.wrap, stage)
        entry = stage

        if inspect.iscoroutinefunction(original):

            async def composed(*args: Any, **kwargs: Any) -> Any:
                return await _await_if_needed(entry(*args, **kwargs))

        else:

            def composed(*args: Any, **kwargs: Any) -> Any:
                return entry(*args, **kwargs)

        functools.update_wrapper(composed, original)
        composed.__extension_chain__ = tuple(ext.name for ext in chain)  # type: ignore[attr-defined]
        composed.__resource_id__ = resource_id  # type: ignore[attr-defined]

        self._mark_applied(resource_id, ExtensionKind.FUNCTION, chain)
        return composed  # type: ignore[return-value]

    def compose_value(
        self,
        resource_id: str,
        original: T,
        extensions: Iterable[Extension] | None = None,
    ) -> T:
        """Fold value extensions over original, once.

        Returns:
            The final value; `original` if there are no extensions
        """
        chain = self.get_sorted(resource_id, ExtensionKind.VALUE, extensions)
        if not chain:
            return original

        value: Any = original
        for extension in chain:
            value = extension.wrap(value)

        self._mark_applied(resource_id, ExtensionKind.VALUE, chain)
        return value  # type: ignore[no-any-return]


def _component_stage(extension: Extension, inner: Callable[..., Any]) -> Callable[..., Any]:
    """One wrapper layer: injects `inner` as the wrapped component."""

    def stage(*args: Any, **props: Any) -> Any:
        return extension.wrap(*args, **{**props, WRAPPED_COMPONENT_KWARG: inner})

    label = f"ExtensionWrapper({extension.name})"
    stage.__name__ = label
    stage.__qualname__ = label
    return stage
