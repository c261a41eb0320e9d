# src/hookgraft/extensions/builders.py
"""Extension descriptor builders.

Each builder tags a descriptor with its kind. They work as a plain call:

    __default__ = value_extension(
        name="euro-currency",
        resource_id="shop/config:CURRENCY",
        sort_order=-10,
        wrap=lambda currency: "EUR",
    )

or as a decorator factory, where the name defaults to the function name:

    @component_extension(resource_id="shop/widgets/card", sort_order=-5)
    def banner(*args, wrapped_component, **props):
        return "<aside>Sale!</aside>" + wrapped_component(*args, **props)

    __default__ = banner
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, overload

from hookgraft.contracts.enums import ExtensionKind
from hookgraft.contracts.extension import Extension

_Wrap = Callable[..., Any]


def _build(
    kind: ExtensionKind,
    name: str | None,
    resource_id: str,
    sort_order: int,
    wrap: _Wrap | None,
) -> Extension | Callable[[_Wrap], Extension]:
    if wrap is not None:
        return Extension(
            name=name if name is not None else wrap.__name__,
            resource_id=resource_id,
            kind=kind,
            wrap=wrap,
            sort_order=sort_order,
        )

    def decorator(func: _Wrap) -> Extension:
        return Extension(
            name=name if name is not None else func.__name__,
            resource_id=resource_id,
            kind=kind,
            wrap=func,
            sort_order=sort_order,
        )

    return decorator


@overload
def component_extension(*, resource_id: str, wrap: _Wrap, name: str | None = ..., sort_order: int = ...) -> Extension: ...


@overload
def component_extension(
    *, resource_id: str, wrap: None = ..., name: str | None = ..., sort_order: int = ...
) -> Callable[[_Wrap], Extension]: ...


def component_extension(
    *,
    resource_id: str,
    wrap: _Wrap | None = None,
    name: str | None = None,
    sort_order: int = 0,
) -> Extension | Callable[[_Wrap], Extension]:
    """Build a component extension.

    `wrap` is called as wrap(*args, wrapped_component=inner, **props) and
    returns the rendered markup. Not calling `wrapped_component` suppresses
    every extension with a higher sort_order and the original component.
    """
    return _build(ExtensionKind.COMPONENT, name, resource_id, sort_order, wrap)


@overload
def function_extension(*, resource_id: str, wrap: _Wrap, name: str | None = ..., sort_order: int = ...) -> Extension: ...


@overload
def function_extension(
    *, resource_id: str, wrap: None = ..., name: str | None = ..., sort_order: int = ...
) -> Callable[[_Wrap], Extension]: ...


def function_extension(
    *,
    resource_id: str,
    wrap: _Wrap | None = None,
    name: str | None = None,
    sort_order: int = 0,
) -> Extension | Callable[[_Wrap], Extension]:
    """Build a function extension.

    `wrap` is called as wrap(next_stage, *args, **kwargs).
    """
    return _build(ExtensionKind.FUNCTION, name, resource_id, sort_order, wrap)


@overload
def value_extension(*, resource_id: str, wrap: _Wrap, name: str | None = ..., sort_order: int = ...) -> Extension: ...


@overload
def value_extension(
    *, resource_id: str, wrap: None = ..., name: str | None = ..., sort_order: int = ...
) -> Callable[[_Wrap], Extension]: ...


def value_extension(
    *,
    resource_id: str,
    wrap: _Wrap | None = None,
    name: str | None = None,
    sort_order: int = 0,
) -> Extension | Callable[[_Wrap], Extension]:
    """Build a value extension.

    `wrap` receives the accumulated value and returns its replacement. It runs
    once, when the target module is evaluated.
    """
    return _build(ExtensionKind.VALUE, name, resource_id, sort_order, wrap)
