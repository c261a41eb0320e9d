"""hookgraft: compile-time extension points for Python modules.

Every exported function, class and value of a host module is addressable by
a stable resource id. Extension modules target a resource id with a
descriptor; the rewriter routes the export through the composition engine,
which folds the extensions around it once, when the module is imported.

    from hookgraft import component_extension

    @component_extension(resource_id="shop/widgets/card", sort_order=-5)
    def banner(*args, wrapped_component, **props):
        return "<aside>Sale!</aside>" + wrapped_component(*args, **props)

    __default__ = banner
"""

__version__ = "0.1.0"

from hookgraft.contracts import (
    Extension,
    ExtensionKind,
    HookgraftError,
)
from hookgraft.extensions.builders import component_extension, function_extension, value_extension
from hookgraft.runtime import extend_component, extend_function, extend_value

__all__ = [
    "Extension",
    "ExtensionKind",
    "HookgraftError",
    "__version__",
    "component_extension",
    "extend_component",
    "extend_function",
    "extend_value",
    "function_extension",
    "value_extension",
]
