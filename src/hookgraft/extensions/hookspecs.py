# src/hookgraft/extensions/hookspecs.py
"""pluggy hook specifications for hookgraft extensions.

Distributions contribute extensions by implementing this hook, either on an
object registered with ExtensionManager.register() or on a module advertised
under the "hookgraft" entry-point group:

    # pyproject.toml of an extension distribution
    [project.entry-points.hookgraft]
    shop_theme = "shop_theme.hooks"

    # shop_theme/hooks.py
    from hookgraft.extensions.hookspecs import hookimpl

    @hookimpl
    def hookgraft_get_extensions():
        return [banner, tracker]

Note: @hookspec defines the hook interface (done here).
      @hookimpl marks implementations of it.
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from hookgraft.contracts.extension import Extension

# Project name for pluggy (also the entry-point group)
PROJECT_NAME = "hookgraft"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class HookgraftExtensionSpec:
    """Hook specifications for extension providers."""

    @hookspec
    def hookgraft_get_extensions(self) -> list["Extension"]:  # type: ignore[empty-body]
        """Return extension descriptors to register.

        Returns:
            List of Extension descriptors
        """
