# src/hookgraft/bootstrap.py
"""Host start-up: populate the registry, then install the import hook.

Composition happens when a rewritten module is imported, and the first
composition freezes the registry. Everything that registers extensions must
therefore run before the hook is installed:

    from hookgraft.bootstrap import bootstrap

    bootstrap()          # nearest hookgraft.yaml above the working directory
    import shop.app      # rewritten on import
"""

from __future__ import annotations

from pathlib import Path

from hookgraft.core.config import HookgraftSettings, find_settings
from hookgraft.core.logging import get_logger
from hookgraft.extensions.discovery import discover_extensions
from hookgraft.extensions.manager import ExtensionManager
from hookgraft.rewriter.import_hook import install
from hookgraft.runtime import ExtensionContext, set_context

logger = get_logger(__name__)


def bootstrap(
    settings: HookgraftSettings | None = None,
    *,
    manager: ExtensionManager | None = None,
    install_hook: bool = True,
) -> ExtensionContext:
    """Create the process-wide context from settings and end its load phase.

    Extensions come from installed entry points, from hook implementations
    already registered on manager and, with instrument_all, from every
    discovered extension module (no aggregators are consulted for
    registration in that mode).

    Args:
        settings: Settings to use (default: nearest hookgraft.yaml)
        manager: Pre-populated extension manager
        install_hook: Install the rewriting import hook afterwards

    Returns:
        The installed context, with a frozen registry
    """
    if settings is None:
        settings = find_settings(Path.cwd())
    if manager is None:
        manager = ExtensionManager()

    context = ExtensionContext(development=settings.is_development, shuffle_ties=settings.shuffle_ties)
    manager.load_entrypoints()

    if settings.instrument_all:
        groups = discover_extensions(settings.extension_paths, settings.extension_pattern)
        manager.load_modules(found for group in groups.values() for found in group.extensions)

    registered = manager.populate(context.registry)
    set_context(context)
    logger.info(
        "Extension context ready",
        environment=settings.environment,
        extensions=registered,
        resource_ids=len(context.registry.resource_ids()),
    )

    if install_hook:
        install(settings)
    return context
