"""sys.modules cleanup for tests that import modules from a tmp workspace."""

import sys
from collections.abc import Iterable
from pathlib import Path

GENERATED_PREFIX = "hookgraft_generated"


def loaded_from(module: object, workspace: Path) -> bool:
    """Whether a module (namespace packages included) was loaded from workspace."""
    spec = getattr(module, "__spec__", None)
    if spec is None:
        return False
    # Iterating a namespace path re-reads its parent package from sys.modules
    locations = [spec.origin or "", *list(spec.submodule_search_locations or [])]
    return any(str(location).startswith(str(workspace)) for location in locations)


def forget_workspace_modules(workspace: Path, before: Iterable[str]) -> list[str]:
    """Drop modules imported from workspace (and generated aggregators) since before.

    Every module is inspected before any is removed, so nested namespace
    packages still find their parents.

    Returns:
        Names removed from sys.modules
    """
    new_names = set(sys.modules) - set(before)
    doomed = [name for name in sorted(new_names) if name.startswith(GENERATED_PREFIX) or loaded_from(sys.modules.get(name), workspace)]
    for name in doomed:
        sys.modules.pop(name, None)
    return doomed
