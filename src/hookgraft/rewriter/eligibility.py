# src/hookgraft/rewriter/eligibility.py
"""Which modules the rewriter may touch.

Never rewritten:
- installed dependencies (site-packages, virtualenvs, ...)
- type stubs (.pyi)
- hookgraft's own modules
- modules opting out with a leading `"use no-plugins"` directive
- paths containing a configured exclude fragment
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

from hookgraft.core.resolver import is_dependency_path

OPT_OUT_DIRECTIVE = "use no-plugins"

# First statement of the module is the directive string, alone on its line
_OPT_OUT_RE = re.compile(
    r"""\A(?:\ufeff)?(?:[ \t]*(?:\#[^\n]*)?\r?\n)*[ \t]*(?P<q>["'])use no-plugins(?P=q)[ \t]*;?[ \t]*(?:\#[^\n]*)?(?:\r?\n|\Z)"""
)

PACKAGE_DIR = Path(__file__).resolve().parent.parent


def has_opt_out(source: str) -> bool:
    """Whether the module's first statement is the opt-out directive."""
    return _OPT_OUT_RE.match(source) is not None


def is_engine_path(path: Path) -> bool:
    """Whether path belongs to hookgraft itself."""
    return path.resolve().is_relative_to(PACKAGE_DIR)


def is_eligible(file_path: Path, source: str | None = None, *, exclude: Iterable[str] = ()) -> bool:
    """Whether file_path may be rewritten.

    Args:
        file_path: Module path
        source: Module source, checked for the opt-out directive when given
        exclude: Path fragments that are never rewritten

    Returns:
        False for dependencies, stubs, hookgraft itself, excluded paths
        and opted-out modules
    """
    if file_path.suffix != ".py":
        return False
    if is_dependency_path(file_path) or is_engine_path(file_path):
        return False
    posix = file_path.as_posix()
    if any(fragment and fragment in posix for fragment in exclude):
        return False
    return source is None or not has_opt_out(source)
