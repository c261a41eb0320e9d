# tests/conftest.py
"""Shared test fixtures and helpers.

Workspace Fixtures:
- workspace: tmp_path laid out as a package root (pyproject.toml named "shop")
- write_module: write a module into the workspace, creating parent dirs

Every test runs against a fresh runtime context with empty resolver caches
and no rewriting import hook installed.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

import importlib
import logging
import os
import sys
import textwrap
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from hypothesis import Phase, Verbosity, settings
from structlog.stdlib import ProcessorFormatter

from hookgraft.core.resolver import clear_resolver_caches
from hookgraft.rewriter.import_hook import uninstall
from hookgraft.runtime import reset_context
from tests.helpers.modules import forget_workspace_modules

PACKAGE_NAME = "shop"

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


@pytest.fixture(autouse=True)
def _isolate_runtime() -> Iterator[None]:
    """Fresh process-wide context, resolver caches and meta path per test."""
    reset_context()
    clear_resolver_caches()
    yield
    uninstall()
    reset_context()
    clear_resolver_caches()


@pytest.fixture(autouse=True)
def _drop_log_handlers() -> Iterator[None]:
    """Remove handlers configure_logging() attached to streams a test captured."""
    root = logging.getLogger()
    level = root.level
    yield
    root.handlers = [h for h in root.handlers if not isinstance(h.formatter, ProcessorFormatter)]
    root.setLevel(level)


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """A package root whose manifest names the package 'shop'."""
    (tmp_path / "pyproject.toml").write_text(f'[project]\nname = "{PACKAGE_NAME}"\nversion = "1.0"\n', encoding="utf-8")
    return tmp_path


@pytest.fixture
def write_module(workspace: Path) -> Callable[[str, str], Path]:
    """Write dedented source to a path relative to the workspace."""

    def write(relative: str, source: str) -> Path:
        path = workspace / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
        importlib.invalidate_caches()
        return path

    return write


@pytest.fixture
def importable(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Put the workspace on sys.path and forget modules imported from it."""
    monkeypatch.syspath_prepend(str(workspace))
    before = set(sys.modules)
    yield workspace
    forget_workspace_modules(workspace, before)
