# src/hookgraft/rewriter/import_hook.py
"""Import hook applying the rewriter as modules are imported.

install() puts a RewritingFinder at the front of sys.meta_path. The finder
only claims plain source modules under the configured source roots; every
other import falls through to the regular machinery untouched.

Rewritten code depends on the aggregator index at import time, so the
loader never reads or writes bytecode caches.
"""

from __future__ import annotations

import importlib.abc
import importlib.machinery
import importlib.util
import sys
from collections.abc import Callable, Sequence
from pathlib import Path
from types import CodeType, ModuleType

from hookgraft.core.config import HookgraftSettings
from hookgraft.core.logging import get_logger
from hookgraft.extensions.aggregator import load_index
from hookgraft.rewriter.eligibility import is_eligible
from hookgraft.rewriter.rewrite import AggregatorSource, rewrite

logger = get_logger(__name__)

# sys.path entries install() added, removed again by uninstall()
_added_paths: list[str] = []

Rewriter = Callable[[str, Path], str]


class RewritingLoader(importlib.machinery.SourceFileLoader):
    """Source loader that rewrites module source before compiling it."""

    def __init__(self, fullname: str, path: str, rewriter: Rewriter) -> None:
        super().__init__(fullname, path)
        self._rewriter = rewriter

    def source_to_code(self, data: bytes, path: str, *, _optimize: int = -1) -> CodeType:  # type: ignore[override]
        source = importlib.util.decode_source(data)
        rewritten = self._rewriter(source, Path(path))
        return compile(rewritten, path, "exec", dont_inherit=True, optimize=_optimize)

    def get_code(self, fullname: str) -> CodeType:
        source_path = self.get_filename(fullname)
        return self.source_to_code(self.get_data(source_path), source_path)


class RewritingFinder(importlib.abc.MetaPathFinder):
    """Meta path finder serving eligible modules under roots with a RewritingLoader."""

    def __init__(self, roots: Sequence[Path], rewriter: Rewriter, *, exclude: Sequence[str] = ()) -> None:
        self.roots = tuple(root.resolve() for root in roots)
        self._rewriter = rewriter
        self._exclude = tuple(exclude)

    def find_spec(
        self,
        fullname: str,
        path: Sequence[str] | None,
        target: ModuleType | None = None,
    ) -> importlib.machinery.ModuleSpec | None:
        spec = importlib.machinery.PathFinder.find_spec(fullname, path)
        if spec is None or spec.origin is None:
            return None
        if type(spec.loader) is not importlib.machinery.SourceFileLoader:
            return None

        origin = Path(spec.origin).resolve()
        if not any(origin.is_relative_to(root) for root in self.roots):
            return None
        if not is_eligible(origin, exclude=self._exclude):
            return None

        spec.loader = RewritingLoader(fullname, spec.origin, self._rewriter)
        return spec


def build_rewriter(settings: HookgraftSettings) -> Rewriter:
    """Rewriter bound to the aggregator index and options in settings."""
    index = load_index(settings.generated_path)
    aggregator = AggregatorSource(package=settings.generated_package, directory=settings.generated_path)

    def run(source: str, path: Path) -> str:
        return rewrite(
            source,
            path,
            index.has_extensions,
            aggregator=aggregator,
            instrument_all=settings.instrument_all,
            exclude=settings.exclude,
        )

    return run


def _generated_root(settings: HookgraftSettings) -> Path:
    """Directory the generated package is importable from."""
    root = settings.generated_path
    for _ in settings.generated_package.split("."):
        root = root.parent
    return root


def install(settings: HookgraftSettings) -> RewritingFinder:
    """Install the rewriting import hook (replacing any installed one).

    Args:
        settings: Loaded hookgraft settings

    Returns:
        The installed finder
    """
    uninstall()

    generated_root = str(_generated_root(settings))
    if generated_root not in sys.path:
        sys.path.insert(0, generated_root)
        _added_paths.append(generated_root)

    finder = RewritingFinder(settings.source_paths, build_rewriter(settings), exclude=settings.exclude)
    sys.meta_path.insert(0, finder)
    logger.info(
        "Import hook installed",
        source_roots=[str(root) for root in finder.roots],
        instrument_all=settings.instrument_all,
    )
    return finder


def uninstall() -> int:
    """Remove every installed RewritingFinder and the sys.path entries install() added.

    Returns:
        Number of finders removed
    """
    finders = [finder for finder in sys.meta_path if isinstance(finder, RewritingFinder)]
    for finder in finders:
        sys.meta_path.remove(finder)
    while _added_paths:
        path = _added_paths.pop()
        if path in sys.path:
            sys.path.remove(path)
    if finders:
        logger.debug("Import hook uninstalled", finders=len(finders))
    return len(finders)
