# src/hookgraft/rewriter/__init__.py
"""Source rewriter: classify exports and route them through the runtime."""

from hookgraft.rewriter.classify import classify_callable, classify_expression, contains_markup
from hookgraft.rewriter.eligibility import has_opt_out, is_eligible
from hookgraft.rewriter.exports import ExportRecord, collect_exports
from hookgraft.rewriter.import_hook import RewritingFinder, RewritingLoader, install, uninstall
from hookgraft.rewriter.rewrite import AggregatorSource, rewrite

__all__ = [
    "AggregatorSource",
    "ExportRecord",
    "RewritingFinder",
    "RewritingLoader",
    "classify_callable",
    "classify_expression",
    "collect_exports",
    "contains_markup",
    "has_opt_out",
    "install",
    "is_eligible",
    "rewrite",
    "uninstall",
]
