# src/hookgraft/engine/__init__.py
"""Composition engine: registry-backed ordered folds for components, functions and values."""

from hookgraft.engine.composer import CompositionEngine, CompositionState, display_name

__all__ = [
    "CompositionEngine",
    "CompositionState",
    "display_name",
]
