# tests/property/__init__.py
"""Property-based tests for hookgraft.

Property-based testing validates invariants that must hold for ALL inputs,
not just the specific examples we think of.

Test categories:
- ordering: sort_order decides composition order for every registration order
- resolver: resource ids and aggregator hashes are stable and identifier-safe
- rewriter: rewriting is idempotent and preserves untouched source
"""
