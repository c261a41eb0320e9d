# src/hookgraft/rewriter/rewrite.py
"""Module rewriting: route extensible exports through the runtime.

The rewrite is a text splice driven by node positions, not an unparse of
the tree, so comments, formatting and every line that is not instrumented
survive byte for byte:

    # before
    def card(title):
        return f"<div class='card'>{title}</div>"

    # after
    from hookgraft.runtime import extend_component
    from hookgraft_generated.ext_1a2b3c4d import EXTENSIONS as _ext_1a2b3c4d

    @extend_component('shop/widgets/card', _ext_1a2b3c4d)
    def card(title):
        return f"<div class='card'>{title}</div>"

Rewriting is idempotent: exports already routed through an entry point are
left alone and existing imports are reused. A module with nothing to
instrument is returned unchanged.
"""

from __future__ import annotations

import ast
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from hookgraft.contracts.enums import ExportForm
from hookgraft.contracts.errors import AggregatorNotFoundError, RewriteSyntaxError
from hookgraft.core.logging import get_logger
from hookgraft.core.resolver import extension_hash
from hookgraft.extensions.aggregator import EXTENSIONS_ATTR, aggregator_path
from hookgraft.rewriter.eligibility import is_eligible
from hookgraft.rewriter.exports import RUNTIME_MODULE, ExportRecord, collect_exports

logger = get_logger(__name__)

_NEWLINE_RE = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class AggregatorSource:
    """Where rewritten modules import aggregator lists from.

    Attributes:
        package: Import name of the generated package
        directory: Directory holding the generated modules
    """

    package: str
    directory: Path

    def module_for(self, resource_id: str) -> str:
        return f"{self.package}.{extension_hash(resource_id)}"

    def path_for(self, resource_id: str) -> Path:
        return aggregator_path(self.directory, resource_id)


@dataclass(frozen=True)
class _Edit:
    start: int
    end: int
    text: str
    seq: int


class _SourceText:
    """Maps ast (line, UTF-8 column) positions to string offsets."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.line_starts = [0] + [m.end() for m in _NEWLINE_RE.finditer(source)]
        first = _NEWLINE_RE.search(source)
        self.newline = first.group() if first else "\n"

    def line_start(self, lineno: int) -> int:
        return self.line_starts[lineno - 1]

    def line_end(self, lineno: int) -> int:
        """Offset just past the line's content (before its newline)."""
        if lineno < len(self.line_starts):
            end = self.line_starts[lineno]
            line = self.source[self.line_starts[lineno - 1] : end]
            return end - (len(line) - len(line.rstrip("\r\n")))
        return len(self.source)

    def offset(self, lineno: int, col_offset: int) -> int:
        start = self.line_start(lineno)
        line = self.source[start : self.line_end(lineno)]
        return start + len(line.encode("utf-8")[:col_offset].decode("utf-8"))

    def line_after(self, lineno: int) -> tuple[int, bool]:
        """Start of the line following lineno, and whether a newline must be added first."""
        if lineno < len(self.line_starts):
            return self.line_starts[lineno], False
        return len(self.source), True

    def segment(self, node: ast.expr | ast.stmt) -> str:
        assert node.end_lineno is not None and node.end_col_offset is not None
        return self.source[self.offset(node.lineno, node.col_offset) : self.offset(node.end_lineno, node.end_col_offset)]


def _first_line(statement: ast.stmt) -> int:
    decorators = getattr(statement, "decorator_list", [])
    return min([statement.lineno, *(decorator.lineno for decorator in decorators)])


def _is_docstring(statement: ast.stmt) -> bool:
    return isinstance(statement, ast.Expr) and isinstance(statement.value, ast.Constant) and isinstance(statement.value.value, str)


def _import_position(tree: ast.Module, text: _SourceText) -> tuple[int, bool]:
    """Insertion point for new imports: after the docstring and __future__ imports."""
    last_prefix: ast.stmt | None = None
    for index, statement in enumerate(tree.body):
        if index == 0 and _is_docstring(statement):
            last_prefix = statement
        elif isinstance(statement, ast.ImportFrom) and statement.module == "__future__":
            last_prefix = statement
        else:
            break

    if last_prefix is None:
        return text.line_start(_first_line(tree.body[0])), False
    assert last_prefix.end_lineno is not None
    return text.line_after(last_prefix.end_lineno)


def _existing_imports(tree: ast.Module) -> tuple[set[str], set[tuple[str, str]]]:
    """Runtime names and (module, alias) aggregator imports already present."""
    runtime_names: set[str] = set()
    aggregators: set[tuple[str, str]] = set()
    for statement in tree.body:
        if not isinstance(statement, ast.ImportFrom) or statement.module is None or statement.level:
            continue
        for alias in statement.names:
            if statement.module == RUNTIME_MODULE and alias.asname in (None, alias.name):
                runtime_names.add(alias.name)
            elif alias.name == EXTENSIONS_ATTR and alias.asname:
                aggregators.add((statement.module, alias.asname))
    return runtime_names, aggregators


def _can_use_block_form(record: ExportRecord, text: _SourceText) -> bool:
    """A lambda assignment may become a def only when it owns its lines."""
    statement = record.statement
    if statement.col_offset != 0 or statement.end_lineno is None or statement.end_col_offset is None:
        return False
    rest = text.source[text.offset(statement.end_lineno, statement.end_col_offset) : text.line_end(statement.end_lineno)]
    rest = rest.strip()
    return not rest or rest.startswith("#")


def _value_call(call: str, value: ast.expr, text: _SourceText) -> str:
    original = text.segment(value)
    # A bare tuple would become several arguments
    if isinstance(value, ast.Tuple):
        original = f"({original})"
    return f"{call}({original})"


def _instrument(record: ExportRecord, call: str, text: _SourceText, seq: int) -> _Edit:
    """Edit routing one export through call (an `extend_<kind>(...)` expression)."""
    statement = record.statement
    nl = text.newline

    if record.form in (ExportForm.FUNCTION_DEF, ExportForm.CLASS_DEF):
        start = text.line_start(_first_line(statement))
        return _Edit(start, start, f"@{call}{nl}", seq)

    if record.form is ExportForm.LAMBDA_ASSIGNMENT and _can_use_block_form(record, text):
        assert isinstance(record.value, ast.Lambda)
        assert statement.end_lineno is not None and statement.end_col_offset is not None
        body = text.segment(record.value.body)
        if _NEWLINE_RE.search(body):
            body = f"({body})"
        block = f"@{call}{nl}def {record.binding_name}({ast.unparse(record.value.args)}):{nl}    return {body}"
        return _Edit(
            text.offset(statement.lineno, statement.col_offset),
            text.offset(statement.end_lineno, statement.end_col_offset),
            block,
            seq,
        )

    if record.form is ExportForm.UNPACKED:
        assert statement.end_lineno is not None
        position, needs_newline = text.line_after(statement.end_lineno)
        line = f"{record.binding_name} = {call}({record.binding_name}){nl}"
        return _Edit(position, position, nl + line if needs_newline else line, seq)

    assert record.value is not None
    value = record.value
    assert value.end_lineno is not None and value.end_col_offset is not None
    return _Edit(
        text.offset(value.lineno, value.col_offset),
        text.offset(value.end_lineno, value.end_col_offset),
        _value_call(call, value, text),
        seq,
    )


def _apply(source: str, edits: Iterable[_Edit]) -> str:
    result = source
    for edit in sorted(edits, key=lambda e: (e.start, e.seq), reverse=True):
        result = result[: edit.start] + edit.text + result[edit.end :]
    return result


def rewrite(
    source: str,
    file_path: Path,
    has_extensions: Callable[[str], bool],
    *,
    aggregator: AggregatorSource | None = None,
    instrument_all: bool = False,
    add_dependency: Callable[[Path], None] | None = None,
    exclude: Iterable[str] = (),
) -> str:
    """Rewrite a module so its extensible exports are composed at runtime.

    Args:
        source: Module source
        file_path: Module path (resource ids and eligibility)
        has_extensions: Whether any extension targets a resource id
        aggregator: Generated aggregator package; when None, instrumented
            exports look extensions up in the runtime registry only
        instrument_all: Instrument every export, extended or not, with its
            resource id only
        add_dependency: Called with the aggregator path of every export
        exclude: Path fragments that are never rewritten

    Returns:
        The rewritten source, or source itself when nothing changes

    Raises:
        RewriteSyntaxError: If the module does not parse
        ManifestNotFoundError: If the module has exports but no pyproject.toml above it
        AggregatorNotFoundError: If an extended export's aggregator module is missing
    """
    if not is_eligible(file_path, source, exclude=exclude):
        return source

    try:
        tree = ast.parse(source, filename=str(file_path))
    except SyntaxError as exc:
        raise RewriteSyntaxError(file_path, exc.lineno, exc.msg) from exc

    records = collect_exports(tree, file_path)
    if not records:
        return source

    text = _SourceText(source)
    edits: list[_Edit] = []
    runtime_names: set[str] = set()
    aggregator_imports: dict[str, str] = {}

    for seq, record in enumerate(records):
        resource_id = record.resource_id
        if aggregator is not None and add_dependency is not None:
            add_dependency(aggregator.path_for(resource_id))

        if record.wrapped:
            continue
        extended = has_extensions(resource_id)
        if not (extended or instrument_all):
            continue

        args = repr(resource_id)
        if extended and aggregator is not None and not instrument_all:
            path = aggregator.path_for(resource_id)
            if not path.exists():
                raise AggregatorNotFoundError(resource_id, path)
            alias = f"_{extension_hash(resource_id)}"
            aggregator_imports[aggregator.module_for(resource_id)] = alias
            args = f"{args}, {alias}"

        call = f"{record.entry_point}({args})"
        runtime_names.add(record.entry_point)
        edits.append(_instrument(record, call, text, seq))

        if extended:
            logger.info("Applying extensions", resource_id=resource_id, kind=record.kind.value, path=str(file_path))
        else:
            logger.debug("Export instrumented", resource_id=resource_id, kind=record.kind.value, path=str(file_path))

    if not edits:
        return source

    present_names, present_aggregators = _existing_imports(tree)
    import_lines: list[str] = []
    missing = sorted(runtime_names - present_names)
    if missing:
        import_lines.append(f"from {RUNTIME_MODULE} import {', '.join(missing)}")
    for module, alias in sorted(aggregator_imports.items()):
        if (module, alias) not in present_aggregators:
            import_lines.append(f"from {module} import {EXTENSIONS_ATTR} as {alias}")

    if import_lines:
        position, needs_newline = _import_position(tree, text)
        block = "".join(line + text.newline for line in import_lines)
        edits.append(_Edit(position, position, text.newline + block if needs_newline else block, -1))

    return _apply(source, edits)
