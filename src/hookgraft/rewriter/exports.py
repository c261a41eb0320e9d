# src/hookgraft/rewriter/exports.py
"""Export collection for the rewrite pass.

Builds the immutable table of a module's exports from its parsed tree:

- Named exports are the names listed in a literal `__all__`, or every
  public (non-underscore) top-level binding when there is none.
- The default export is `__default__`. When it is a plain alias of a local
  binding (`__default__ = card`), that binding is the default export and is
  not also exported by name.
- Each export is described by its LAST top-level binding. Imported names are
  re-exports owned by another module and are never collected. A name last
  rebound by a compound statement (if/for/with/try) or an augmented
  assignment cannot be instrumented in place and is skipped.

Nothing here depends on whether extensions exist: the table is a pure
function of the source.
"""

from __future__ import annotations

import ast
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from hookgraft.contracts.enums import ExportForm, ExportKind
from hookgraft.contracts.extension import DEFAULT_EXPORT
from hookgraft.core.logging import get_logger
from hookgraft.core.resolver import resolve_resource_id
from hookgraft.rewriter.classify import classify_expression, classify_statement

logger = get_logger(__name__)

RUNTIME_MODULE = "hookgraft.runtime"

# Entry point per export kind; also the names that mark an export as wrapped
ENTRY_POINT_BY_KIND: dict[ExportKind, str] = {
    ExportKind.COMPONENT: "extend_component",
    ExportKind.PLAIN_FUNCTION: "extend_function",
    ExportKind.VALUE: "extend_value",
}
ENTRY_POINT_NAMES: frozenset[str] = frozenset(ENTRY_POINT_BY_KIND.values())


@dataclass(frozen=True)
class ExportRecord:
    """One exported symbol of a module.

    Attributes:
        binding_name: Local name bound at module level
        is_default: Whether this is the module's default export
        resource_id: Canonical resource id
        kind: Structural classification
        form: How the export is bound, deciding how it is instrumented
        statement: The binding statement (last binding of the name)
        value: The bound expression for assignments (element for unpacking)
        wrapped: Already routed through a composition entry point
    """

    binding_name: str
    is_default: bool
    resource_id: str
    kind: ExportKind
    form: ExportForm
    statement: ast.stmt
    value: ast.expr | None
    wrapped: bool

    @property
    def entry_point(self) -> str:
        """Runtime entry point composing this export."""
        return ENTRY_POINT_BY_KIND[self.kind]


@dataclass(frozen=True)
class _Binding:
    form: ExportForm | None  # None: cannot be instrumented in place
    statement: ast.stmt
    value: ast.expr | None = None
    imported: bool = False


def is_entry_point_call(node: ast.expr) -> bool:
    """Whether node is a call to one of the runtime entry points."""
    if not isinstance(node, ast.Call):
        return False
    func = node.func
    if isinstance(func, ast.Name):
        return func.id in ENTRY_POINT_NAMES
    if isinstance(func, ast.Attribute):
        return func.attr in ENTRY_POINT_NAMES
    return False


def _is_wrapped(binding: _Binding) -> bool:
    statement = binding.statement
    if isinstance(statement, ast.FunctionDef | ast.AsyncFunctionDef | ast.ClassDef):
        return any(is_entry_point_call(decorator) for decorator in statement.decorator_list)
    value = binding.value
    # extend_x(...)(original)
    return isinstance(value, ast.Call) and is_entry_point_call(value.func)


def _target_names(target: ast.expr) -> list[tuple[str, ast.expr | None]]:
    """Names bound by an assignment target, with their element expression.

    Element expressions are not known here; the caller pairs them up.
    """
    if isinstance(target, ast.Name):
        return [(target.id, None)]
    if isinstance(target, ast.Starred):
        return _target_names(target.value)
    if isinstance(target, ast.Tuple | ast.List):
        names: list[tuple[str, ast.expr | None]] = []
        for element in target.elts:
            names.extend(_target_names(element))
        return names
    # Attribute/subscript targets bind no module-level name
    return []


def _unpacked_elements(target: ast.expr, value: ast.expr) -> dict[str, ast.expr]:
    """Pair target names with value elements for literal, starless unpacking."""
    pairs: dict[str, ast.expr] = {}
    if not isinstance(target, ast.Tuple | ast.List) or not isinstance(value, ast.Tuple | ast.List):
        return pairs
    if len(target.elts) != len(value.elts) or any(isinstance(e, ast.Starred) for e in (*target.elts, *value.elts)):
        return pairs
    for sub_target, sub_value in zip(target.elts, value.elts, strict=True):
        if isinstance(sub_target, ast.Name):
            pairs[sub_target.id] = sub_value
        else:
            pairs.update(_unpacked_elements(sub_target, sub_value))
    return pairs


def _stored_names(statement: ast.stmt) -> set[str]:
    """Module-level names bound anywhere inside a compound statement."""
    names: set[str] = set()

    class _Collector(ast.NodeVisitor):
        def visit_Name(self, node: ast.Name) -> None:
            if isinstance(node.ctx, ast.Store):
                names.add(node.id)

        def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
            names.add(node.name)

        def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
            names.add(node.name)

        def visit_ClassDef(self, node: ast.ClassDef) -> None:
            names.add(node.name)

        def visit_Import(self, node: ast.Import) -> None:
            for alias in node.names:
                names.add(alias.asname or alias.name.split(".")[0])

        def visit_ImportFrom(self, node: ast.ImportFrom) -> None:
            for alias in node.names:
                names.add(alias.asname or alias.name)

        # Nested scopes bind nothing at module level
        def visit_Lambda(self, node: ast.Lambda) -> None:
            return

        visit_ListComp = visit_SetComp = visit_DictComp = visit_GeneratorExp = visit_Lambda  # type: ignore[assignment]

    _Collector().visit(statement)
    return names


def collect_bindings(tree: ast.Module) -> dict[str, _Binding]:
    """Last top-level binding of every module-level name."""
    bindings: dict[str, _Binding] = {}

    for statement in tree.body:
        if isinstance(statement, ast.FunctionDef | ast.AsyncFunctionDef):
            bindings[statement.name] = _Binding(ExportForm.FUNCTION_DEF, statement)
        elif isinstance(statement, ast.ClassDef):
            bindings[statement.name] = _Binding(ExportForm.CLASS_DEF, statement)
        elif isinstance(statement, ast.Import | ast.ImportFrom):
            for alias in statement.names:
                if alias.name == "*":
                    continue
                name = alias.asname or alias.name.split(".")[0]
                bindings[name] = _Binding(None, statement, imported=True)
        elif isinstance(statement, ast.Assign):
            if len(statement.targets) == 1 and isinstance(statement.targets[0], ast.Name):
                form = ExportForm.LAMBDA_ASSIGNMENT if isinstance(statement.value, ast.Lambda) else ExportForm.ASSIGNMENT
                bindings[statement.targets[0].id] = _Binding(form, statement, statement.value)
                continue
            # Unpacking and chained targets: rebind each name after the statement
            for target in statement.targets:
                elements = _unpacked_elements(target, statement.value)
                for name, _ in _target_names(target):
                    bindings[name] = _Binding(ExportForm.UNPACKED, statement, elements.get(name))
        elif isinstance(statement, ast.AnnAssign):
            if isinstance(statement.target, ast.Name) and statement.value is not None:
                bindings[statement.target.id] = _Binding(ExportForm.ASSIGNMENT, statement, statement.value)
        elif isinstance(statement, ast.AugAssign):
            for name, _ in _target_names(statement.target):
                bindings[name] = _Binding(None, statement)
        elif isinstance(statement, ast.Expr):
            continue
        else:
            for name in _stored_names(statement):
                bindings[name] = _Binding(None, statement)

    return bindings


def literal_all(tree: ast.Module) -> list[str] | None:
    """Names of a literal `__all__` list/tuple, or None when absent or computed."""
    declared: list[str] | None = None
    for statement in tree.body:
        if isinstance(statement, ast.Assign):
            targets = statement.targets
            value: ast.expr | None = statement.value
        elif isinstance(statement, ast.AnnAssign):
            targets = [statement.target]
            value = statement.value
        elif isinstance(statement, ast.AugAssign) and isinstance(statement.target, ast.Name) and statement.target.id == "__all__":
            return None
        else:
            continue
        if not any(isinstance(t, ast.Name) and t.id == "__all__" for t in targets):
            continue
        if not isinstance(value, ast.List | ast.Tuple):
            return None
        if not all(isinstance(e, ast.Constant) and isinstance(e.value, str) for e in value.elts):
            return None
        declared = [e.value for e in value.elts]  # type: ignore[attr-defined]
    return declared


def collect_exports(
    tree: ast.Module,
    file_path: Path,
    resolve: Callable[[Path, str | None, bool], str] = resolve_resource_id,
) -> list[ExportRecord]:
    """Build the export table of a parsed module.

    Args:
        tree: Parsed module
        file_path: Module path, for resource id resolution
        resolve: Resource id resolver

    Returns:
        Export records in source order of their binding statements

    Raises:
        ManifestNotFoundError: If the module has exports but no manifest above it
    """
    bindings = collect_bindings(tree)
    records: list[ExportRecord] = []

    default_binding_name: str | None = None
    default = bindings.get(DEFAULT_EXPORT)
    if default is not None and default.form is not None:
        if isinstance(default.value, ast.Name) and default.form is ExportForm.ASSIGNMENT:
            target = bindings.get(default.value.id)
            if target is not None and target.form is not None and not target.imported:
                default_binding_name = default.value.id
            else:
                logger.debug("Default export aliases a name without a local binding", path=str(file_path), name=default.value.id)
        else:
            default_binding_name = DEFAULT_EXPORT

    declared = literal_all(tree)
    if declared is None:
        named = [name for name in bindings if not name.startswith("_")]
    else:
        named = list(dict.fromkeys(declared))

    candidates: list[tuple[str, bool]] = []
    if default_binding_name is not None:
        candidates.append((default_binding_name, True))
    candidates.extend((name, False) for name in named if name not in (DEFAULT_EXPORT, default_binding_name))

    for name, is_default in candidates:
        binding = bindings.get(name)
        if binding is None or binding.imported:
            continue
        if binding.form is None:
            logger.debug("Export rebound in place, not instrumented", path=str(file_path), name=name)
            continue

        if binding.form in (ExportForm.FUNCTION_DEF, ExportForm.CLASS_DEF):
            kind = classify_statement(binding.statement)
        else:
            kind = classify_expression(binding.value)

        records.append(
            ExportRecord(
                binding_name=name,
                is_default=is_default,
                resource_id=resolve(file_path, name, is_default),
                kind=kind,
                form=binding.form,
                statement=binding.statement,
                value=binding.value,
                wrapped=_is_wrapped(binding),
            )
        )

    records.sort(key=lambda record: (record.statement.lineno, record.statement.col_offset))
    return records
