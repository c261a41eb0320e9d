# src/hookgraft/rewriter/classify.py
"""Structural export-kind classification.

A callable export is a component when its body contains markup: a string
literal or f-string whose literal text holds an element tag (`<div ...>`,
`</div>`, `<br/>`) or a fragment tag (`<>`, `</>`), or a `Markup(...)` call.
A bare opening tag only counts when it names an HTML element, so usage text
like `<file>` stays plain. Other callables are plain functions. Everything
else, classes included, is a value.

Classification runs once per export during the rewrite pass; nothing is
inspected at runtime.
"""

from __future__ import annotations

import ast
import re

from hookgraft.contracts.enums import ExportKind

# Closing tags (</div>), self-closing tags (<br/>) and fragments (<>, </>) are markup whatever the name
STRUCTURAL_TAG_RE = re.compile(r"</[A-Za-z][\w.:-]*\s*>|<[A-Za-z][\w.:-]*(?:\s[^<>]*)?/>|</?>")

# A lone opening tag (<div class="x">) only counts when it names a known element
OPENING_TAG_RE = re.compile(r"<([A-Za-z][\w-]*)(?:\s[^<>]*)?>")

# Placeholders in usage text ("<file>") and generics ("List<int>") are not markup
HTML_ELEMENTS: frozenset[str] = frozenset(
    {
        "a", "abbr", "address", "article", "aside", "audio", "b", "blockquote", "body", "br",
        "button", "canvas", "caption", "code", "dd", "details", "dialog", "div", "dl", "dt",
        "em", "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4",
        "h5", "h6", "head", "header", "hr", "html", "i", "iframe", "img", "input", "label",
        "legend", "li", "link", "main", "mark", "meta", "nav", "ol", "optgroup", "option",
        "p", "picture", "pre", "section", "select", "small", "source", "span", "strong",
        "sub", "summary", "sup", "svg", "table", "tbody", "td", "template", "textarea",
        "tfoot", "th", "thead", "time", "tr", "u", "ul", "video",
    }
)

# Callables that produce markup-safe strings (markupsafe.Markup and aliases)
MARKUP_CALLABLES: frozenset[str] = frozenset({"Markup"})

_CallableNode = ast.FunctionDef | ast.AsyncFunctionDef | ast.Lambda


def is_markup_text(text: str) -> bool:
    """Whether a string literal holds markup elements or fragments."""
    if STRUCTURAL_TAG_RE.search(text):
        return True
    return any(match.group(1).lower() in HTML_ELEMENTS for match in OPENING_TAG_RE.finditer(text))


def _docstring_nodes(tree: ast.AST) -> set[int]:
    """ids of docstring constants inside tree; docs never make a component."""
    found: set[int] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef | ast.ClassDef | ast.Module):
            body = node.body
            if body and isinstance(body[0], ast.Expr) and isinstance(body[0].value, ast.Constant) and isinstance(body[0].value.value, str):
                found.add(id(body[0].value))
    return found


class _MarkupScanner(ast.NodeVisitor):
    """Looks for markup element/fragment nodes anywhere under a callable."""

    def __init__(self, skip: set[int]) -> None:
        self.skip = skip
        self.found = False

    def visit_Constant(self, node: ast.Constant) -> None:
        if id(node) in self.skip or not isinstance(node.value, str):
            return
        if is_markup_text(node.value):
            self.found = True

    def visit_Call(self, node: ast.Call) -> None:
        func = node.func
        name = func.id if isinstance(func, ast.Name) else func.attr if isinstance(func, ast.Attribute) else None
        if name in MARKUP_CALLABLES:
            self.found = True
            return
        self.generic_visit(node)

    def generic_visit(self, node: ast.AST) -> None:
        if self.found:
            return
        super().generic_visit(node)


def contains_markup(node: ast.AST) -> bool:
    """Whether node (including directly returned expressions) contains markup."""
    scanner = _MarkupScanner(_docstring_nodes(node))
    scanner.visit(node)
    return scanner.found


def classify_callable(node: _CallableNode) -> ExportKind:
    """Component if the callable's body contains markup, else plain function."""
    if isinstance(node, ast.Lambda):
        body: ast.AST = node.body
    else:
        body = ast.Module(body=node.body, type_ignores=[])
    return ExportKind.COMPONENT if contains_markup(body) else ExportKind.PLAIN_FUNCTION


def classify_expression(node: ast.expr | None) -> ExportKind:
    """Kind of an exported expression: lambdas are callables, the rest values."""
    if isinstance(node, ast.Lambda):
        return classify_callable(node)
    return ExportKind.VALUE


def classify_statement(node: ast.stmt) -> ExportKind:
    """Kind of an export bound by a def/class statement."""
    if isinstance(node, ast.FunctionDef | ast.AsyncFunctionDef):
        return classify_callable(node)
    return ExportKind.VALUE
