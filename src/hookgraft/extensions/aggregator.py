# src/hookgraft/extensions/aggregator.py
"""Aggregator module generation.

For every resource id with at least one discovered extension, one module
is written to the generated package:

    <generated_dir>/
        __init__.py
        index.json          resource id -> {hash, extensions}
        ext_1a2b3c4d.py     EXTENSIONS = [...] for one resource id

Aggregator modules are keyed by extension_hash(resource_id) so rewritten
modules can import them under a deterministic, identifier-safe name. The
order of EXTENSIONS carries no meaning; the composition engine sorts.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import jinja2

from hookgraft.core.logging import get_logger
from hookgraft.core.resolver import extension_hash
from hookgraft.extensions.discovery import ExtensionGroup

logger = get_logger(__name__)

INDEX_FILENAME = "index.json"
AGGREGATOR_PREFIX = "ext_"

# Name every aggregator module exports its extension list under
EXTENSIONS_ATTR = "EXTENSIONS"

_AGGREGATOR_TEMPLATE = '''\
"""Extensions targeting {{ resource_id }}.

Generated by hookgraft. Do not edit.
"""

{% for ext in extensions -%}
from {{ ext.module_name }} import __default__ as _extension_{{ loop.index0 }}
{% endfor %}
RESOURCE_ID = {{ resource_id | pyrepr }}

{{ extensions_attr }} = [
{%- for ext in extensions %}
    _extension_{{ loop.index0 }},  # {{ ext.extension_id }}
{%- endfor %}
]
'''

_PACKAGE_INIT = '''\
"""Generated hookgraft aggregator modules. Do not edit."""
'''


def _create_jinja_env() -> jinja2.Environment:
    """Create the Jinja2 environment aggregator modules are rendered with."""
    env = jinja2.Environment(
        autoescape=False,  # Generating Python source, not HTML
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )
    env.filters["pyrepr"] = repr
    return env


_TEMPLATE = _create_jinja_env().from_string(_AGGREGATOR_TEMPLATE)


def render_aggregator(group: ExtensionGroup) -> str:
    """Render the source of one aggregator module."""
    return _TEMPLATE.render(
        resource_id=group.resource_id,
        extensions=group.extensions,
        extensions_attr=EXTENSIONS_ATTR,
    )


def aggregator_path(output_dir: Path, resource_id: str) -> Path:
    """Path of the aggregator module for a resource id."""
    return output_dir / f"{extension_hash(resource_id)}.py"


def write_aggregators(groups: Mapping[str, ExtensionGroup], output_dir: Path) -> list[Path]:
    """Write aggregator modules and the index, removing stale ones.

    Files are only rewritten when their content changes, so file watchers
    and bytecode caches see untouched aggregators as unchanged.

    Args:
        groups: Discovery output
        output_dir: Generated package directory (created if missing)

    Returns:
        Paths of all current aggregator modules
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    _write_if_changed(output_dir / "__init__.py", _PACKAGE_INIT)

    written: list[Path] = []
    for group in groups.values():
        path = output_dir / f"{group.hash}.py"
        if _write_if_changed(path, render_aggregator(group)):
            logger.info(
                "Aggregator written",
                resource_id=group.resource_id,
                path=str(path),
                extensions=len(group.extensions),
            )
        written.append(path)

    current = set(written)
    for stale in sorted(output_dir.glob(f"{AGGREGATOR_PREFIX}*.py")):
        if stale not in current:
            stale.unlink()
            logger.info("Stale aggregator removed", path=str(stale))

    index = {
        group.resource_id: {
            "hash": group.hash,
            "extensions": [ext.extension_id for ext in group.extensions],
        }
        for group in groups.values()
    }
    _write_if_changed(output_dir / INDEX_FILENAME, json.dumps(index, indent=2, sort_keys=True) + "\n")
    return written


def clean_aggregators(output_dir: Path) -> int:
    """Remove every generated aggregator file.

    Returns:
        Number of files removed
    """
    if not output_dir.exists():
        return 0

    removed = 0
    for path in sorted(output_dir.glob(f"{AGGREGATOR_PREFIX}*.py")):
        path.unlink()
        removed += 1
    for name in (INDEX_FILENAME, "__init__.py"):
        path = output_dir / name
        if path.exists():
            path.unlink()
            removed += 1
    logger.info("Aggregators cleaned", path=str(output_dir), removed=removed)
    return removed


@dataclass(frozen=True)
class IndexedExtensions:
    """Aggregator index, answering the rewriter's has-extensions question."""

    output_dir: Path
    entries: Mapping[str, Mapping[str, object]]

    def has_extensions(self, resource_id: str) -> bool:
        """Whether any extension targets resource_id."""
        return resource_id in self.entries

    def path_for(self, resource_id: str) -> Path:
        """Aggregator module path for resource_id."""
        return aggregator_path(self.output_dir, resource_id)


def load_index(output_dir: Path) -> IndexedExtensions:
    """Read the aggregator index.

    A missing index means setup has not run: no resource id has extensions.
    """
    index_path = output_dir / INDEX_FILENAME
    if not index_path.exists():
        return IndexedExtensions(output_dir=output_dir, entries={})
    entries = json.loads(index_path.read_text(encoding="utf-8"))
    return IndexedExtensions(output_dir=output_dir, entries=entries)


def _write_if_changed(path: Path, content: str) -> bool:
    if path.exists() and path.read_text(encoding="utf-8") == content:
        return False
    path.write_text(content, encoding="utf-8")
    return True
