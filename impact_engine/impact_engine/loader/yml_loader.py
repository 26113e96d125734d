"""Node definition loader -- read columns and model names from node YAML.

Pipeline node files describe one model each.  Two layouts are understood:

* the node format, where columns live under ``operation.metadata.columns``
  as mappings with ``name``, ``dataType``, ``nullable`` and ``primaryKey``
* a flat fallback with a root ``columns`` list of names or mappings

Malformed content never raises: columns degrade to ``[]`` and the model
name degrades to the file stem.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Any

import yaml  # type: ignore[import-untyped]

from impact_engine.models.changes import ColumnSpec

logger = logging.getLogger(__name__)


def _safe_load(content: str, file_path: str) -> Any:
    try:
        return yaml.safe_load(content)
    except yaml.YAMLError as exc:
        logger.warning("YAML parsing error for %s: %s", file_path, exc)
        return None


def _node_columns(schema: dict[str, Any]) -> list[Any] | None:
    operation = schema.get("operation")
    if not isinstance(operation, dict):
        return None
    metadata = operation.get("metadata")
    if not isinstance(metadata, dict):
        return None
    columns = metadata.get("columns")
    return columns if isinstance(columns, list) else None


def _column_from_node(col: Any) -> ColumnSpec | None:
    if not isinstance(col, dict):
        return None
    name = col.get("name")
    if not name:
        return None
    return ColumnSpec(
        name=str(name),
        data_type=str(col.get("dataType") or ""),
        nullable=bool(col.get("nullable", False)),
        primary_key=bool(col.get("primaryKey", False)),
    )


def _column_from_flat(col: Any) -> ColumnSpec | None:
    if isinstance(col, str):
        return ColumnSpec(name=col) if col else None
    if isinstance(col, dict):
        name = col.get("name")
        return ColumnSpec(name=str(name)) if name else None
    return None


def extract_columns(content: str | None, file_path: str) -> list[ColumnSpec]:
    """Return the columns declared in a node YAML document.

    Columns without a name are dropped.  Returns ``[]`` for empty or
    unparsable content, or when no column list is present.
    """
    if not content:
        return []
    schema = _safe_load(content, file_path)
    if not isinstance(schema, dict):
        return []

    node_columns = _node_columns(schema)
    if node_columns is not None:
        parsed = [_column_from_node(col) for col in node_columns]
        return [col for col in parsed if col is not None]

    flat_columns = schema.get("columns")
    if isinstance(flat_columns, list):
        parsed = [_column_from_flat(col) for col in flat_columns]
        return [col for col in parsed if col is not None]

    return []


def model_name_from_path(file_path: str) -> str:
    """The file name without its extension."""
    return PurePosixPath(file_path).stem


def extract_model_name(content: str | None, file_path: str) -> str:
    """Return the model name declared at the root of a node YAML document.

    Falls back to the file stem when the document is empty, unparsable,
    or has no root ``name``.
    """
    if not content:
        return model_name_from_path(file_path)
    schema = _safe_load(content, file_path)
    if isinstance(schema, dict) and schema.get("name"):
        return str(schema["name"])
    return model_name_from_path(file_path)
