"""Column-level change detection for node definitions."""

from __future__ import annotations

from impact_engine.diff.column_delta import (
    compute_file_delta,
    diff_columns,
    extract_changed_columns,
)

__all__ = [
    "compute_file_delta",
    "diff_columns",
    "extract_changed_columns",
]
