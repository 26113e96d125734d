"""Node definition loading."""

from __future__ import annotations

from impact_engine.loader.yml_loader import (
    extract_columns,
    extract_model_name,
    model_name_from_path,
)

__all__ = [
    "extract_columns",
    "extract_model_name",
    "model_name_from_path",
]
