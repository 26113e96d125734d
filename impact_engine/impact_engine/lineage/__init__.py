"""Lineage service access."""

from __future__ import annotations

from impact_engine.lineage.client import IMPACT_PATH, TASKS_PATH, LineageClient

__all__ = [
    "IMPACT_PATH",
    "TASKS_PATH",
    "LineageClient",
]
