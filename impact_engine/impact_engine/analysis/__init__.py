"""Impact reconciliation: task matching, classification, column matching.

All analysis consumes impact data computed by the lineage service; no
graph traversal happens here.
"""

from __future__ import annotations

from impact_engine.analysis.column_matcher import (
    ColumnImpactMatcher,
    extract_column_impacts,
    is_column_match,
    normalize_column_name,
)
from impact_engine.analysis.dedup import dedupe, reconcile
from impact_engine.analysis.impact_classifier import (
    ImpactClassifier,
    reconcile_file_impacts,
    split_task_impacts,
)
from impact_engine.analysis.task_matcher import (
    filter_connector_tasks,
    match_changed_models,
    match_tasks,
)

__all__ = [
    "ColumnImpactMatcher",
    "ImpactClassifier",
    "dedupe",
    "extract_column_impacts",
    "filter_connector_tasks",
    "is_column_match",
    "match_changed_models",
    "match_tasks",
    "normalize_column_name",
    "reconcile",
    "reconcile_file_impacts",
    "split_task_impacts",
]
