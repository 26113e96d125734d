"""Domain models for the impact engine."""

from impact_engine.models.analysis import ImpactAnalysis
from impact_engine.models.changes import (
    ChangedColumns,
    ChangedFile,
    ColumnDelta,
    ColumnSpec,
    FileColumnChange,
    select_model_files,
)
from impact_engine.models.lineage import (
    COLUMN_REFERENCED,
    AssetImpactResponse,
    ColumnImpactRecord,
    ColumnImpactSet,
    FileImpactSet,
    ImpactRecord,
    LineageField,
    LineageTable,
    MatchedTask,
    PipelineTask,
)
from impact_engine.models.options import OPTION_KEYS, OutputOptions
from impact_engine.models.payload import ImpactPayload

__all__ = [
    "COLUMN_REFERENCED",
    "OPTION_KEYS",
    "AssetImpactResponse",
    "ChangedColumns",
    "ChangedFile",
    "ColumnDelta",
    "ColumnImpactRecord",
    "ColumnImpactSet",
    "ColumnSpec",
    "FileColumnChange",
    "FileImpactSet",
    "ImpactAnalysis",
    "ImpactPayload",
    "ImpactRecord",
    "LineageField",
    "LineageTable",
    "MatchedTask",
    "OutputOptions",
    "PipelineTask",
    "select_model_files",
]
