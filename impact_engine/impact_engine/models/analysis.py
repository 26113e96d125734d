"""The reconciled result of one impact run, before rendering."""

from __future__ import annotations

from pydantic import BaseModel, Field

from impact_engine.models.changes import ChangedColumns
from impact_engine.models.lineage import ColumnImpactSet, FileImpactSet


class ImpactAnalysis(BaseModel):
    """Everything the report renderers need, keyed by changed file path.

    Dict insertion order is the matched-task order and is the render order.
    """

    changed_files: list[str] = Field(default_factory=list)
    file_impacts: dict[str, FileImpactSet] = Field(default_factory=dict)
    column_impacts: dict[str, ColumnImpactSet] = Field(default_factory=dict)
    column_changes: ChangedColumns = Field(default_factory=ChangedColumns)

    @property
    def total_direct_assets(self) -> int:
        return sum(len(i.direct) for i in self.file_impacts.values())

    @property
    def total_indirect_assets(self) -> int:
        return sum(len(i.indirect) for i in self.file_impacts.values())

    @property
    def total_direct_columns(self) -> int:
        return sum(len(i.direct) for i in self.column_impacts.values())

    @property
    def total_indirect_columns(self) -> int:
        return sum(len(i.indirect) for i in self.column_impacts.values())
