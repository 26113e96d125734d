"""Machine-readable mirror of an impact report.

The payload always carries the full reconciled data set.  Display options
only affect the Markdown rendering, never this document.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

ANALYSIS_TYPE = "coalesce_yml_impact_analysis"


class PayloadMetadata(BaseModel):
    timestamp: str
    commit_sha: str = ""
    pull_request_number: int | None = None
    configurable_keys_used: list[str] = Field(default_factory=list)
    base_url: str = ""
    analysis_type: str = ANALYSIS_TYPE


class AssetImpactEntry(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    file_path: str
    model_name: str | None = None
    task_name: str
    redirect_url: str


class ColumnImpactEntry(BaseModel):
    file_path: str
    table_name: str | None = None
    column_name: str | None = None
    data_type: str | None = None
    task_name: str
    redirect_url: str


class AssetImpactLists(BaseModel):
    direct: list[AssetImpactEntry] = Field(default_factory=list)
    indirect: list[AssetImpactEntry] = Field(default_factory=list)


class ColumnImpactLists(BaseModel):
    direct: list[ColumnImpactEntry] = Field(default_factory=list)
    indirect: list[ColumnImpactEntry] = Field(default_factory=list)


class YmlColumnChanges(BaseModel):
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)


class PayloadSummary(BaseModel):
    total_direct_assets: int = 0
    total_indirect_assets: int = 0
    total_direct_columns: int = 0
    total_indirect_columns: int = 0
    total_yml_added: int = 0
    total_yml_removed: int = 0
    total_changed_files: int = 0


class ImpactPayload(BaseModel):
    """The complete, unfiltered impact analysis record."""

    metadata: PayloadMetadata
    changed_files: list[str] = Field(default_factory=list)
    asset_impacts: AssetImpactLists = Field(default_factory=AssetImpactLists)
    column_impacts: ColumnImpactLists = Field(default_factory=ColumnImpactLists)
    yml_column_changes: YmlColumnChanges = Field(default_factory=YmlColumnChanges)
    summary: PayloadSummary = Field(default_factory=PayloadSummary)
