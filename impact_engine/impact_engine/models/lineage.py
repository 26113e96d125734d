"""Records exchanged with the lineage / task-listing service.

The service returns loosely-typed JSON.  Every record here allows extra
keys, and every field the engine reads has an explicit default so that a
missing key never raises.  Identifier fields stay ``Any`` because the
service mixes integer and string identifiers across asset types.  Carried
text, depth and flag fields are coerced before validation: a value of an
unexpected type becomes ``None`` instead of rejecting the whole record.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

COLUMN_REFERENCED = "Column Referenced"

_TRUE_STRINGS = frozenset({"true", "yes", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "0"})


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def coerce_text(value: Any) -> str | None:
    """Return *value* as text, or ``None`` when it is not a string or number."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return str(value)
    return None


def coerce_depth(value: Any) -> int | None:
    """Return *value* as a whole number, or ``None`` when it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def coerce_flag(value: Any) -> bool | None:
    """Return *value* as a boolean, or ``None`` when it is not recognisable."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class PipelineTask(BaseModel):
    """A task record from the pipeline task listing."""

    model_config = ConfigDict(extra="allow")

    name: str = ""
    asset_id: Any = None
    connection_id: Any = None
    task_id: Any = None
    connection_type: str = ""

    def connector_matches(self, connector_type: str) -> bool:
        """Case-insensitive equality or substring match on ``connection_type``."""
        conn = (self.connection_type or "").lower()
        expected = connector_type.lower()
        return conn == expected or expected in conn


class MatchedTask(PipelineTask):
    """A pipeline task paired with the changed node file that defines it."""

    entity: Any = Field(default="", description="The task's task_id.")
    file_path: str = Field(..., min_length=1, description="Originating changed file.")


# ---------------------------------------------------------------------------
# Impact records
# ---------------------------------------------------------------------------


class ImpactRecord(BaseModel):
    """An asset-level downstream impact."""

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    connection_id: Any = None
    asset_name: str | None = None
    asset_group: str | None = None
    redirect_id: Any = None
    is_transform: bool | None = None
    depth: int | None = None

    @field_validator("name", "asset_name", "asset_group", mode="before")
    @classmethod
    def loose_text(cls, v: Any) -> str | None:
        return coerce_text(v)

    @field_validator("is_transform", mode="before")
    @classmethod
    def loose_flag(cls, v: Any) -> bool | None:
        return coerce_flag(v)

    @field_validator("depth", mode="before")
    @classmethod
    def loose_depth(cls, v: Any) -> int | None:
        return coerce_depth(v)

    @property
    def identity_key(self) -> tuple[Any, Any, Any]:
        return (self.name, self.connection_id, self.asset_name)

    @property
    def display_name(self) -> str:
        return self.name or "Unknown"


class LineageField(BaseModel):
    """A field (column) of a table in a column-level lineage response."""

    model_config = ConfigDict(extra="allow")

    id: Any = None
    name: str | None = None
    data_type: str | None = None

    @field_validator("name", "data_type", mode="before")
    @classmethod
    def loose_text(cls, v: Any) -> str | None:
        return coerce_text(v)


class LineageTable(BaseModel):
    """A table in a column-level lineage response.

    ``table_fields`` is filled field by field by the lineage client, so one
    malformed field never costs the table its other fields.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: Any = None
    name: str | None = None
    redirect_id: Any = None
    entity: Any = None
    connection_id: Any = None
    asset_name: str | None = None
    asset_group: str | None = None
    flow: Any = None
    depth: int | None = None
    table_fields: list[LineageField] = Field(default_factory=list, alias="fields")

    @field_validator("name", "asset_name", "asset_group", mode="before")
    @classmethod
    def loose_text(cls, v: Any) -> str | None:
        return coerce_text(v)

    @field_validator("depth", mode="before")
    @classmethod
    def loose_depth(cls, v: Any) -> int | None:
        return coerce_depth(v)


class ColumnImpactRecord(BaseModel):
    """A column-level downstream impact."""

    model_config = ConfigDict(extra="allow")

    table_name: str | None = None
    column_name: str | None = None
    column_id: Any = None
    data_type: str | None = None
    table_id: Any = None
    redirect_id: Any = None
    entity: Any = None
    connection_id: Any = None
    asset_name: str | None = None
    flow: Any = None
    depth: int | None = None
    impact_type: str = COLUMN_REFERENCED
    asset_group: str | None = None
    is_transform: bool | None = None

    @property
    def identity_key(self) -> tuple[Any, Any, Any]:
        return (self.table_name, self.column_name, self.connection_id)

    @property
    def display_name(self) -> str:
        return f"{self.table_name or 'Unknown'}.{self.column_name or 'Unknown'}"

    @classmethod
    def from_table_field(cls, table: LineageTable, field: LineageField) -> ColumnImpactRecord:
        return cls(
            table_name=table.name,
            column_name=field.name,
            column_id=field.id,
            data_type=field.data_type,
            table_id=table.id,
            redirect_id=table.redirect_id,
            entity=table.entity,
            connection_id=table.connection_id,
            asset_name=table.asset_name,
            flow=table.flow,
            depth=table.depth,
            impact_type=COLUMN_REFERENCED,
            asset_group=table.asset_group,
        )


class AssetImpactResponse(BaseModel):
    """Both impact buckets returned by one asset-level impact query."""

    direct: list[ImpactRecord] = Field(default_factory=list)
    indirect: list[ImpactRecord] = Field(default_factory=list)


class FileImpactSet(BaseModel):
    """Asset-level impacts accumulated for one changed file."""

    task_name: str
    direct: list[ImpactRecord] = Field(default_factory=list)
    indirect: list[ImpactRecord] = Field(default_factory=list)


class ColumnImpactSet(BaseModel):
    """Column-level impacts accumulated for one changed file."""

    task_name: str
    direct: list[ColumnImpactRecord] = Field(default_factory=list)
    indirect: list[ColumnImpactRecord] = Field(default_factory=list)
    changed_columns: list[str] = Field(default_factory=list)
