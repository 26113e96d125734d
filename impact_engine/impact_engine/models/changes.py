"""Models describing what changed in a pull request.

A run starts from a list of changed file paths.  Files carrying the node
definition suffix are parsed at the base and head revisions, and the
difference in their column names becomes a :class:`ChangedColumns` value.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field


class ChangedFile(BaseModel):
    """A single file path touched by the change under review."""

    model_config = ConfigDict(frozen=True)

    path: str
    model_suffix: str = Field(default=".yml", description="Suffix identifying node definition files.")

    @property
    def is_model(self) -> bool:
        """``True`` when the file is a pipeline node definition."""
        return bool(self.path) and self.path.endswith(self.model_suffix)


def select_model_files(paths: Iterable[str], model_suffix: str = ".yml") -> list[str]:
    """Return the paths in *paths* that classify as node definition files, in order."""
    return [f.path for f in (ChangedFile(path=p or "", model_suffix=model_suffix) for p in paths) if f.is_model]


class ColumnSpec(BaseModel):
    """A column declared in a node definition file."""

    name: str
    data_type: str = ""
    nullable: bool = False
    primary_key: bool = False


class ColumnDelta(BaseModel):
    """A column added to or removed from one file."""

    model_config = ConfigDict(frozen=True)

    column: str
    file: str


class FileColumnChange(BaseModel):
    """Per-file summary of added and removed columns."""

    file: str
    added: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)


class ChangedColumns(BaseModel):
    """Added / removed column deltas across every changed node file.

    ``modified`` is reserved: identity is by name only, so type or
    nullability changes are not reported.
    """

    added: list[ColumnDelta] = Field(default_factory=list)
    removed: list[ColumnDelta] = Field(default_factory=list)
    modified: list[ColumnDelta] = Field(default_factory=list)
    added_specs: list[ColumnSpec] = Field(
        default_factory=list,
        description="Full column declarations for every added column, in discovery order.",
    )
    removed_specs: list[ColumnSpec] = Field(
        default_factory=list,
        description="Full column declarations for every removed column, in discovery order.",
    )
    changes: list[FileColumnChange] = Field(
        default_factory=list,
        description="Files with at least one added or removed column.",
    )

    def for_file(self, file_path: str) -> list[str]:
        """Column names changed in *file_path*, added first then removed."""
        added = [d.column for d in self.added if d.file == file_path]
        removed = [d.column for d in self.removed if d.file == file_path]
        return added + removed

    @property
    def added_names(self) -> list[str]:
        return [spec.name for spec in self.added_specs]

    @property
    def removed_names(self) -> list[str]:
        return [spec.name for spec in self.removed_specs]
