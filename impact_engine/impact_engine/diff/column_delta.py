"""Column-level delta between two revisions of a node definition.

Identity is by column name only: a column is *added* when its name is
absent from the base revision and *removed* when its name is absent from
the head revision.  Type and nullability edits are not distinguished from
"unchanged".
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from impact_engine.git.git_client import RevisionReader
from impact_engine.loader.yml_loader import extract_columns
from impact_engine.models.changes import (
    ChangedColumns,
    ColumnDelta,
    ColumnSpec,
    FileColumnChange,
    select_model_files,
)

logger = logging.getLogger(__name__)

ColumnExtractor = Callable[[str, str], list[ColumnSpec]]


def diff_columns(
    before: Sequence[ColumnSpec],
    after: Sequence[ColumnSpec],
) -> tuple[list[ColumnSpec], list[ColumnSpec]]:
    """Return ``(added, removed)`` column declarations, preserving input order."""
    before_names = {col.name for col in before}
    after_names = {col.name for col in after}
    added = [col for col in after if col.name not in before_names]
    removed = [col for col in before if col.name not in after_names]
    return added, removed


def compute_file_delta(
    file_path: str,
    before_content: str | None,
    after_content: str | None,
    extractor: ColumnExtractor = extract_columns,
) -> tuple[list[ColumnSpec], list[ColumnSpec]] | None:
    """Column delta for one file, or ``None`` when there is nothing to evaluate.

    A file absent at the head revision is skipped.  A file absent at the
    base revision reports every head column as added.
    """
    if not after_content:
        return None
    before_columns = extractor(before_content, file_path) if before_content else []
    after_columns = extractor(after_content, file_path)
    return diff_columns(before_columns, after_columns)


async def extract_changed_columns(
    changed_files: Sequence[str],
    reader: RevisionReader,
    base_revision: str,
    head_revision: str,
    *,
    model_suffix: str = ".yml",
    extractor: ColumnExtractor = extract_columns,
) -> ChangedColumns:
    """Compute added / removed columns for every changed node file.

    Files are read sequentially, base before head.  A failure on one file
    is logged and does not stop the others.
    """
    result = ChangedColumns()
    model_files = select_model_files(changed_files, model_suffix)
    logger.info("Computing column deltas for %d node file(s)", len(model_files))

    for file_path in model_files:
        try:
            before_content = await reader.read(base_revision, file_path) if base_revision else None
            after_content = await reader.read(head_revision, file_path)
            if not after_content:
                logger.warning("No head content found for %s", file_path)
                continue

            delta = compute_file_delta(file_path, before_content, after_content, extractor)
            if delta is None:
                continue
            added, removed = delta
        except Exception:
            logger.exception("Error extracting columns from %s", file_path)
            continue

        logger.info(
            "Column delta for %s: added=[%s] removed=[%s]",
            file_path,
            ", ".join(c.name for c in added),
            ", ".join(c.name for c in removed),
        )
        result.added.extend(ColumnDelta(column=c.name, file=file_path) for c in added)
        result.removed.extend(ColumnDelta(column=c.name, file=file_path) for c in removed)
        result.added_specs.extend(added)
        result.removed_specs.extend(removed)
        if added or removed:
            result.changes.append(
                FileColumnChange(
                    file=file_path,
                    added=[c.name for c in added],
                    removed=[c.name for c in removed],
                )
            )

    logger.info("Column deltas: %d added, %d removed", len(result.added), len(result.removed))
    return result
