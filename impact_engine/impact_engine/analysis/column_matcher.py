"""Column-level impact matching for matched tasks.

Field names reported by the lineage service are matched against the
columns changed in a node file.  The rule is deliberately permissive to
tolerate naming drift between the pipeline tool and the warehouse:

* both names are lower-cased and stripped of quote characters (`` ` " ' ``)
* the names match when they are equal, or when either contains the other

Substring matching admits false positives (``id`` matches ``valid``).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from impact_engine.analysis.dedup import reconcile
from impact_engine.lineage.client import LineageClient
from impact_engine.models.lineage import (
    ColumnImpactRecord,
    ColumnImpactSet,
    LineageTable,
    MatchedTask,
)

logger = logging.getLogger(__name__)

_QUOTES_RE = re.compile(r"[`\"']")


def normalize_column_name(name: str | None) -> str:
    """Lower-case *name* and strip quote characters."""
    return _QUOTES_RE.sub("", (name or "").lower())


def is_column_match(field_name: str | None, changed_column: str | None) -> bool:
    """Whether a lineage field is relevant to a changed column.

    Empty names never match.
    """
    field = normalize_column_name(field_name)
    changed = normalize_column_name(changed_column)
    if not field or not changed:
        return False
    return field == changed or changed in field or field in changed


def matches_any(field_name: str | None, changed_columns: Sequence[str]) -> bool:
    return any(is_column_match(field_name, col) for col in changed_columns)


def extract_column_impacts(
    tables: Sequence[LineageTable],
    changed_columns: Sequence[str],
) -> list[ColumnImpactRecord]:
    """Column impact records for every field relevant to *changed_columns*."""
    impacts: list[ColumnImpactRecord] = []
    for table in tables:
        for field in table.table_fields:
            if matches_any(field.name, changed_columns):
                logger.debug("Found impacted column: %s.%s", table.name, field.name)
                impacts.append(ColumnImpactRecord.from_table_field(table, field))
    return impacts


def _column_key(record: ColumnImpactRecord) -> tuple[object, object, object]:
    return record.identity_key


def drop_self_references(task_name: str, records: Sequence[ColumnImpactRecord]) -> list[ColumnImpactRecord]:
    return [r for r in records if r.table_name != task_name]


def reconcile_column_impacts(column_impacts: dict[str, ColumnImpactSet]) -> dict[str, ColumnImpactSet]:
    """Apply direct precedence and de-duplication to every file, in place."""
    for impacts in column_impacts.values():
        impacts.direct, impacts.indirect = reconcile(impacts.direct, impacts.indirect, _column_key)
    return column_impacts


class ColumnImpactMatcher:
    """Fetch column lineage and keep the fields relevant to changed columns.

    Parameters
    ----------
    client:
        Lineage service client.  For each task the direct query is issued
        before the indirect one; the caller reconciles each file with
        :func:`reconcile_column_impacts` once every task has been accumulated.
    """

    def __init__(self, client: LineageClient) -> None:
        self._client = client

    async def accumulate(
        self,
        task: MatchedTask,
        task_columns: list[str],
        impacts: ColumnImpactSet,
    ) -> None:
        """Fetch one task's column impacts and append them unreconciled."""
        impacts.changed_columns = task_columns

        for direct in (True, False):
            tables = await self._client.get_column_lineage(
                asset_id=task.asset_id,
                connection_id=task.connection_id,
                entity=task.asset_id,
                direct=direct,
                entity_name=task.name,
            )
            records = drop_self_references(task.name, extract_column_impacts(tables, task_columns))
            if direct:
                impacts.direct.extend(records)
            else:
                impacts.indirect.extend(records)
            logger.info(
                "Found %d %s column impact(s) for %s",
                len(records),
                "direct" if direct else "indirect",
                task.name,
            )
