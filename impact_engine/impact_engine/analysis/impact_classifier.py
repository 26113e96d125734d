"""Asset-level impact classification for matched tasks.

For each matched task the lineage service returns two buckets of
downstream assets: direct (one hop) and indirect (beyond one hop, up to
the configured depth).  Classification runs in two phases:

1. Per task, as results arrive: anything named in the indirect bucket is
   dropped from the direct bucket, and the task's own node is dropped from
   both.  Results accumulate under the task's originating file.
2. Per file, after every task: indirect records whose identity key is
   already direct are removed, then each side is de-duplicated by identity
   key with the first occurrence kept.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from impact_engine.analysis.dedup import reconcile
from impact_engine.lineage.client import LineageClient
from impact_engine.models.lineage import FileImpactSet, ImpactRecord, MatchedTask

logger = logging.getLogger(__name__)


def _impact_key(record: ImpactRecord) -> tuple[object, object, object]:
    return record.identity_key


def split_task_impacts(
    task_name: str,
    direct: Sequence[ImpactRecord],
    indirect: Sequence[ImpactRecord],
) -> tuple[list[ImpactRecord], list[ImpactRecord]]:
    """Apply per-task overlap and self-reference removal.

    Returns the filtered ``(direct, indirect)`` buckets.
    """
    indirect_names = {record.name for record in indirect}
    filtered_direct = [r for r in direct if r.name not in indirect_names and r.name != task_name]
    filtered_indirect = [r for r in indirect if r.name != task_name]
    return filtered_direct, filtered_indirect


def reconcile_file_impacts(file_impacts: dict[str, FileImpactSet]) -> dict[str, FileImpactSet]:
    """Apply direct precedence and de-duplication to every file, in place."""
    for impacts in file_impacts.values():
        impacts.direct, impacts.indirect = reconcile(impacts.direct, impacts.indirect, _impact_key)
    return file_impacts


class ImpactClassifier:
    """Fetch and classify asset-level impacts for matched tasks.

    Parameters
    ----------
    client:
        Lineage service client.  One impact query is issued per task; the
        caller reconciles each file with :func:`reconcile_file_impacts` once
        every task has been accumulated.
    """

    def __init__(self, client: LineageClient) -> None:
        self._client = client

    async def accumulate(self, task: MatchedTask, impacts: FileImpactSet) -> None:
        """Fetch one task's impacts and append them to *impacts* unreconciled."""
        response = await self._client.get_asset_impact(
            asset_id=task.asset_id,
            connection_id=task.connection_id,
            entity=task.asset_id,
            entity_name=task.name,
        )
        direct, indirect = split_task_impacts(task.name, response.direct, response.indirect)
        impacts.direct.extend(direct)
        impacts.indirect.extend(indirect)

        logger.info(
            "Task %s: %d direct, %d indirect impacted asset(s)",
            task.name,
            len(direct),
            len(indirect),
        )
        logger.debug("Direct assets for %s: %s", task.name, [r.name for r in direct])
        logger.debug("Indirect assets for %s: %s", task.name, [r.name for r in indirect])
