"""Build and serialise the machine-readable impact payload."""

from __future__ import annotations

import json
from datetime import UTC, datetime

from impact_engine.models.analysis import ImpactAnalysis
from impact_engine.models.options import raw_option_keys
from impact_engine.models.payload import (
    AssetImpactEntry,
    ColumnImpactEntry,
    ImpactPayload,
    PayloadMetadata,
    PayloadSummary,
    YmlColumnChanges,
)
from impact_engine.report.urls import resolve_asset_url, resolve_column_url


def build_payload(
    analysis: ImpactAnalysis,
    *,
    link_base_url: str,
    base_url: str = "",
    commit_sha: str = "",
    pull_request_number: int | None = None,
    configurable_keys: str | None = None,
    timestamp: datetime | None = None,
) -> ImpactPayload:
    """Assemble the full, unfiltered payload for *analysis*.

    Display options are deliberately not an input: the payload always
    lists every reconciled impact.
    """
    payload = ImpactPayload(
        metadata=PayloadMetadata(
            timestamp=(timestamp or datetime.now(UTC)).isoformat(),
            commit_sha=commit_sha,
            pull_request_number=pull_request_number,
            configurable_keys_used=raw_option_keys(configurable_keys),
            base_url=base_url,
        ),
        changed_files=list(analysis.changed_files),
        yml_column_changes=YmlColumnChanges(
            added=analysis.column_changes.added_names,
            removed=analysis.column_changes.removed_names,
        ),
    )

    for file_path, impacts in analysis.file_impacts.items():
        for bucket, records in (
            (payload.asset_impacts.direct, impacts.direct),
            (payload.asset_impacts.indirect, impacts.indirect),
        ):
            bucket.extend(
                AssetImpactEntry(
                    file_path=file_path,
                    model_name=record.name,
                    task_name=impacts.task_name,
                    redirect_url=resolve_asset_url(record, link_base_url),
                )
                for record in records
            )

    for file_path, col_impacts in analysis.column_impacts.items():
        for col_bucket, col_records in (
            (payload.column_impacts.direct, col_impacts.direct),
            (payload.column_impacts.indirect, col_impacts.indirect),
        ):
            col_bucket.extend(
                ColumnImpactEntry(
                    file_path=file_path,
                    table_name=record.table_name,
                    column_name=record.column_name,
                    data_type=record.data_type,
                    task_name=col_impacts.task_name,
                    redirect_url=resolve_column_url(record, link_base_url),
                )
                for record in col_records
            )

    payload.summary = PayloadSummary(
        total_direct_assets=len(payload.asset_impacts.direct),
        total_indirect_assets=len(payload.asset_impacts.indirect),
        total_direct_columns=len(payload.column_impacts.direct),
        total_indirect_columns=len(payload.column_impacts.indirect),
        total_yml_added=len(payload.yml_column_changes.added),
        total_yml_removed=len(payload.yml_column_changes.removed),
        total_changed_files=len(payload.changed_files),
    )
    return payload


def serialize_payload(payload: ImpactPayload) -> str:
    """Serialise *payload* as 2-space indented JSON in field order."""
    return json.dumps(payload.model_dump(mode="json"), indent=2, ensure_ascii=False)
