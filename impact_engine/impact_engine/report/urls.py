"""Navigation URLs for impacted assets and columns.

Both resolvers are pure and total: they return either an absolute URL on
the configured base authority or :data:`PLACEHOLDER_URL`, and never raise.

Routes by ``asset_group``:

==========  ============  ====================================================
group       is_transform  path
==========  ============  ====================================================
pipeline    true          /observe/pipeline/transformation/{redirect_id}/run
pipeline    false         /observe/pipeline/task/{redirect_id}/run
report      -             /observe/report/worksheet/{redirect_id}/overview
data        -             /observe/data/{redirect_id}/measures
==========  ============  ====================================================

The report route is asset-level only.  Column records with no matching
group fall back to the pipeline task route.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlsplit, urlunsplit

from impact_engine.models.lineage import ColumnImpactRecord, ImpactRecord

logger = logging.getLogger(__name__)

PLACEHOLDER_URL = "#"


def _pipeline_path(redirect_id: Any, is_transform: bool | None) -> str:
    if is_transform:
        return f"/observe/pipeline/transformation/{redirect_id}/run"
    return f"/observe/pipeline/task/{redirect_id}/run"


def _asset_path(record: ImpactRecord) -> str | None:
    group = record.asset_group
    if group == "pipeline":
        return _pipeline_path(record.redirect_id, record.is_transform)
    if group == "report":
        return f"/observe/report/worksheet/{record.redirect_id}/overview"
    if group == "data":
        return f"/observe/data/{record.redirect_id}/measures"
    return None


def _column_path(record: ColumnImpactRecord) -> str | None:
    group = record.asset_group
    if group == "pipeline":
        return _pipeline_path(record.redirect_id, record.is_transform)
    if group == "data":
        return f"/observe/data/{record.redirect_id}/measures"
    if not record.connection_id or not record.redirect_id:
        return None
    return _pipeline_path(record.redirect_id, False)


def _join(base_url: str, path: str) -> str:
    """Replace the path of *base_url*; raises ``ValueError`` on a malformed base."""
    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Base URL is not absolute: {base_url!r}")
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


def resolve_asset_url(record: ImpactRecord | None, base_url: str | None) -> str:
    """URL for an asset-level impact, or the placeholder.

    Requires a base URL and both ``connection_id`` and ``redirect_id``.
    """
    if record is None or not base_url:
        return PLACEHOLDER_URL
    if not record.connection_id or not record.redirect_id:
        return PLACEHOLDER_URL
    try:
        path = _asset_path(record)
        return _join(base_url, path) if path else PLACEHOLDER_URL
    except ValueError as exc:
        logger.warning("Error constructing URL for %s: %s", record.name, exc)
        return PLACEHOLDER_URL


def resolve_column_url(record: ColumnImpactRecord | None, base_url: str | None) -> str:
    """URL for a column-level impact, or the placeholder.

    Pipeline and data groups only need a ``redirect_id``; the fallback
    route additionally needs a ``connection_id``.
    """
    if record is None or not base_url or not record.redirect_id:
        return PLACEHOLDER_URL
    try:
        path = _column_path(record)
        return _join(base_url, path) if path else PLACEHOLDER_URL
    except ValueError as exc:
        logger.warning(
            "Error constructing column URL for %s: %s",
            record.display_name,
            exc,
        )
        return PLACEHOLDER_URL
