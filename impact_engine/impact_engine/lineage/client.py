"""HTTP client for the lineage service's task-listing and impact endpoints.

Every public query returns an empty result on failure so that a run can
continue with partial data.  Errors are logged with the entity they were
issued for but never propagated.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from impact_engine.config import Settings
from impact_engine.models.lineage import (
    AssetImpactResponse,
    ImpactRecord,
    LineageField,
    LineageTable,
    PipelineTask,
)

logger = logging.getLogger(__name__)

TASKS_PATH = "api/pipeline/job/"
IMPACT_PATH = "api/lineage/impact-analysis/"


def _response_data(body: Any) -> Any:
    """Unwrap the service envelope ``{"response": {"data": ...}}``."""
    if not isinstance(body, dict):
        return None
    response = body.get("response")
    if not isinstance(response, dict):
        return None
    return response.get("data")


def _safe_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _parse_records(items: Any, model: type[Any], context: str) -> list[Any]:
    """Validate each dict in *items* as *model*, dropping anything malformed."""
    records: list[Any] = []
    for item in _safe_list(items):
        if not isinstance(item, dict):
            continue
        try:
            records.append(model.model_validate(item))
        except ValidationError as exc:
            logger.warning("Dropping malformed %s record: %s", context, exc.errors()[:1])
    return records


def _parse_table(item: dict[str, Any], context: str) -> LineageTable:
    """Validate a table, then each of its fields on its own.

    A malformed field is dropped without costing the table its other fields.
    """
    table = LineageTable.model_validate({key: value for key, value in item.items() if key != "fields"})
    field_context = f"field of {table.name or 'table'} in {context}"
    table.table_fields = _parse_records(item.get("fields"), LineageField, field_context)
    return table


class LineageClient:
    """Thin async wrapper around the lineage service REST API.

    Parameters
    ----------
    settings:
        Run settings supplying the service root, credentials, page size,
        traversal depth and field limit.
    http_client:
        Optional ``httpx.AsyncClient`` for testing.  A default client is
        created from *settings* if not provided.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._client = http_client or httpx.AsyncClient(
            base_url=settings.base_url.rstrip("/") + "/",
            timeout=httpx.Timeout(settings.request_timeout),
            headers=settings.service_headers(),
        )
        self._owns_client = http_client is None

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> LineageClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # -- Task listing ---------------------------------------------------------

    async def list_tasks(self) -> list[PipelineTask]:
        """Fetch the first page of pipeline tasks, sorted by name."""
        payload: dict[str, Any] = {
            "chartType": 0,
            "search": {},
            "page": 0,
            "pageLimit": self._settings.task_page_limit,
            "sortBy": "name",
            "orderBy": "asc",
            "date_filter": {"days": "All", "selected": "All"},
            "chart_filter": {},
            "is_chart": True,
        }
        body = await self._post(TASKS_PATH, payload, context="task listing")
        return _parse_records(_response_data(body), PipelineTask, "task")

    # -- Impact queries -------------------------------------------------------

    async def get_asset_impact(
        self,
        *,
        asset_id: Any,
        connection_id: Any,
        entity: Any,
        entity_name: str = "",
    ) -> AssetImpactResponse:
        """Fetch direct and depth-bounded indirect asset impacts in one query."""
        payload: dict[str, Any] = {
            "connection_id": connection_id,
            "asset_id": asset_id,
            "entity": entity,
            "moreOptions": {
                "view_by": "table",
                "depth": self._settings.impact_depth,
            },
            "search_key": "",
            "is_github": True,
        }
        context = f"impact query for {entity_name or entity}"
        data = _response_data(await self._post(IMPACT_PATH, payload, context=context))
        if not isinstance(data, dict):
            return AssetImpactResponse()
        return AssetImpactResponse(
            direct=_parse_records(data.get("direct"), ImpactRecord, "direct impact"),
            indirect=_parse_records(data.get("indirect"), ImpactRecord, "indirect impact"),
        )

    async def get_column_lineage(
        self,
        *,
        asset_id: Any,
        connection_id: Any,
        entity: Any,
        direct: bool,
        entity_name: str = "",
    ) -> list[LineageTable]:
        """Fetch column-level lineage tables, direct or depth-bounded indirect."""
        more_options: dict[str, Any] = {"view_by": "column"}
        if not direct:
            more_options["depth"] = self._settings.impact_depth
        payload: dict[str, Any] = {
            "connection_id": connection_id,
            "asset_id": asset_id,
            "entity": entity,
            "field_offset": 0,
            "field_limit": self._settings.column_field_limit,
            "moreOptions": more_options,
            "search_key": "",
        }
        kind = "direct" if direct else "indirect"
        context = f"{kind} column query for {entity_name or entity}"
        data = _response_data(await self._post(IMPACT_PATH, payload, context=context))
        if not isinstance(data, dict):
            return []

        tables: list[LineageTable] = []
        for item in _safe_list(data.get("tables")):
            if not isinstance(item, dict):
                continue
            try:
                tables.append(_parse_table(item, context))
            except ValidationError as exc:
                logger.warning("Dropping malformed lineage table in %s: %s", context, exc.errors()[:1])
        logger.debug("%s returned %d table(s)", context, len(tables))
        return tables

    # -- Internal helpers -----------------------------------------------------

    async def _post(self, path: str, payload: dict[str, Any], *, context: str) -> Any:
        """POST *payload* and return the decoded JSON body, or ``None`` on error."""
        try:
            response = await self._client.post(path, json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Lineage service returned %d for %s: %s",
                exc.response.status_code,
                context,
                exc.response.text[:500],
            )
            return None
        except httpx.RequestError as exc:
            logger.warning("Lineage request for %s failed: %s", context, exc)
            return None
        except ValueError as exc:
            logger.warning("Lineage service sent invalid JSON for %s: %s", context, exc)
            return None
