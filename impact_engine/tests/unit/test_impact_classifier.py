"""Tests for asset-level impact classification."""

from __future__ import annotations

from typing import Any

import pytest

from impact_engine.analysis.impact_classifier import (
    ImpactClassifier,
    reconcile_file_impacts,
    split_task_impacts,
)
from impact_engine.models.lineage import AssetImpactResponse, FileImpactSet, ImpactRecord, MatchedTask


def _rec(name: str, connection_id: int = 1) -> ImpactRecord:
    return ImpactRecord(name=name, connection_id=connection_id, asset_name=name)


def _matched(name: str, file_path: str) -> MatchedTask:
    return MatchedTask(
        name=name,
        asset_id=f"asset-{name}",
        connection_id=9,
        task_id=f"task-{name}",
        connection_type="coalesce_pipeline",
        entity=f"task-{name}",
        file_path=file_path,
    )


class FakeLineageClient:
    """Returns canned asset impact responses keyed by asset id."""

    def __init__(self, responses: dict[str, AssetImpactResponse]) -> None:
        self.responses = responses
        self.calls: list[dict[str, Any]] = []

    async def get_asset_impact(self, **kwargs: Any) -> AssetImpactResponse:
        self.calls.append(kwargs)
        return self.responses.get(kwargs["asset_id"], AssetImpactResponse())


class TestSplitTaskImpacts:
    def test_indirect_name_removes_direct(self):
        direct, indirect = split_task_impacts("orders", [_rec("A"), _rec("B")], [_rec("A")])
        assert [r.name for r in direct] == ["B"]
        assert [r.name for r in indirect] == ["A"]

    def test_self_reference_removed_from_both(self):
        direct, indirect = split_task_impacts("orders", [_rec("orders"), _rec("B")], [_rec("orders"), _rec("C")])
        assert [r.name for r in direct] == ["B"]
        assert [r.name for r in indirect] == ["C"]

    def test_overlap_by_name_ignores_connection(self):
        direct, _ = split_task_impacts("t", [_rec("A", connection_id=1)], [_rec("A", connection_id=2)])
        assert direct == []


class TestReconcileFileImpacts:
    def test_cross_task_direct_precedence(self):
        impacts = {"f.yml": FileImpactSet(task_name="t", direct=[_rec("A")], indirect=[_rec("A"), _rec("B")])}
        reconcile_file_impacts(impacts)
        assert [r.name for r in impacts["f.yml"].direct] == ["A"]
        assert [r.name for r in impacts["f.yml"].indirect] == ["B"]


async def _accumulate(client: FakeLineageClient, tasks: list[MatchedTask]) -> dict[str, FileImpactSet]:
    """Accumulate every task into its file's set, then reconcile once."""
    classifier = ImpactClassifier(client)  # type: ignore[arg-type]
    file_impacts = {t.file_path: FileImpactSet(task_name=t.name) for t in tasks}
    for task in tasks:
        await classifier.accumulate(task, file_impacts[task.file_path])
    return reconcile_file_impacts(file_impacts)


class TestImpactClassifier:
    @pytest.mark.asyncio
    async def test_accumulate_filters_per_task(self):
        client = FakeLineageClient(
            {
                "asset-orders": AssetImpactResponse(
                    direct=[_rec("orders"), _rec("rpt_sales"), _rec("fct_orders")],
                    indirect=[_rec("fct_orders"), _rec("dash")],
                ),
            }
        )
        impacts = FileImpactSet(task_name="orders")
        await ImpactClassifier(client).accumulate(_matched("orders", "orders.yml"), impacts)  # type: ignore[arg-type]

        assert [r.name for r in impacts.direct] == ["rpt_sales"]
        assert [r.name for r in impacts.indirect] == ["fct_orders", "dash"]

    @pytest.mark.asyncio
    async def test_query_uses_asset_as_entity(self):
        client = FakeLineageClient({})
        classifier = ImpactClassifier(client)  # type: ignore[arg-type]
        await classifier.accumulate(_matched("b", "b.yml"), FileImpactSet(task_name="b"))
        assert client.calls == [
            {"asset_id": "asset-b", "connection_id": 9, "entity": "asset-b", "entity_name": "b"},
        ]

    @pytest.mark.asyncio
    async def test_failed_query_leaves_set_empty(self):
        impacts = await _accumulate(FakeLineageClient({}), [_matched("orders", "orders.yml")])
        assert impacts["orders.yml"].direct == []
        assert impacts["orders.yml"].indirect == []

    @pytest.mark.asyncio
    async def test_two_tasks_one_file_direct_wins_globally(self):
        client = FakeLineageClient(
            {
                "asset-t1": AssetImpactResponse(direct=[_rec("A")]),
                "asset-t2": AssetImpactResponse(indirect=[_rec("A"), _rec("B")]),
            }
        )
        impacts = await _accumulate(client, [_matched("t1", "shared.yml"), _matched("t2", "shared.yml")])
        assert [r.name for r in impacts["shared.yml"].direct] == ["A"]
        assert [r.name for r in impacts["shared.yml"].indirect] == ["B"]
