"""Tests for matching changed models to pipeline tasks."""

from __future__ import annotations

import logging

import pytest

from impact_engine.analysis.task_matcher import filter_connector_tasks, match_changed_models, match_tasks
from impact_engine.models.lineage import PipelineTask


def _task(name: str, connection_type: str = "coalesce_pipeline", **extra: object) -> PipelineTask:
    return PipelineTask(
        name=name,
        asset_id=f"asset-{name}",
        connection_id=1,
        task_id=f"task-{name}",
        connection_type=connection_type,
        **extra,
    )


class TestFilterConnectorTasks:
    def test_equal_or_substring_case_insensitive(self):
        tasks = [
            _task("a", "Coalesce_Pipeline"),
            _task("b", "coalesce_pipeline_v2"),
            _task("c", "airflow"),
            _task("d", ""),
        ]
        kept = filter_connector_tasks(tasks, "coalesce_pipeline")
        assert [t.name for t in kept] == ["a", "b"]


class TestMatchTasks:
    def test_case_insensitive_exact(self):
        tasks = [_task("orders"), _task("orders_staging")]
        matched = match_tasks(tasks, {"Orders": "nodes/orders.yml"})
        assert [t.name for t in matched] == ["orders"]
        assert matched[0].file_path == "nodes/orders.yml"

    def test_preserves_task_order(self):
        tasks = [_task("zeta"), _task("alpha"), _task("mid")]
        matched = match_tasks(tasks, {"alpha": "a.yml", "mid": "m.yml", "zeta": "z.yml"})
        assert [t.name for t in matched] == ["zeta", "alpha", "mid"]

    def test_entity_is_task_id(self):
        matched = match_tasks([_task("orders")], {"orders": "orders.yml"})
        assert matched[0].entity == "task-orders"
        assert matched[0].asset_id == "asset-orders"

    def test_missing_task_id_gives_empty_entity(self):
        task = PipelineTask(name="orders", connection_type="coalesce_pipeline")
        matched = match_tasks([task], {"orders": "orders.yml"})
        assert matched[0].entity == ""

    def test_extra_fields_carried(self):
        matched = match_tasks([_task("orders", owner="data-eng")], {"orders": "orders.yml"})
        assert matched[0].model_dump()["owner"] == "data-eng"

    def test_unmatched_models_dropped(self):
        assert match_tasks([_task("orders")], {"customers": "customers.yml"}) == []

    def test_first_model_wins_on_case_collision(self):
        matched = match_tasks([_task("orders")], {"ORDERS": "upper.yml", "orders": "lower.yml"})
        assert matched[0].file_path == "upper.yml"


class TestMatchChangedModels:
    def test_filters_connector_then_matches(self):
        tasks = [_task("orders", "airflow"), _task("orders"), _task("customers")]
        matched = match_changed_models(tasks, {"orders": "orders.yml"}, "coalesce_pipeline")
        assert len(matched) == 1
        assert matched[0].connection_type == "coalesce_pipeline"

    def test_zero_match_warns(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.WARNING, logger="impact_engine.analysis.task_matcher"):
            matched = match_changed_models([_task("orders")], {"customers": "c.yml"}, "coalesce_pipeline")
        assert matched == []
        assert "No tasks matched" in caplog.text

    def test_no_models_no_warning(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.WARNING, logger="impact_engine.analysis.task_matcher"):
            assert match_changed_models([_task("orders")], {}, "coalesce_pipeline") == []
        assert "No tasks matched" not in caplog.text
