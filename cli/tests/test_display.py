"""Tests for cli/cli/display.py -- Rich output formatting.

Rendered output is captured via a Console writing to a StringIO buffer
rather than stderr.
"""

from __future__ import annotations

import io
from datetime import UTC, datetime

from rich.console import Console

from impact_engine.models.analysis import ImpactAnalysis
from impact_engine.models.changes import ColumnSpec
from impact_engine.models.lineage import FileImpactSet, ImpactRecord, MatchedTask
from impact_engine.models.options import OutputOptions
from impact_engine.pipeline import ImpactRunResult
from impact_engine.report.payload import build_payload, serialize_payload

from cli.display import display_column_delta, display_impact_summary, display_options


def _capture_console() -> tuple[Console, io.StringIO]:
    buf = io.StringIO()
    return Console(file=buf, force_terminal=False, width=160), buf


def _result(matched: bool = True, comment_id: int | None = None) -> ImpactRunResult:
    tasks = [MatchedTask(name="orders", asset_id=1, connection_id=2, task_id=3, file_path="nodes/orders.yml")]
    analysis = ImpactAnalysis(
        changed_files=["nodes/orders.yml"],
        file_impacts={
            "nodes/orders.yml": FileImpactSet(
                task_name="orders",
                direct=[ImpactRecord(name="a"), ImpactRecord(name="b")],
                indirect=[ImpactRecord(name="c")],
            )
        },
    )
    payload = build_payload(analysis, link_base_url="", timestamp=datetime(2025, 5, 15, tzinfo=UTC))
    return ImpactRunResult(
        analysis=analysis,
        payload=payload,
        payload_json=serialize_payload(payload),
        markdown="",
        matched_tasks=tasks if matched else [],
        comment_id=comment_id,
    )


class TestDisplayImpactSummary:
    def test_totals_and_tasks(self):
        console, buf = _capture_console()
        display_impact_summary(console, _result())
        output = buf.getvalue()
        assert "Impact Analysis" in output
        assert "2 direct, 1 indirect" in output
        assert "Matched Tasks" in output
        assert "nodes/orders.yml" in output

    def test_no_matches(self):
        console, buf = _capture_console()
        display_impact_summary(console, _result(matched=False))
        assert "No tasks matched" in buf.getvalue()

    def test_comment_id(self):
        console, buf = _capture_console()
        display_impact_summary(console, _result(comment_id=77))
        assert "77" in buf.getvalue()


class TestDisplayColumnDelta:
    def test_rows(self):
        console, buf = _capture_console()
        display_column_delta(
            console,
            "nodes/orders.yml",
            [ColumnSpec(name="tax", data_type="NUMBER", nullable=True)],
            [ColumnSpec(name="legacy", primary_key=True)],
        )
        output = buf.getvalue()
        assert "tax" in output and "legacy" in output
        assert "1 added, 1 removed" in output

    def test_no_changes(self):
        console, buf = _capture_console()
        display_column_delta(console, "nodes/orders.yml", [], [])
        assert "No column changes" in buf.getvalue()


class TestDisplayOptions:
    def test_flags(self):
        console, buf = _capture_console()
        display_options(console, OutputOptions.from_keys("yml_column_changes"))
        lines = [line for line in buf.getvalue().splitlines() if "yml_column_changes" in line]
        assert lines and "yes" in lines[0]
