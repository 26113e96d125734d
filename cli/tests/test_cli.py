"""Tests for cli/cli/app.py -- the pipeline-impact CLI application.

Uses typer.testing.CliRunner to invoke each command.  The commands import
impact_engine modules *inside* the function body, so mocks target the
source modules rather than ``cli.app``.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from impact_engine.git import GitClientError
from impact_engine.models.analysis import ImpactAnalysis
from impact_engine.pipeline import ImpactRunError, ImpactRunResult
from impact_engine.report.payload import build_payload, serialize_payload

from cli.app import app

runner = CliRunner()

NODE_BEFORE = "name: orders\ncolumns:\n  - id\n  - legacy\n"
NODE_AFTER = "name: orders\ncolumns:\n  - id\n  - tax\n"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_result() -> ImpactRunResult:
    analysis = ImpactAnalysis(changed_files=["nodes/orders.yml"])
    payload = build_payload(analysis, link_base_url="", timestamp=datetime(2025, 5, 15, tzinfo=UTC))
    return ImpactRunResult(
        analysis=analysis,
        payload=payload,
        payload_json=serialize_payload(payload),
        markdown="## Impact Analysis Report\n",
        matched_tasks=[],
    )


@pytest.fixture
def action_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INPUT_BASE_URL", "https://lineage.example.com")
    for name in ("GITHUB_BASE_SHA", "GITHUB_HEAD_SHA", "GITHUB_EVENT_PATH", "GITHUB_ACTIONS"):
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# options
# ---------------------------------------------------------------------------


class TestOptions:
    def test_json_lists_enabled_keys(self):
        result = runner.invoke(app, ["--json", "options", "yml_column_changes, Direct_Asset_Count"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == ["direct_asset_count", "yml_column_changes"]

    def test_empty_enables_everything(self):
        result = runner.invoke(app, ["--json", "options"])
        assert result.exit_code == 0
        assert len(json.loads(result.stdout)) == 9

    def test_table(self):
        result = runner.invoke(app, ["options", "direct_asset_count"])
        assert result.exit_code == 0
        assert "Report Sections" in result.output
        assert "direct_asset_count" in result.output


# ---------------------------------------------------------------------------
# delta
# ---------------------------------------------------------------------------


class TestDelta:
    def test_json(self, tmp_path: Path):
        with (
            patch("impact_engine.git.validate_repo"),
            patch("impact_engine.git.get_file_at_commit", side_effect=[NODE_BEFORE, NODE_AFTER]) as read,
        ):
            result = runner.invoke(app, ["--json", "delta", str(tmp_path), "base", "head", "nodes/orders.yml"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["file"] == "nodes/orders.yml"
        assert [c["name"] for c in data["added"]] == ["tax"]
        assert [c["name"] for c in data["removed"]] == ["legacy"]
        assert [c.args[1] for c in read.call_args_list] == ["base", "head"]

    def test_table(self, tmp_path: Path):
        with (
            patch("impact_engine.git.validate_repo"),
            patch("impact_engine.git.get_file_at_commit", side_effect=[NODE_BEFORE, NODE_AFTER]),
        ):
            result = runner.invoke(app, ["delta", str(tmp_path), "base", "head", "nodes/orders.yml"])
        assert result.exit_code == 0
        assert "1 added" in result.output

    def test_missing_at_head(self, tmp_path: Path):
        with (
            patch("impact_engine.git.validate_repo"),
            patch("impact_engine.git.get_file_at_commit", side_effect=[NODE_BEFORE, None]),
        ):
            result = runner.invoke(app, ["delta", str(tmp_path), "base", "head", "nodes/orders.yml"])
        assert result.exit_code == 0
        assert "Nothing to compare" in result.output

    def test_git_error(self, tmp_path: Path):
        with patch("impact_engine.git.validate_repo", side_effect=GitClientError("not a git repository")):
            result = runner.invoke(app, ["delta", str(tmp_path), "base", "head", "nodes/orders.yml"])
        assert result.exit_code == 3


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


class TestRun:
    def test_json_payload_to_stdout(self, tmp_path: Path, action_env: None):
        with (
            patch("impact_engine.logging_config.configure_logging"),
            patch("impact_engine.pipeline.run_impact_analysis", new=AsyncMock(return_value=_run_result())) as run,
        ):
            result = runner.invoke(app, ["--json", "run", "--repo", str(tmp_path), "--base", "abc", "--no-comment"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["summary"]["total_changed_files"] == 1
        settings, context = run.call_args.args
        assert settings.base_url == "https://lineage.example.com"
        assert context.base_sha == "abc"
        assert run.call_args.kwargs["post_comment"] is False
        assert run.call_args.kwargs["repo_path"] == tmp_path.resolve()

    def test_json_out_file(self, tmp_path: Path, action_env: None):
        out = tmp_path / "out" / "impact.json"
        with (
            patch("impact_engine.logging_config.configure_logging"),
            patch("impact_engine.pipeline.run_impact_analysis", new=AsyncMock(return_value=_run_result())),
        ):
            result = runner.invoke(app, ["run", "--repo", str(tmp_path), "--json-out", str(out)])

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text(encoding="utf-8"))["metadata"]["analysis_type"]
        assert "Impact Analysis" in result.output

    def test_missing_base_url(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("INPUT_BASE_URL", raising=False)
        run = MagicMock()
        with (
            patch("impact_engine.logging_config.configure_logging"),
            patch("impact_engine.pipeline.run_impact_analysis", new=run),
        ):
            result = runner.invoke(app, ["run", "--repo", str(tmp_path)])
        assert result.exit_code == 3
        run.assert_not_called()

    def test_run_error(self, tmp_path: Path, action_env: None):
        failing = AsyncMock(side_effect=ImpactRunError("Impact analysis failed: boom"))
        with (
            patch("impact_engine.logging_config.configure_logging"),
            patch("impact_engine.pipeline.run_impact_analysis", new=failing),
        ):
            result = runner.invoke(app, ["run", "--repo", str(tmp_path)])
        assert result.exit_code == 3
        assert "boom" in result.output
