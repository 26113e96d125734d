"""Tests for workflow-runner step summary and output files."""

from __future__ import annotations

from pathlib import Path

import pytest

from impact_engine.github.actions import format_output, set_output, write_step_summary


class TestStepSummary:
    def test_appends(self, tmp_path: Path):
        path = tmp_path / "summary.md"
        path.write_text("existing\n", encoding="utf-8")
        assert write_step_summary(path, "## Report\n") is True
        assert path.read_text(encoding="utf-8") == "existing\n## Report\n"

    def test_no_path(self):
        assert write_step_summary(None, "ignored") is False


class TestOutputs:
    def test_format_multiline(self):
        text = format_output("impact_markdown", "line 1\nline 2", delimiter="EOF_X")
        assert text == "impact_markdown<<EOF_X\nline 1\nline 2\nEOF_X\n"

    def test_generated_delimiter(self):
        text = format_output("name", "value")
        header, value, footer, _ = text.split("\n")
        delimiter = header.split("<<", 1)[1]
        assert delimiter.startswith("ghadelimiter_")
        assert value == "value"
        assert footer == delimiter

    def test_delimiter_collision(self):
        with pytest.raises(ValueError, match="delimiter"):
            format_output("name", "a\nEOF\nb", delimiter="EOF")

    def test_set_output_appends(self, tmp_path: Path):
        path = tmp_path / "output"
        assert set_output(path, "first", "1") is True
        assert set_output(path, "second", "2") is True
        text = path.read_text(encoding="utf-8")
        assert text.index("first<<") < text.index("second<<")

    def test_set_output_no_path(self):
        assert set_output(None, "name", "value") is False
