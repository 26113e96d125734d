"""Tests for log formatting and handler setup."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator

import pytest

from impact_engine.config import Settings
from impact_engine.logging_config import GitHubActionsFormatter, JSONFormatter, configure_logging


def _record(level: int, msg: str, *args: object, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("impact_engine.test", level, __file__, 1, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    httpx_level = logging.getLogger("httpx").level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(httpx_level)


class TestJSONFormatter:
    def test_fields(self):
        line = JSONFormatter().format(_record(logging.WARNING, "Task %s failed", "orders"))
        data = json.loads(line)
        assert data["level"] == "WARNING"
        assert data["logger"] == "impact_engine.test"
        assert data["message"] == "Task orders failed"
        assert "timestamp" in data
        assert "context" not in data

    def test_context_and_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            exc_info = sys.exc_info()
        record = _record(logging.ERROR, "failed", context={"file": "orders.yml"})
        record.exc_info = exc_info
        data = json.loads(JSONFormatter().format(record))
        assert data["context"] == {"file": "orders.yml"}
        assert "RuntimeError: boom" in data["exc_info"]


class TestGitHubActionsFormatter:
    @pytest.mark.parametrize(
        ("level", "prefix"),
        [(logging.WARNING, "::warning::"), (logging.ERROR, "::error::"), (logging.DEBUG, "::debug::")],
    )
    def test_commands(self, level: int, prefix: str):
        assert GitHubActionsFormatter().format(_record(level, "msg")) == f"{prefix}msg"

    def test_info_is_plain(self):
        assert GitHubActionsFormatter().format(_record(logging.INFO, "hello")) == "hello"

    def test_escapes_data(self):
        line = GitHubActionsFormatter().format(_record(logging.ERROR, "100%\nnext"))
        assert line == "::error::100%25%0Anext"


class TestConfigureLogging:
    def test_structured_wins(self, restore_root_logger: None):
        configure_logging(Settings(structured_logging=True), github_actions=True)
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)
        assert root.level == logging.INFO

    def test_actions_formatter(self, restore_root_logger: None):
        configure_logging(Settings(), github_actions=True)
        assert isinstance(logging.getLogger().handlers[0].formatter, GitHubActionsFormatter)

    def test_debug_level(self, restore_root_logger: None):
        configure_logging(Settings(debug=True))
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.DEBUG

    def test_httpx_quiet_by_default(self, restore_root_logger: None):
        configure_logging(Settings())
        assert logging.getLogger("httpx").level == logging.WARNING
