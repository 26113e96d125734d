"""Log formatting for local runs, workflow runners, and log aggregators.

Three output modes are supported:

* plain text (default)
* GitHub workflow commands, so warnings and errors surface as annotations
  on the run page (``::warning::`` / ``::error::``)
* single-line JSON records, enabled with ``INPUT_STRUCTURED_LOGGING=true``

Output schema per JSON line::

    {
        "timestamp": "2025-05-15T12:34:56.789012+00:00",
        "level": "WARNING",
        "logger": "impact_engine.lineage.client",
        "message": "Impact query failed for orders",
        "context": { ... },          // present when passed via extra={"context": ...}
        "exc_info": "Traceback ..."  // present only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from impact_engine.config import Settings

_TEXT_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context is not None:
            payload["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def _escape_command_data(value: str) -> str:
    # Workflow command data must have %, CR and LF percent-encoded.
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class GitHubActionsFormatter(logging.Formatter):
    """Render warnings and errors as GitHub workflow annotation commands."""

    _COMMANDS: dict[int, str] = {
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info and record.exc_info[0] is not None:
            message = message + "\n" + "".join(traceback.format_exception(*record.exc_info))

        command = self._COMMANDS.get(record.levelno)
        if command is None:
            if record.levelno <= logging.DEBUG:
                return f"::debug::{_escape_command_data(message)}"
            return message
        return f"::{command}::{_escape_command_data(message)}"


def configure_logging(settings: Settings, *, github_actions: bool = False) -> None:
    """Install a single root handler according to *settings*.

    Structured JSON takes precedence over workflow annotations.
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    handler = logging.StreamHandler()

    if settings.structured_logging:
        handler.setFormatter(JSONFormatter())
    elif github_actions:
        handler.setFormatter(GitHubActionsFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if settings.debug else logging.INFO)
    # httpx logs every request at INFO; keep it at WARNING unless debugging.
    logging.getLogger("httpx").setLevel(logging.DEBUG if settings.debug else logging.WARNING)
