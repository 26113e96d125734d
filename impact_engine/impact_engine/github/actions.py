"""Workflow-runner file outputs: the job step summary and step outputs."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)


def write_step_summary(summary_path: Path | None, markdown: str) -> bool:
    """Append *markdown* to the job summary file.

    Returns False, without raising, when no summary file is configured.
    """
    if summary_path is None:
        logger.debug("No step summary file configured; skipping")
        return False
    with summary_path.open("a", encoding="utf-8") as fh:
        fh.write(markdown)
    return True


def format_output(name: str, value: str, delimiter: str | None = None) -> str:
    """Render one step output in multi-line heredoc syntax."""
    delimiter = delimiter or f"ghadelimiter_{uuid.uuid4()}"
    if delimiter in value:
        raise ValueError(f"Output value for {name!r} contains its delimiter")
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


def set_output(output_path: Path | None, name: str, value: str) -> bool:
    """Append step output *name* to the runner's output file."""
    if output_path is None:
        logger.debug("No output file configured; skipping output %s", name)
        return False
    with output_path.open("a", encoding="utf-8") as fh:
        fh.write(format_output(name, value))
    return True
