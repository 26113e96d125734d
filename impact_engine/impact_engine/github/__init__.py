"""Pull request comments and workflow-runner outputs."""

from __future__ import annotations

from impact_engine.github.actions import format_output, set_output, write_step_summary
from impact_engine.github.comments import CommentError, PullRequestCommenter, is_report_comment

__all__ = [
    "CommentError",
    "PullRequestCommenter",
    "format_output",
    "is_report_comment",
    "set_output",
    "write_step_summary",
]
