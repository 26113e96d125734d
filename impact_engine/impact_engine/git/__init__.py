"""Git integration for change detection."""

from __future__ import annotations

from impact_engine.git.git_client import (
    GitClientError,
    RevisionReader,
    changed_files_from_event,
    get_changed_files,
    get_file_at_commit,
    validate_repo,
)

__all__ = [
    "GitClientError",
    "RevisionReader",
    "changed_files_from_event",
    "get_changed_files",
    "get_file_at_commit",
    "validate_repo",
]
