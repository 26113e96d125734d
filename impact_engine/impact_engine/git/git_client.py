"""Thin git client for reading node definitions at a given revision.

All interaction with the ``git`` binary is done through :func:`subprocess.run`
with explicit timeouts and structured error handling so that callers receive
:class:`GitClientError` exceptions with descriptive messages rather than raw
subprocess failures.  A path that simply does not exist at a revision is not
an error: :func:`get_file_at_commit` returns ``None`` for it.
"""

from __future__ import annotations

import asyncio
import logging
import re
import subprocess
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_SUBPROCESS_TIMEOUT = 30  # seconds

# ---------------------------------------------------------------------------
# Git ref validation
# ---------------------------------------------------------------------------

# Matches hex SHAs (4-40 chars) and common ref patterns like branch names,
# tags, HEAD, HEAD~2, origin/main, etc.
_GIT_SHA_RE = re.compile(r"^[0-9a-fA-F]{4,40}$")
_GIT_REF_RE = re.compile(r"^[a-zA-Z0-9_./@~^{}\-]+$")

# stderr fragments git emits when a path is absent at a revision.
_MISSING_PATH_MARKERS = (
    "does not exist in",
    "exists on disk, but not in",
)

# stderr fragments git emits when the revision itself is unknown, e.g. a base
# commit outside a shallow checkout.
_MISSING_REVISION_MARKERS = (
    "bad revision",
    "invalid object name",
    "unknown revision",
)


def _validate_git_ref(ref: str) -> None:
    """Validate a git ref or SHA to prevent command injection.

    Raises
    ------
    ValueError
        If *ref* does not match the expected pattern.
    """
    if not ref:
        raise ValueError("Git ref cannot be empty")
    if not (_GIT_SHA_RE.match(ref) or _GIT_REF_RE.match(ref)):
        raise ValueError(f"Invalid git ref: {ref!r}")


class GitClientError(Exception):
    """Raised when a git operation fails or the repository is invalid."""


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _run_git(
    cmd: list[str],
    repo_path: Path,
) -> subprocess.CompletedProcess[str]:
    """Execute a git command and return the completed process.

    Raises
    ------
    GitClientError
        On non-zero exit, timeout, or if the process cannot be started.
    """
    try:
        return subprocess.run(
            cmd,
            cwd=repo_path,
            capture_output=True,
            text=True,
            check=True,
            timeout=_SUBPROCESS_TIMEOUT,
        )
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        raise GitClientError(f"git command failed: {' '.join(cmd)}\n" f"Exit code {exc.returncode}: {stderr}") from exc
    except subprocess.TimeoutExpired as exc:
        raise GitClientError(f"git command timed out after {_SUBPROCESS_TIMEOUT}s: {' '.join(cmd)}") from exc
    except FileNotFoundError as exc:
        raise GitClientError("git executable not found. Ensure git is installed and on PATH.") from exc


def _is_missing_path_error(exc: GitClientError) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _MISSING_PATH_MARKERS)


def _is_missing_revision_error(exc: GitClientError) -> bool:
    message = str(exc).lower()
    return any(marker in message for marker in _MISSING_REVISION_MARKERS)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_repo(repo_path: Path) -> None:
    """Verify that *repo_path* is the root of a git repository.

    Raises
    ------
    GitClientError
        If the ``.git`` directory does not exist or the path is not a
        directory.
    """
    if not repo_path.is_dir():
        raise GitClientError(f"Repository path does not exist: {repo_path}")
    if not (repo_path / ".git").exists():
        raise GitClientError(f"Not a git repository (no .git directory): {repo_path}")


def get_changed_files(
    repo_path: Path,
    base_sha: str,
    target_sha: str,
    pathspec: str | None = None,
) -> list[str]:
    """Return paths that changed between *base_sha* and *target_sha*.

    Added, modified, renamed and deleted paths are all included, in the
    order git reports them.  *pathspec* optionally narrows the diff
    (e.g. ``"*.yml"``).
    """
    _validate_git_ref(base_sha)
    _validate_git_ref(target_sha)

    cmd = ["git", "diff", "--name-status", base_sha, target_sha]
    if pathspec:
        cmd += ["--", pathspec]
    result = _run_git(cmd, repo_path)

    changed: list[str] = []
    for line in result.stdout.strip().splitlines():
        if not line:
            continue
        parts = line.split("\t")
        if len(parts) < 2:
            logger.warning("Skipping unparseable diff line: %s", line)
            continue
        # Renames and copies carry old and new paths; the new one wins.
        file_path = parts[-1]
        if file_path not in changed:
            changed.append(file_path)
    return changed


def get_file_at_commit(
    repo_path: Path,
    sha: str,
    file_path: str,
) -> str | None:
    """Return the contents of *file_path* as it existed at *sha*.

    Returns ``None`` when the path does not exist at that revision, or when
    the revision itself is unknown to the repository; an unknown revision is
    logged at warning level.

    Raises
    ------
    GitClientError
        If git fails for any other reason.
    """
    _validate_git_ref(sha)

    try:
        result = _run_git(["git", "show", f"{sha}:{file_path}"], repo_path)
    except GitClientError as exc:
        if _is_missing_revision_error(exc):
            logger.warning("Revision %s not found while reading %s; treating the file as absent", sha, file_path)
            return None
        if _is_missing_path_error(exc):
            logger.debug("File not found in %s: %s", sha, file_path)
            return None
        raise
    return result.stdout


def changed_files_from_event(event: dict[str, Any]) -> list[str]:
    """Collect changed paths from the ``commits`` of a push-style event.

    Paths listed as added, modified or removed in any commit are returned
    once each, in first-seen order.
    """
    seen: dict[str, None] = {}
    commits = event.get("commits")
    if not isinstance(commits, list):
        return []
    for commit in commits:
        if not isinstance(commit, dict):
            continue
        for key in ("added", "modified", "removed"):
            files = commit.get(key)
            if not isinstance(files, list):
                continue
            for path in files:
                if isinstance(path, str) and path:
                    seen.setdefault(path, None)
    return list(seen)


class RevisionReader:
    """Async reads of file contents at a revision or from the working tree.

    Git is invoked in a worker thread so reads can be awaited alongside the
    service calls of a run.  A missing path, a missing revision, or a git
    failure all read as ``None``; only the last is logged as an error.

    Parameters
    ----------
    repo_path:
        Root of the git checkout.
    """

    def __init__(self, repo_path: Path) -> None:
        self._repo_path = repo_path

    @property
    def repo_path(self) -> Path:
        return self._repo_path

    async def read(self, revision: str, file_path: str) -> str | None:
        if not revision:
            logger.debug("No revision given for %s", file_path)
            return None
        try:
            return await asyncio.to_thread(get_file_at_commit, self._repo_path, revision, file_path)
        except ValueError as exc:
            logger.error("Refusing to read %s at %r: %s", file_path, revision, exc)
            return None
        except GitClientError as exc:
            logger.error("Error reading %s at %s: %s", file_path, revision, exc)
            return None

    async def read_working_tree(self, file_path: str) -> str | None:
        path = self._repo_path / file_path
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Could not read %s from filesystem: %s", file_path, exc)
            return None
