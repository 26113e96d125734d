"""Create or update the impact report comment on a pull request.

At most one report comment per pull request is maintained: an existing
comment authored by the Actions bot whose body carries the report marker
is edited in place; otherwise a new comment is created.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

BOT_LOGIN = "github-actions[bot]"
BOT_USER_TYPE = "Bot"


class CommentError(Exception):
    """Raised when the review-thread API rejects or cannot serve a request."""


def is_report_comment(comment: dict[str, Any], marker: str) -> bool:
    """Return True when *comment* is a previous report posted by the bot."""
    user = comment.get("user") or {}
    body = comment.get("body") or ""
    return user.get("type") == BOT_USER_TYPE and user.get("login") == BOT_LOGIN and marker in body


class PullRequestCommenter:
    """Async client for the pull request comment endpoints.

    Parameters
    ----------
    token:
        Token with permission to write issue comments.
    owner, repo:
        Repository coordinates.
    api_url:
        REST API root, ``https://api.github.com`` on github.com.
    http_client:
        Optional ``httpx.AsyncClient`` for testing.
    """

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        *,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._owner = owner
        self._repo = repo
        self._client = http_client or httpx.AsyncClient(
            base_url=api_url.rstrip("/") + "/",
            timeout=httpx.Timeout(timeout),
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": "pipeline-impact",
            },
        )
        self._owns_client = http_client is None

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> PullRequestCommenter:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def list_comments(self, issue_number: int) -> list[dict[str, Any]]:
        """Return every comment on the pull request, following pagination."""
        comments: list[dict[str, Any]] = []
        page = 1
        while True:
            batch = await self._request(
                "GET",
                f"repos/{self._owner}/{self._repo}/issues/{issue_number}/comments",
                params={"per_page": 100, "page": page},
            )
            if not isinstance(batch, list) or not batch:
                break
            comments.extend(c for c in batch if isinstance(c, dict))
            if len(batch) < 100:
                break
            page += 1
        return comments

    async def find_report_comment(self, issue_number: int, marker: str) -> dict[str, Any] | None:
        for comment in await self.list_comments(issue_number):
            if is_report_comment(comment, marker):
                return comment
        return None

    async def upsert(self, issue_number: int, body: str, *, marker: str) -> int:
        """Update the existing report comment or create one.

        Returns
        -------
        int
            The id of the comment that now holds *body*.

        Raises
        ------
        CommentError
            If any request fails.
        """
        existing = await self.find_report_comment(issue_number, marker)
        if existing is not None:
            comment_id = existing["id"]
            logger.info("Updating existing comment %s", comment_id)
            await self._request(
                "PATCH",
                f"repos/{self._owner}/{self._repo}/issues/comments/{comment_id}",
                json={"body": body},
            )
            return int(comment_id)

        logger.info("Creating new impact analysis comment on #%d", issue_number)
        created = await self._request(
            "POST",
            f"repos/{self._owner}/{self._repo}/issues/{issue_number}/comments",
            json={"body": body},
        )
        return int(created["id"]) if isinstance(created, dict) and "id" in created else 0

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise CommentError(
                f"{method} {path} returned {exc.response.status_code}: {exc.response.text[:200]}"
            ) from exc
        except httpx.RequestError as exc:
            raise CommentError(f"{method} {path} failed: {exc}") from exc
        except ValueError as exc:
            raise CommentError(f"{method} {path} returned invalid JSON") from exc
