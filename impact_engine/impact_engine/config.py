"""Run configuration loaded from GitHub Action inputs and runner environment.

Action inputs arrive as ``INPUT_<NAME>`` environment variables and are
collected into :class:`Settings`.  The runner's own ``GITHUB_*`` variables
(event payload path, commit SHAs, output files) are collected into
:class:`GitHubContext`.  Both are built once at process start and passed
explicitly to every component.
"""

from __future__ import annotations

import json
import logging
from functools import cached_property
from pathlib import Path
from typing import Any

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_CONNECTOR_TYPE = "coalesce_pipeline"
DEFAULT_COMMENT_MARKER = "## Impact Analysis Report"


class Settings(BaseSettings):
    """Action inputs loaded from environment variables with INPUT_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="INPUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Lineage service credentials
    api_client_id: str = ""
    api_client_secret: SecretStr | None = None

    # Review platform
    github_token: SecretStr | None = None

    # Service roots
    base_url: str = ""
    link_base_url: str = ""

    # Run inputs
    changed_files_list: str = ""
    configurable_keys: str = ""

    # Matching and query tuning
    connector_type: str = DEFAULT_CONNECTOR_TYPE
    impact_depth: int = 10
    column_field_limit: int = 200
    task_page_limit: int = 100
    request_timeout: float = 30.0
    model_file_suffix: str = ".yml"

    # Report
    comment_marker: str = DEFAULT_COMMENT_MARKER

    # Logging
    structured_logging: bool = False
    debug: bool = False

    @field_validator("api_client_secret", "github_token", mode="before")
    @classmethod
    def mask_secret_in_repr(cls, v: str | None) -> SecretStr | None:
        if v is None or v == "":
            return None
        if isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("connector_type")
    @classmethod
    def normalise_connector_type(cls, v: str) -> str:
        return v.strip().lower() or DEFAULT_CONNECTOR_TYPE

    def explicit_changed_files(self) -> list[str]:
        """Return the explicit changed-file list, or ``[]`` when not supplied."""
        return [item.strip() for item in self.changed_files_list.split(",") if item.strip()]

    def service_headers(self) -> dict[str, str]:
        """Authentication headers sent with every lineage service request."""
        secret = self.api_client_secret.get_secret_value() if self.api_client_secret else ""
        return {
            "Content-Type": "application/json",
            "client-id": self.api_client_id,
            "client-secret": secret,
        }

    def is_lineage_configured(self) -> bool:
        return bool(self.base_url)


class GitHubContext(BaseSettings):
    """Workflow runner context loaded from GITHUB_ environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GITHUB_",
        case_sensitive=False,
        extra="ignore",
    )

    actions: bool = False
    event_name: str = ""
    event_path: Path | None = None
    sha: str = ""
    base_sha: str = ""
    head_sha: str = ""
    repository: str = ""
    api_url: str = "https://api.github.com"
    step_summary: Path | None = None
    output: Path | None = None
    workspace: Path | None = None

    @cached_property
    def event(self) -> dict[str, Any]:
        """The parsed triggering event payload, or ``{}`` when unavailable."""
        if self.event_path is None:
            return {}
        try:
            data = json.loads(self.event_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Could not read event payload %s: %s", self.event_path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    @property
    def pull_request(self) -> dict[str, Any] | None:
        pr = self.event.get("pull_request")
        return pr if isinstance(pr, dict) else None

    @property
    def pull_request_number(self) -> int | None:
        pr = self.pull_request
        if pr is None:
            return None
        number = pr.get("number")
        return number if isinstance(number, int) else None

    def _pr_sha(self, side: str) -> str:
        pr = self.pull_request or {}
        ref = pr.get(side)
        if isinstance(ref, dict):
            return str(ref.get("sha") or "")
        return ""

    @property
    def base_revision(self) -> str:
        """Base revision of the change; explicit ``GITHUB_BASE_SHA`` wins."""
        return self.base_sha or self._pr_sha("base")

    @property
    def head_revision(self) -> str:
        """Head revision of the change; explicit ``GITHUB_HEAD_SHA`` wins."""
        return self.head_sha or self._pr_sha("head")

    @property
    def owner_and_repo(self) -> tuple[str, str] | None:
        if "/" not in self.repository:
            return None
        owner, repo = self.repository.split("/", maxsplit=1)
        return owner, repo


def load_settings(**overrides: object) -> Settings:
    """Load action inputs from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info(
            "Loaded settings: base_url=%s connector_type=%s keys=%r",
            settings.base_url,
            settings.connector_type,
            settings.configurable_keys,
        )

    return settings


def load_github_context(**overrides: object) -> GitHubContext:
    """Load the workflow runner context, with optional overrides for testing."""
    return GitHubContext(**overrides)  # type: ignore[arg-type]
