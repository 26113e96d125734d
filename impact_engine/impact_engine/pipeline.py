"""Sequential orchestration of one impact analysis run.

The run is a single cooperative flow: every service call, git read and
comment request is awaited in turn, in matched-task order.  External
failures degrade to empty results inside the components; anything that
escapes them is wrapped in :class:`ImpactRunError` here so the caller has
one failure type to report.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel

from impact_engine.analysis.column_matcher import ColumnImpactMatcher, reconcile_column_impacts
from impact_engine.analysis.impact_classifier import ImpactClassifier, reconcile_file_impacts
from impact_engine.analysis.task_matcher import match_changed_models
from impact_engine.config import GitHubContext, Settings
from impact_engine.diff.column_delta import extract_changed_columns
from impact_engine.git.git_client import (
    GitClientError,
    RevisionReader,
    changed_files_from_event,
    get_changed_files,
)
from impact_engine.github.actions import set_output, write_step_summary
from impact_engine.github.comments import CommentError, PullRequestCommenter
from impact_engine.lineage.client import LineageClient
from impact_engine.loader.yml_loader import extract_model_name
from impact_engine.models.analysis import ImpactAnalysis
from impact_engine.models.changes import select_model_files
from impact_engine.models.lineage import ColumnImpactSet, FileImpactSet, MatchedTask
from impact_engine.models.options import OutputOptions
from impact_engine.models.payload import ImpactPayload
from impact_engine.report.markdown import render_report
from impact_engine.report.payload import build_payload, serialize_payload

logger = logging.getLogger(__name__)

OUTPUT_NAME = "impact_markdown"


class ImpactRunError(Exception):
    """Raised when a run fails outside the degrade-to-empty paths."""


class ImpactRunResult(BaseModel):
    """Everything a run produced, for the caller to display or persist."""

    analysis: ImpactAnalysis
    payload: ImpactPayload
    payload_json: str
    markdown: str
    matched_tasks: list[MatchedTask]
    comment_id: int | None = None


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


async def discover_changed_files(
    settings: Settings,
    context: GitHubContext,
    repo_path: Path,
) -> list[str]:
    """Resolve the changed files for this run.

    Precedence: the explicit input list, then the commits of the triggering
    event, then ``git diff`` between the resolved base and head revisions.
    """
    explicit = settings.explicit_changed_files()
    if explicit:
        logger.info("Using %d explicitly listed changed file(s)", len(explicit))
        return explicit

    from_event = changed_files_from_event(context.event)
    if from_event:
        logger.info("Found %d changed file(s) in event commits", len(from_event))
        return from_event

    base, head = context.base_revision, context.head_revision
    if not (base and head):
        logger.info("No changed-file source available")
        return []

    try:
        files = await asyncio.to_thread(get_changed_files, repo_path, base, head)
    except (GitClientError, ValueError) as exc:
        logger.error("Could not diff %s..%s: %s", base, head, exc)
        return []
    logger.info("Found %d changed file(s) between %s and %s", len(files), base[:12], head[:12])
    return files


async def resolve_changed_models(
    changed_files: Sequence[str],
    reader: RevisionReader,
    head_revision: str,
    *,
    model_suffix: str = ".yml",
) -> dict[str, str]:
    """Map each changed node's model name to the file that defines it.

    The head revision is read first; when it yields nothing the working
    tree copy is used instead.
    """
    model_files: dict[str, str] = {}
    node_files = select_model_files(changed_files, model_suffix)
    logger.info("Processing %d changed node file(s)", len(node_files))

    for file_path in node_files:
        content = await reader.read(head_revision, file_path)
        source = "head"
        if not content:
            logger.warning("Could not read %s at head, trying the working tree", file_path)
            content = await reader.read_working_tree(file_path)
            source = "working tree"
            if not content:
                continue

        model_name = extract_model_name(content, file_path)
        if not model_name:
            logger.warning("Could not extract model name from %s", file_path)
            continue
        model_files[model_name] = file_path
        logger.info("Extracted model name '%s' from %s (%s)", model_name, file_path, source)

    logger.info("Found %d changed model(s): [%s]", len(model_files), ", ".join(model_files))
    return model_files


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------


async def analyse_changes(
    settings: Settings,
    changed_files: list[str],
    *,
    reader: RevisionReader,
    client: LineageClient,
    base_revision: str,
    head_revision: str,
) -> tuple[ImpactAnalysis, list[MatchedTask]]:
    """Run delta extraction, task matching and both impact passes."""
    # 1. Column deltas of changed node files.
    column_changes = await extract_changed_columns(
        changed_files,
        reader,
        base_revision,
        head_revision,
        model_suffix=settings.model_file_suffix,
    )

    # 2. Changed model names.
    model_files = await resolve_changed_models(
        changed_files,
        reader,
        head_revision,
        model_suffix=settings.model_file_suffix,
    )

    # 3. Tasks that implement the changed models.
    tasks = await client.list_tasks()
    logger.info("Retrieved %d task(s)", len(tasks))
    matched = match_changed_models(tasks, model_files, settings.connector_type)

    # 4. Per task, in task order: asset impacts, then column impacts.
    classifier = ImpactClassifier(client)
    column_matcher = ColumnImpactMatcher(client)
    file_impacts = {t.file_path: FileImpactSet(task_name=t.name) for t in matched}
    column_impacts = {t.file_path: ColumnImpactSet(task_name=t.name) for t in matched}

    for task in matched:
        await classifier.accumulate(task, file_impacts[task.file_path])
        task_columns = column_changes.for_file(task.file_path)
        if not task_columns:
            logger.info("No changed columns for task %s, skipping column-level analysis", task.name)
            continue
        await column_matcher.accumulate(task, task_columns, column_impacts[task.file_path])

    # 5. Direct precedence and de-duplication, per file.
    reconcile_file_impacts(file_impacts)
    reconcile_column_impacts(column_impacts)

    analysis = ImpactAnalysis(
        changed_files=list(changed_files),
        file_impacts=file_impacts,
        column_impacts=column_impacts,
        column_changes=column_changes,
    )
    return analysis, matched


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


async def publish_comment(
    settings: Settings,
    context: GitHubContext,
    markdown: str,
    *,
    commenter: PullRequestCommenter | None = None,
) -> int | None:
    """Upsert the report comment on the triggering pull request.

    Returns the comment id, or ``None`` when no comment was posted.  A
    failed request, or any other error raised while posting, is logged and
    never raised.
    """
    number = context.pull_request_number
    if number is None:
        logger.info("Not a pull request event; skipping comment")
        return None
    coords = context.owner_and_repo
    if coords is None:
        logger.warning("Repository %r is not owner/name; skipping comment", context.repository)
        return None

    owns = commenter is None
    if commenter is None:
        if settings.github_token is None:
            logger.warning("No GitHub token configured; skipping comment")
            return None
        owner, repo = coords
        commenter = PullRequestCommenter(
            settings.github_token.get_secret_value(),
            owner,
            repo,
            api_url=context.api_url,
            timeout=settings.request_timeout,
        )
    try:
        return await commenter.upsert(number, markdown, marker=settings.comment_marker)
    except CommentError as exc:
        logger.error("Failed to post/update comment: %s", exc)
        return None
    except Exception:
        logger.exception("Unexpected error posting comment")
        return None
    finally:
        if owns:
            await commenter.close()


def write_outputs(context: GitHubContext, markdown: str) -> None:
    """Deliver the report as the job summary and the ``impact_markdown`` output."""
    try:
        write_step_summary(context.step_summary, markdown)
        set_output(context.output, OUTPUT_NAME, markdown)
    except OSError as exc:
        raise ImpactRunError(f"Could not write workflow outputs: {exc}") from exc


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def run_impact_analysis(
    settings: Settings,
    context: GitHubContext,
    *,
    repo_path: Path,
    client: LineageClient | None = None,
    reader: RevisionReader | None = None,
    commenter: PullRequestCommenter | None = None,
    post_comment: bool = True,
    now: datetime | None = None,
) -> ImpactRunResult:
    """Run the full analysis and publish its report.

    Parameters
    ----------
    settings:
        Action inputs.
    context:
        Workflow runner context: event payload, revisions, output files.
    repo_path:
        Root of the checked-out repository.
    client, reader, commenter:
        Optional collaborators for testing; defaults are built from
        *settings* and *repo_path*.
    post_comment:
        When False the pull request comment is never attempted.
    now:
        Timestamp for the payload metadata; defaults to the current time.

    Raises
    ------
    ImpactRunError
        If the run fails for a reason other than a degraded service call
        or a failed comment post.
    """
    reader = reader or RevisionReader(repo_path)
    owns_client = client is None
    lineage = client or LineageClient(settings)
    options = OutputOptions.from_keys(settings.configurable_keys)

    try:
        changed_files = await discover_changed_files(settings, context, repo_path)
        logger.info("Found %d changed file(s)", len(changed_files))

        analysis, matched = await analyse_changes(
            settings,
            changed_files,
            reader=reader,
            client=lineage,
            base_revision=context.base_revision,
            head_revision=context.head_revision,
        )

        payload = build_payload(
            analysis,
            link_base_url=settings.link_base_url,
            base_url=settings.base_url,
            commit_sha=context.sha,
            pull_request_number=context.pull_request_number,
            configurable_keys=settings.configurable_keys,
            timestamp=now,
        )
        payload_json = serialize_payload(payload)
        markdown = render_report(
            analysis,
            options,
            settings.link_base_url,
            payload_json,
            title=settings.comment_marker,
        )
    except ImpactRunError:
        raise
    except Exception as exc:
        raise ImpactRunError(f"Impact analysis failed: {exc}") from exc
    finally:
        if owns_client:
            await lineage.close()

    comment_id = None
    if post_comment:
        comment_id = await publish_comment(settings, context, markdown, commenter=commenter)

    write_outputs(context, markdown)

    return ImpactRunResult(
        analysis=analysis,
        payload=payload,
        payload_json=payload_json,
        markdown=markdown,
        matched_tasks=matched,
        comment_id=comment_id,
    )
