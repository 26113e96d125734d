"""pipeline-impact CLI application -- Typer-based interface.

Provides the full pull request impact run used by the GitHub Action, plus
local helpers for inspecting a single file's column delta and the report
sections an option string enables.  Human-readable output goes to
*stderr* via Rich; machine-readable artefacts (the JSON payload) go to
stdout or to files on disk so that pipelines can compose cleanly.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import typer
from rich.console import Console

from cli.display import display_column_delta, display_impact_summary, display_options

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App & global state
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="pipeline-impact",
    help="Downstream impact reports for pipeline model changes in pull requests.",
    no_args_is_help=True,
)
console = Console(stderr=True)

# Mutable global options populated by the Typer callback.
_json_output: bool = False


# ---------------------------------------------------------------------------
# Callback -- global options
# ---------------------------------------------------------------------------


@app.callback()
def _global_options(
    json_mode: bool = typer.Option(
        False,
        "--json/--no-json",
        help="Emit structured JSON to stdout instead of human-readable output.",
    ),
) -> None:
    """Global options applied to every command."""
    global _json_output  # noqa: PLW0603
    _json_output = json_mode


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@app.command()
def run(
    repo: Path = typer.Option(
        Path("."),
        "--repo",
        "-r",
        help="Path to the checked-out git repository.",
        exists=True,
        file_okay=False,
        resolve_path=True,
    ),
    base: str | None = typer.Option(
        None,
        "--base",
        help="Base revision; overrides GITHUB_BASE_SHA and the pull request payload.",
    ),
    head: str | None = typer.Option(
        None,
        "--head",
        help="Head revision; overrides GITHUB_HEAD_SHA and the pull request payload.",
    ),
    json_out: Path | None = typer.Option(
        None,
        "--json-out",
        help="Also write the complete JSON payload to this file.",
    ),
    no_comment: bool = typer.Option(
        False,
        "--no-comment",
        help="Do not create or update the pull request comment.",
    ),
) -> None:
    """Analyse the triggering change and publish the impact report."""
    from impact_engine.config import load_github_context, load_settings
    from impact_engine.logging_config import configure_logging
    from impact_engine.pipeline import ImpactRunError, run_impact_analysis

    overrides: dict[str, object] = {}
    if base:
        overrides["base_sha"] = base
    if head:
        overrides["head_sha"] = head

    settings = load_settings()
    context = load_github_context(**overrides)
    configure_logging(settings, github_actions=context.actions)

    if not settings.is_lineage_configured():
        logger.error("No lineage service base URL configured (INPUT_BASE_URL)")
        console.print("[red]No lineage service base URL configured.[/red]")
        raise typer.Exit(code=3)

    try:
        result = asyncio.run(
            run_impact_analysis(
                settings,
                context,
                repo_path=repo,
                post_comment=not no_comment,
            )
        )
    except ImpactRunError as exc:
        logger.error("Run failed: %s", exc, exc_info=exc.__cause__ or exc)
        console.print(f"[red]Impact analysis failed: {exc}[/red]")
        raise typer.Exit(code=3) from exc

    if json_out is not None:
        json_out.parent.mkdir(parents=True, exist_ok=True)
        json_out.write_text(result.payload_json, encoding="utf-8")

    if _json_output:
        sys.stdout.write(result.payload_json + "\n")
    else:
        display_impact_summary(console, result)
        if json_out is not None:
            console.print(f"\nPayload written to [bold]{json_out}[/bold]")


# ---------------------------------------------------------------------------
# delta
# ---------------------------------------------------------------------------


@app.command()
def delta(
    repo: Path = typer.Argument(
        ...,
        help="Path to the git repository containing node definitions.",
        exists=True,
        file_okay=False,
        resolve_path=True,
    ),
    base: str = typer.Argument(
        ...,
        help="Base git ref (commit SHA or branch).",
    ),
    head: str = typer.Argument(
        ...,
        help="Head git ref (commit SHA or branch).",
    ),
    file_path: str = typer.Argument(
        ...,
        help="Repository-relative path of the node definition file.",
    ),
) -> None:
    """Show the columns added and removed in one node file between two refs."""
    from impact_engine.diff import compute_file_delta
    from impact_engine.git import GitClientError, get_file_at_commit, validate_repo

    try:
        validate_repo(repo)
        before = get_file_at_commit(repo, base, file_path)
        after = get_file_at_commit(repo, head, file_path)
    except (GitClientError, ValueError) as exc:
        console.print(f"[red]Error reading {file_path}: {exc}[/red]")
        raise typer.Exit(code=3) from exc

    result = compute_file_delta(file_path, before, after)
    if result is None:
        console.print(f"[yellow]{file_path} does not exist at {head}. Nothing to compare.[/yellow]")
        raise typer.Exit(code=0)
    added, removed = result

    if _json_output:
        data = {
            "file": file_path,
            "added": [c.model_dump() for c in added],
            "removed": [c.model_dump() for c in removed],
        }
        sys.stdout.write(json.dumps(data, indent=2) + "\n")
    else:
        display_column_delta(console, file_path, added, removed)


# ---------------------------------------------------------------------------
# options
# ---------------------------------------------------------------------------


@app.command()
def options(
    keys: str = typer.Argument(
        "",
        help="Comma-separated option keys, as given to the configurable_keys input.",
    ),
) -> None:
    """Show which report sections a configurable_keys string enables."""
    from impact_engine.models.options import OutputOptions

    parsed = OutputOptions.from_keys(keys)
    if _json_output:
        sys.stdout.write(json.dumps(parsed.enabled_keys()) + "\n")
    else:
        display_options(console, parsed)
