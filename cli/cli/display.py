"""Rich output formatting for the pipeline-impact CLI.

All functions write to a :class:`rich.console.Console` instance (typically
bound to *stderr*) so that machine-readable output on *stdout* is never
polluted with human-readable decoration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

if TYPE_CHECKING:
    from impact_engine.models.changes import ColumnSpec
    from impact_engine.models.options import OutputOptions
    from impact_engine.pipeline import ImpactRunResult


# ---------------------------------------------------------------------------
# Run summary
# ---------------------------------------------------------------------------


def display_impact_summary(console: Console, result: ImpactRunResult) -> None:
    """Render the outcome of a run: totals panel and a per-task table.

    Parameters
    ----------
    console:
        Rich console to write to (typically stderr).
    result:
        The completed run.
    """
    summary = result.payload.summary
    header_lines = [
        f"[bold]Changed files:[/bold]     {summary.total_changed_files}",
        f"[bold]Matched tasks:[/bold]     {len(result.matched_tasks)}",
        f"[bold]Assets:[/bold]            {summary.total_direct_assets} direct, "
        f"{summary.total_indirect_assets} indirect",
        f"[bold]Columns:[/bold]           {summary.total_direct_columns} direct, "
        f"{summary.total_indirect_columns} indirect",
        f"[bold]YML columns:[/bold]       +{summary.total_yml_added} / -{summary.total_yml_removed}",
    ]
    console.print(Panel("\n".join(header_lines), title="Impact Analysis", border_style="blue"))

    if not result.matched_tasks:
        console.print("[dim]No tasks matched the changed models.[/dim]")
    else:
        table = Table(title="Matched Tasks", show_lines=False, pad_edge=True, expand=False)
        table.add_column("#", style="dim", width=4, justify="right")
        table.add_column("Task", style="bold")
        table.add_column("File")
        table.add_column("Direct", justify="right")
        table.add_column("Indirect", justify="right")
        table.add_column("Direct Cols", justify="right")
        table.add_column("Indirect Cols", justify="right")

        analysis = result.analysis
        for idx, task in enumerate(result.matched_tasks, start=1):
            assets = analysis.file_impacts.get(task.file_path)
            columns = analysis.column_impacts.get(task.file_path)
            table.add_row(
                str(idx),
                task.name,
                task.file_path,
                str(len(assets.direct)) if assets else "-",
                str(len(assets.indirect)) if assets else "-",
                str(len(columns.direct)) if columns else "-",
                str(len(columns.indirect)) if columns else "-",
            )
        console.print(table)

    if result.comment_id is not None:
        console.print(f"\nReport comment [bold]{result.comment_id}[/bold] is up to date.")


# ---------------------------------------------------------------------------
# Column delta
# ---------------------------------------------------------------------------


def display_column_delta(
    console: Console,
    file_path: str,
    added: list[ColumnSpec],
    removed: list[ColumnSpec],
) -> None:
    """Render the added and removed columns of one node file."""
    if not added and not removed:
        console.print(f"[dim]No column changes in {file_path}.[/dim]")
        return

    table = Table(title=f"Column Changes: {file_path}", show_lines=False, pad_edge=True, expand=False)
    table.add_column("Change", justify="center")
    table.add_column("Column", style="bold")
    table.add_column("Data Type")
    table.add_column("Nullable", justify="center")
    table.add_column("PK", justify="center")

    for label, style, columns in (("+", "green", added), ("-", "red", removed)):
        for col in columns:
            table.add_row(
                f"[{style}]{label}[/{style}]",
                col.name,
                col.data_type or "-",
                "yes" if col.nullable else "no",
                "yes" if col.primary_key else "",
            )

    console.print(table)
    console.print(f"\n[bold]{len(added)}[/bold] added, [bold]{len(removed)}[/bold] removed")


# ---------------------------------------------------------------------------
# Output options
# ---------------------------------------------------------------------------


def display_options(console: Console, options: OutputOptions) -> None:
    """Show which report sections an option string enables."""
    from impact_engine.models.options import OPTION_KEYS

    table = Table(title="Report Sections", show_lines=False, pad_edge=True, expand=False)
    table.add_column("Key", style="bold")
    table.add_column("Shown", justify="center")

    for key, attr in OPTION_KEYS.items():
        shown = getattr(options, attr)
        table.add_row(key, "[green]yes[/green]" if shown else "[dim]no[/dim]")

    console.print(table)
