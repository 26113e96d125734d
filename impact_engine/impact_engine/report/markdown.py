"""Markdown rendering of an impact report.

Section order is fixed:

1. Changed Files (always)
2. Asset level Impacts (when any asset option is on)
3. Column level Impacts (when any column option is on)
4. YML Column Changes (when its option is on)
5. Complete Impact Analysis Data (always; the JSON payload)

Within a section counts come before lists.  Each list is a collapsible
``<details>`` block titled with its item count and omitted when empty.
"""

from __future__ import annotations

from collections.abc import Iterable

from impact_engine.config import DEFAULT_COMMENT_MARKER
from impact_engine.models.analysis import ImpactAnalysis
from impact_engine.models.lineage import ColumnImpactRecord, ImpactRecord
from impact_engine.models.options import OutputOptions
from impact_engine.report.urls import PLACEHOLDER_URL, resolve_asset_url, resolve_column_url

DATA_SECTION_TITLE = "### 📎 Complete Impact Analysis Data"


def _details(title: str, items: list[str]) -> str:
    """A collapsible list block, or ``""`` when *items* is empty."""
    if not items:
        return ""
    return (
        f"\n<details>\n<summary><b>{title} ({len(items)})</b></summary>\n\n" + "\n".join(items) + "\n</details>\n"
    )


def _asset_line(record: ImpactRecord, link_base_url: str) -> str:
    url = resolve_asset_url(record, link_base_url)
    if record.connection_id and url != PLACEHOLDER_URL:
        return f"- [{record.display_name}]({url})"
    return f"- {record.display_name}"


def _column_line(record: ColumnImpactRecord, link_base_url: str) -> str:
    url = resolve_column_url(record, link_base_url)
    suffix = f" - *{record.impact_type or 'Referenced'}* ({record.data_type or 'Unknown Type'})"
    if record.connection_id and url != PLACEHOLDER_URL:
        return f"- [{record.display_name}]({url}){suffix}"
    return f"- {record.display_name}{suffix}"


def _asset_lines(records: Iterable[ImpactRecord], link_base_url: str) -> list[str]:
    return [_asset_line(r, link_base_url) for r in records]


def _column_lines(records: Iterable[ColumnImpactRecord], link_base_url: str) -> list[str]:
    return [_column_line(r, link_base_url) for r in records]


def render_changed_files(changed_files: list[str]) -> str:
    lines = ["### Changed Files"]
    if changed_files:
        lines.extend(f"- {path}" for path in changed_files)
    else:
        lines.append("- No files changed")
    return "\n".join(lines) + "\n\n"


def render_asset_section(analysis: ImpactAnalysis, options: OutputOptions, link_base_url: str) -> str:
    if not options.asset_section_enabled:
        return ""

    md = "### Asset level Impacts\n"
    if options.show_direct_asset_count:
        md += f"- **Total Directly Impacted:** {analysis.total_direct_assets}\n"
    if options.show_indirect_asset_count:
        md += f"- **Total Indirectly Impacted:** {analysis.total_indirect_assets}\n"

    if options.show_direct_asset_list:
        direct = [line for i in analysis.file_impacts.values() for line in _asset_lines(i.direct, link_base_url)]
        md += _details("Directly Impacted Assets", direct)
    if options.show_indirect_asset_list:
        indirect = [line for i in analysis.file_impacts.values() for line in _asset_lines(i.indirect, link_base_url)]
        md += _details("Indirectly Impacted Assets", indirect)

    return md + "\n"


def render_column_section(analysis: ImpactAnalysis, options: OutputOptions, link_base_url: str) -> str:
    if not options.column_section_enabled:
        return ""

    md = "### Column level Impacts\n"
    if options.show_direct_column_count:
        md += f"- **Total Directly Impacted Columns:** {analysis.total_direct_columns}\n"
    if options.show_indirect_column_count:
        md += f"- **Total Indirectly Impacted Columns:** {analysis.total_indirect_columns}\n"

    if options.show_direct_column_list:
        direct = [line for i in analysis.column_impacts.values() for line in _column_lines(i.direct, link_base_url)]
        md += _details("Directly Impacted Columns", direct)
    if options.show_indirect_column_list:
        indirect = [
            line for i in analysis.column_impacts.values() for line in _column_lines(i.indirect, link_base_url)
        ]
        md += _details("Indirectly Impacted Columns", indirect)

    return md + "\n"


def render_yml_changes(analysis: ImpactAnalysis, options: OutputOptions) -> str:
    if not options.show_yml_column_changes:
        return ""
    added = analysis.column_changes.added_names
    removed = analysis.column_changes.removed_names
    return (
        "### YML Column Changes\n"
        f"Added columns({len(added)}): {', '.join(added)}\n"
        f"Removed columns({len(removed)}): {', '.join(removed)}\n\n"
    )


def render_summary(
    analysis: ImpactAnalysis,
    options: OutputOptions,
    link_base_url: str,
    *,
    title: str = DEFAULT_COMMENT_MARKER,
) -> str:
    """The human-readable sections of the report, without the data block."""
    return (
        f"{title}\n\n"
        + render_changed_files(analysis.changed_files)
        + render_asset_section(analysis, options, link_base_url)
        + render_column_section(analysis, options, link_base_url)
        + render_yml_changes(analysis, options)
    )


def render_data_block(payload_json: str) -> str:
    """The collapsible JSON block appended to every report."""
    return (
        f"\n{DATA_SECTION_TITLE}\n"
        "<details>\n<summary><b>View Complete JSON Data</b></summary>\n\n"
        "```json\n"
        f"{payload_json}\n"
        "```\n\n"
        "*This JSON contains all impact analysis data regardless of display preferences.*\n"
        "</details>\n\n"
    )


def render_report(
    analysis: ImpactAnalysis,
    options: OutputOptions,
    link_base_url: str,
    payload_json: str,
    *,
    title: str = DEFAULT_COMMENT_MARKER,
) -> str:
    """The complete Markdown report: summary sections then the data block."""
    return render_summary(analysis, options, link_base_url, title=title) + render_data_block(payload_json)
