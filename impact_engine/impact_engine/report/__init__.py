"""Report synthesis: navigation URLs, Markdown, and the JSON payload."""

from __future__ import annotations

from impact_engine.report.markdown import render_report, render_summary
from impact_engine.report.payload import build_payload, serialize_payload
from impact_engine.report.urls import PLACEHOLDER_URL, resolve_asset_url, resolve_column_url

__all__ = [
    "PLACEHOLDER_URL",
    "build_payload",
    "render_report",
    "render_summary",
    "resolve_asset_url",
    "resolve_column_url",
    "serialize_payload",
]
