"""indexnower.report: JSON и HTML отчёты по записям URL сайта."""

from __future__ import annotations

from .html_report import DEFAULT_TEMPLATE_DIR, render_html
from .json_report import render_json, summarize

__all__ = ["DEFAULT_TEMPLATE_DIR", "render_json", "render_html", "summarize"]
