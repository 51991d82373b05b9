from __future__ import annotations

from httptest.report.colors import PLAIN, Palette, default_palette
from httptest.report.console import print_summary, render_histogram, render_summary
from httptest.report.json_report import read_summary, summary_to_json, write_summary
from httptest.report.live import LiveReporter, render_live_line

__all__ = [
    "PLAIN",
    "LiveReporter",
    "Palette",
    "default_palette",
    "print_summary",
    "read_summary",
    "render_histogram",
    "render_live_line",
    "render_summary",
    "summary_to_json",
    "write_summary",
]
