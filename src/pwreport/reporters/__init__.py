"""Renderers and reporters for assembled reports."""

from __future__ import annotations

from pwreport.reporters.html import HtmlRenderer, TemplateCache
from pwreport.reporters.json_reporter import JSONReporter
from pwreport.reporters.terminal import reporter

__all__ = [
    "HtmlRenderer",
    "JSONReporter",
    "TemplateCache",
    "reporter",
]
