"""HTML rendering of an assembled report with Jinja2."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import Environment, FileSystemLoader, Template, select_autoescape

from pwreport.utils.format import format_duration, format_number, percent, to_datetime_string

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pwreport.models.report import HistoricalEntry, ReportData

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "report.html.j2"

# Sections rendered per report mode.
MODE_SECTIONS: dict[str, frozenset[str]] = {
    "summary": frozenset({"overview", "metrics", "trend"}),
    "defect": frozenset({"overview", "metrics", "trend", "failures"}),
    "execution": frozenset({"overview", "metrics", "trend", "environment", "cases"}),
    "full": frozenset(
        {"overview", "metrics", "trend", "environment", "scope", "failures", "cases", "sections"}
    ),
}

_CHART_WIDTH = 640
_CHART_HEIGHT = 180
_CHART_PADDING = 24


@dataclass
class TrendPoint:
    """One plotted point of the trend chart."""

    x: float
    y: float
    label: str
    value: float


class TemplateCache:
    """Lazily compiled report template, loaded once per cache instance."""

    def __init__(self, template_dir: Path = TEMPLATE_DIR, name: str = TEMPLATE_NAME) -> None:
        self._template_dir = template_dir
        self._name = name
        self._template: Template | None = None

    def get(self) -> Template:
        """Return the compiled template, compiling it on first use."""
        if self._template is None:
            env = Environment(
                loader=FileSystemLoader(str(self._template_dir)),
                autoescape=select_autoescape(["html", "xml", "j2"]),
                trim_blocks=True,
                lstrip_blocks=True,
            )
            env.filters["format_duration"] = format_duration
            env.filters["datetime"] = to_datetime_string
            env.filters["number"] = format_number
            env.globals["percent"] = percent
            self._template = env.get_template(self._name)
            logger.debug("Compiled report template %s", self._name)
        return self._template

    @property
    def loaded(self) -> bool:
        return self._template is not None


def trend_points(
    history: Sequence[HistoricalEntry],
    *,
    width: int = _CHART_WIDTH,
    height: int = _CHART_HEIGHT,
    padding: int = _CHART_PADDING,
) -> list[TrendPoint]:
    """Project reliability scores of *history* onto SVG chart coordinates."""
    if not history:
        return []
    usable_width = width - 2 * padding
    usable_height = height - 2 * padding
    step = usable_width / (len(history) - 1) if len(history) > 1 else 0
    points: list[TrendPoint] = []
    for position, entry in enumerate(history):
        score = max(0.0, min(entry.reliability_score, 100.0))
        points.append(
            TrendPoint(
                x=round(padding + position * step, 2),
                y=round(padding + usable_height * (1 - score / 100), 2),
                label=entry.timestamp[:10],
                value=entry.reliability_score,
            )
        )
    return points


class HtmlRenderer:
    """Render ``ReportData`` into a self-contained HTML document."""

    def __init__(self, cache: TemplateCache | None = None) -> None:
        self._cache = cache or TemplateCache()

    def render(self, report: ReportData) -> str:
        """Render *report* to an HTML string."""
        template = self._cache.get()
        sections = MODE_SECTIONS.get(report.options.report_type, MODE_SECTIONS["full"])
        points = trend_points(report.history)
        return template.render(
            data=report,
            sections=sections,
            theme=report.options.theme,
            trend=points,
            trend_polyline=" ".join(f"{point.x},{point.y}" for point in points),
            chart_width=_CHART_WIDTH,
            chart_height=_CHART_HEIGHT,
        )

    def write(self, html: str, path: Path) -> Path:
        """Write *html* to *path*, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding="utf-8")
        logger.info("HTML report written to %s", path)
        return path
