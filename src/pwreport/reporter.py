"""Run orchestration.

``PdfReporter`` follows the host reporter lifecycle: ``on_begin`` once with
the run configuration, ``on_test_end`` once per finished attempt, and
``on_end`` to assemble the report and write the artifacts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from pwreport.aggregation.aggregator import CaseAggregator
from pwreport.aggregation.assembler import assemble_report
from pwreport.errors import ReportError
from pwreport.memory.history import RunHistory, build_entry
from pwreport.reporters.html import HtmlRenderer
from pwreport.reporters.json_reporter import JSONReporter
from pwreport.reporters.pdf import PdfRenderer

if TYPE_CHECKING:
    from pwreport.adapters.playwright_json import ParsedRun
    from pwreport.config import ReporterOptions
    from pwreport.models.events import AttemptEvent, RunConfig
    from pwreport.models.report import CaseDetail, HistoricalEntry, ReportData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportArtifacts:
    """Files written by a finished run."""

    pdf_path: Path
    html_path: Path | None
    """Intermediate HTML, when ``include_html`` is set."""

    json_path: Path | None
    """Machine-readable JSON, when requested."""

    report: ReportData


class PdfReporter:
    """Collects attempt events for one run and renders the final report."""

    def __init__(
        self,
        options: ReporterOptions,
        *,
        html_renderer: HtmlRenderer | None = None,
        pdf_renderer: PdfRenderer | None = None,
    ) -> None:
        """Initialize the reporter.

        Args:
            options: Resolved reporter options.
            html_renderer: HTML renderer (a default one is created when omitted).
            pdf_renderer: PDF renderer (a default one is created when omitted).
        """
        self.options = options
        self._html = html_renderer or HtmlRenderer()
        self._pdf = pdf_renderer or PdfRenderer()
        self._aggregator = CaseAggregator(
            bug_tracker_base_url=options.bug_tracker_base_url,
            include_screenshots=options.include_screenshots,
        )
        self._history = RunHistory(options.historical_data_path)
        self._config: RunConfig | None = None
        self._past_runs: list[HistoricalEntry] | None = None
        self._warnings: list[str] = []

    @property
    def cases(self) -> list[CaseDetail]:
        return self._aggregator.cases

    def warn(self, message: str) -> None:
        """Record a warning surfaced inside the report."""
        logger.warning(message)
        self._warnings.append(message)

    def on_begin(self, config: RunConfig | None) -> None:
        """Store the run configuration and load the stored history."""
        self._config = config
        self._past_runs = self._history.load()

    def on_test_end(self, event: AttemptEvent) -> CaseDetail:
        """Fold one finished attempt into its case."""
        return self._aggregator.observe(event)

    async def on_end(self, *, json_output: Path | None = None) -> ReportArtifacts:
        """Assemble the report and write every artifact.

        Args:
            json_output: Optional path for a JSON copy of the report.

        Returns:
            Paths of the written artifacts and the assembled report.

        Raises:
            ReportError: If the output directory, the PDF or the HTML file
                cannot be produced.
        """
        if self._past_runs is None:
            self._past_runs = self._history.load()
        report = assemble_report(
            self._aggregator.cases,
            self._config,
            self.options,
            self._warnings,
            self._past_runs,
        )
        html = self._html.render(report)

        output_dir = Path(self.options.output_dir)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error("Cannot create output directory %s: %s", output_dir, exc)
            raise ReportError(f"Cannot create output directory {output_dir}: {exc}") from exc

        pdf_path = await self._pdf.render(
            html, output_dir / self.options.file_name, report.metadata
        )

        html_path: Path | None = None
        if self.options.include_html:
            try:
                html_path = self._html.write(html, output_dir / self.options.html_file_name)
            except OSError as exc:
                logger.error("Cannot write HTML report: %s", exc)
                raise ReportError(f"Cannot write HTML report: {exc}") from exc

        json_path: Path | None = None
        if json_output is not None:
            try:
                json_path = JSONReporter().generate(report, json_output)
            except OSError as exc:
                logger.error("Cannot write JSON report: %s", exc)
                raise ReportError(f"Cannot write JSON report: {exc}") from exc

        if self._history.enabled:
            self._history.write([*self._past_runs, build_entry(report.summary, report.metrics)])

        return ReportArtifacts(
            pdf_path=pdf_path,
            html_path=html_path,
            json_path=json_path,
            report=report,
        )


async def run_report(
    run: ParsedRun,
    options: ReporterOptions,
    *,
    json_output: Path | None = None,
    pdf_renderer: PdfRenderer | None = None,
) -> ReportArtifacts:
    """Drive a whole parsed run through the reporter lifecycle."""
    pdf_reporter = PdfReporter(options, pdf_renderer=pdf_renderer)
    pdf_reporter.on_begin(run.config)
    for event in run.events:
        pdf_reporter.on_test_end(event)
    logger.info(
        "Aggregated %d attempts into %d cases", len(run.events), len(pdf_reporter.cases)
    )
    return await pdf_reporter.on_end(json_output=json_output)
