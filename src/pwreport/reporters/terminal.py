"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from pwreport.utils.format import format_duration, percent

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pwreport.models.report import HistoricalEntry, ReportData, SummaryStats

console = Console()


_PERFECT_RATE = 100.0
_GOOD_RATE = 80.0
_BAR_WIDTH = 40
_MAX_FAILURES_DISPLAY = 10
_MAX_MESSAGE_LENGTH = 60


def _pass_rate_color(rate: float) -> str:
    """Return a Rich color name for a given pass-rate percentage."""
    if rate >= _PERFECT_RATE:
        return "green"
    if rate >= _GOOD_RATE:
        return "yellow"
    return "red"


def _truncate(text: str, limit: int) -> str:
    first_line = text.splitlines()[0] if text else ""
    return first_line if len(first_line) <= limit else f"{first_line[: limit - 1]}…"


class CLIReporter:
    """Rich terminal output for report runs."""

    def __init__(self, target: Console | None = None) -> None:
        """Initialize the CLI reporter."""
        self.console = target or console

    def print_header(self, title: str) -> None:
        """Print a bold header."""
        self.console.print(f"\n[bold cyan]{title}[/bold cyan]\n")

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self.console.print(f"[dim]{message}[/dim]")

    def print_summary_bar(self, summary: SummaryStats) -> None:
        """Print a visual bar showing result distribution with stats."""
        if summary.total == 0:
            self.console.print("  [dim]No tests executed[/dim]")
            return

        pass_rate = percent(summary.passed, summary.total)
        rate_color = _pass_rate_color(pass_rate)
        bar = self._build_result_bar(summary)

        self.console.print()
        self.console.print(
            f"  [bold]{summary.total}[/bold] tests  {bar}  "
            f"[bold {rate_color}]{pass_rate:.0f}%[/bold {rate_color}] pass rate  "
            f"[dim]⏱ {format_duration(summary.duration_ms)}[/dim]"
        )

        parts: list[str] = []
        if summary.passed:
            parts.append(f"[green]✓ {summary.passed} passed[/green]")
        if summary.failed:
            parts.append(f"[red]✗ {summary.failed} failed[/red]")
        if summary.skipped:
            parts.append(f"[yellow]⊘ {summary.skipped} skipped[/yellow]")
        if summary.flaky:
            parts.append(f"[magenta]≈ {summary.flaky} flaky[/magenta]")

        self.console.print(f"  {'  '.join(parts)}")
        self.console.print()

    def _build_result_bar(self, summary: SummaryStats, width: int = _BAR_WIDTH) -> str:
        """Build a colored bar string proportional to result counts."""
        other = summary.total - summary.passed - summary.failed - summary.skipped
        segments = [
            (summary.passed, "green"),
            (summary.failed, "red"),
            (summary.skipped, "yellow"),
            (max(other, 0), "magenta"),
        ]
        result = ""
        used = 0
        for count, color in segments:
            n = min(round(count / summary.total * width), width - used)
            if n > 0:
                result += f"[{color}]{'█' * n}[/{color}]"
                used += n
        if used < width:
            result += f"[dim]{'░' * (width - used)}[/dim]"
        return result

    def print_report(self, report: ReportData) -> None:
        """Print the run summary, metrics, failures and warnings."""
        self.print_header(report.metadata.title)
        self.print_summary_bar(report.summary)

        metrics = Table(title="Automation Metrics", title_style="bold cyan")
        metrics.add_column("Coverage", justify="right")
        metrics.add_column("Reliability", justify="right")
        metrics.add_column("Maintainability", justify="right")
        metrics.add_column("Reusability", justify="right")
        metrics.add_row(
            f"{report.metrics.coverage_percent:.2f}%",
            f"{report.metrics.reliability_score:.2f}%",
            f"{report.metrics.maintainability_index:.0f}",
            f"{report.metrics.reusability_score:.0f}",
        )
        self.console.print(metrics)

        if report.failures:
            self.print_failures(report)

        for warning in report.warnings:
            self.print_warning(warning)

    def print_failures(self, report: ReportData) -> None:
        """Print a table of non-passing cases with their first error."""
        table = Table(title="Failures", title_style="bold red")
        table.add_column("Test", style="bold")
        table.add_column("Status", justify="center")
        table.add_column("Category")
        table.add_column("Severity")
        table.add_column("Message")

        for case in report.failures[:_MAX_FAILURES_DISPLAY]:
            error = case.errors[0] if case.errors else None
            table.add_row(
                case.path,
                case.status.value,
                error.category.value if error else "",
                error.severity.value if error else "",
                _truncate(error.message, _MAX_MESSAGE_LENGTH) if error else "",
            )
        self.console.print(table)

        hidden = len(report.failures) - _MAX_FAILURES_DISPLAY
        if hidden > 0:
            self.print_info(f"... and {hidden} more")

    def print_history(self, entries: Sequence[HistoricalEntry], label: str = "Overall") -> None:
        """Print a trend table of past runs."""
        if not entries:
            self.print_info("No history recorded yet.")
            return

        table = Table(title=f"Trend — {label}", title_style="bold cyan")
        table.add_column("Run")
        table.add_column("Total", justify="right")
        table.add_column("Passed", justify="right")
        table.add_column("Failed", justify="right")
        table.add_column("Skipped", justify="right")
        table.add_column("Duration", justify="right")
        table.add_column("Reliability", justify="right")

        for entry in entries:
            color = _pass_rate_color(entry.reliability_score)
            table.add_row(
                entry.timestamp,
                str(entry.total),
                str(entry.passed),
                str(entry.failed),
                str(entry.skipped),
                format_duration(entry.duration_ms),
                f"[{color}]{entry.reliability_score:.2f}%[/{color}]",
            )
        self.console.print(table)


reporter = CLIReporter()
