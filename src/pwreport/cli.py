"""pwreport CLI — top-level command group."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console

from pwreport import __version__
from pwreport.adapters.playwright_json import load_run
from pwreport.config import (
    CONFIG_FILENAME,
    REPORT_TYPES,
    THEMES,
    load_config,
    load_options,
    validate_options,
)
from pwreport.errors import ReportError
from pwreport.memory.history import DISPLAY_LIMIT, RunHistory, recent_entries
from pwreport.reporter import run_report
from pwreport.reporters.terminal import reporter

logger = logging.getLogger(__name__)
console = Console()

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_PATH_OPTION = click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help=f"Project root directory (where {CONFIG_FILENAME} lives).",
)


def _build_overrides(**kwargs: Any) -> dict[str, Any]:
    """Translate CLI flags into option overrides; unset flags are left out."""
    overrides: dict[str, Any] = {}
    for key in ("output_dir", "file_name", "theme", "report_type", "trend_label"):
        if kwargs.get(key) is not None:
            overrides[key] = kwargs[key]
    if kwargs.get("bug_tracker_url") is not None:
        overrides["bug_tracker_base_url"] = kwargs["bug_tracker_url"]
    if kwargs.get("no_history"):
        overrides["historical_data_path"] = None
    elif kwargs.get("history") is not None:
        overrides["historical_data_path"] = kwargs["history"]
    if kwargs.get("no_screenshots"):
        overrides["include_screenshots"] = False
    if kwargs.get("no_html"):
        overrides["include_html"] = False
    if kwargs.get("fast"):
        overrides["fast_mode"] = True
    return overrides


@click.group()
@click.version_option(version=__version__, prog_name="pwreport")
def cli() -> None:
    """pwreport — PDF reports for Playwright test runs."""


@cli.command()
@click.argument("results", type=click.Path(exists=True, dir_okay=False))
@_PATH_OPTION
@click.option("--output-dir", type=str, default=None, help="Directory for the report files.")
@click.option("--file-name", type=str, default=None, help="PDF file name.")
@click.option("--theme", type=click.Choice(THEMES), default=None, help="Visual theme.")
@click.option(
    "--report-type",
    type=click.Choice(REPORT_TYPES),
    default=None,
    help="Which sections the report contains.",
)
@click.option("--history", type=str, default=None, help="History JSON file.")
@click.option("--no-history", is_flag=True, help="Do not read or write run history.")
@click.option("--no-screenshots", is_flag=True, help="Do not inline image attachments.")
@click.option("--no-html", is_flag=True, help="Do not keep the intermediate HTML file.")
@click.option("--fast", is_flag=True, help="Fast mode: no screenshots, HTML or history.")
@click.option(
    "--bug-tracker-url",
    type=str,
    default=None,
    help="Base URL used to link '#123' references in failure messages.",
)
@click.option("--trend-label", type=str, default=None, help="Label of the trend series.")
@click.option(
    "--json-output",
    type=click.Path(dir_okay=False),
    default=None,
    help="Also write the assembled report as JSON to this path.",
)
@click.option("--verbose", is_flag=True, help="Enable debug logging.")
def build(results: str, path: str, **kwargs: Any) -> None:
    """Build a PDF report from a Playwright JSON results file.

    Example:
      npx playwright test --reporter=json > results.json
      pwreport build results.json --theme dark
    """
    if kwargs.get("verbose"):
        logging.basicConfig(level=logging.DEBUG, format=_LOG_FORMAT)

    reporter.print_header("pwreport build")

    try:
        options = load_options(path, _build_overrides(**kwargs))
    except (OSError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    json_output = kwargs.get("json_output")
    try:
        run = load_run(results)
        reporter.print_info(f"Loaded {len(run.events)} test attempts from {results}")
        artifacts = asyncio.run(
            run_report(run, options, json_output=Path(json_output) if json_output else None)
        )
    except ReportError as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    reporter.print_report(artifacts.report)
    reporter.print_success(f"PDF report written to {artifacts.pdf_path}")
    if artifacts.html_path is not None:
        reporter.print_info(f"HTML report written to {artifacts.html_path}")
    if artifacts.json_path is not None:
        reporter.print_info(f"JSON report written to {artifacts.json_path}")


@cli.group("config")
def config_group() -> None:
    """Inspect `.pwreport.yml` configuration."""


@config_group.command("show")
@_PATH_OPTION
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
def config_show(path: str, *, as_json: bool) -> None:
    """Display the resolved reporter options.

    Example:
      pwreport config show
      pwreport config show --json-output
    """
    try:
        options = load_options(path)
    except (OSError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    options_dict = asdict(options)
    if as_json:
        click.echo(json.dumps(options_dict, indent=2))
    else:
        console.print()
        console.print("[bold cyan]Configuration:[/bold cyan]")
        console.print()
        click.echo(yaml.safe_dump(options_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@_PATH_OPTION
def config_validate(path: str) -> None:
    """Validate `.pwreport.yml`.

    Example:
      pwreport config validate
    """
    try:
        raw = load_config(path)
    except (OSError, yaml.YAMLError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    errors = validate_options(raw)

    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    console.print()
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    console.print()
    raise click.Abort


@cli.command()
@_PATH_OPTION
@click.option(
    "--file",
    "history_file",
    type=click.Path(dir_okay=False),
    default=None,
    help="History JSON file (defaults to the configured path).",
)
@click.option(
    "--limit",
    type=click.IntRange(min=1),
    default=DISPLAY_LIMIT,
    show_default=True,
    help="Number of most recent runs to show.",
)
def history(path: str, history_file: str | None, limit: int) -> None:
    """Show the trend of recent runs."""
    if history_file is None:
        try:
            options = load_options(path)
        except (OSError, yaml.YAMLError) as e:
            reporter.print_error(f"Failed to load configuration: {e}")
            raise click.Abort from e
        if not options.history_enabled:
            reporter.print_warning("History is disabled in the configuration.")
            return
        trend_label = options.trend_label
        store = RunHistory(options.historical_data_path)
    else:
        trend_label = "Overall"
        store = RunHistory(history_file)

    reporter.print_history(recent_entries(store.load(), limit), trend_label)
