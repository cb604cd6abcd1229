"""Report assembly.

Composes aggregated cases, summary, metrics, environment information,
history and defaulted narrative sections into one immutable ``ReportData``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING, Any

from pwreport import __version__
from pwreport.aggregation.metrics import derive_metrics, summarize
from pwreport.memory.history import recent_entries
from pwreport.models.report import (
    CaseStatus,
    CustomSections,
    EnvironmentInfo,
    ReportData,
    ReportMetadata,
    TestScope,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pwreport.config import ReporterOptions
    from pwreport.models.events import RunConfig
    from pwreport.models.report import CaseDetail, HistoricalEntry

logger = logging.getLogger(__name__)

NO_CASES_WARNING = "No test cases were executed."
DEFAULT_BROWSER = "chromium"

DEFAULT_TITLE = "Playwright Automation Report"
DEFAULT_AUTHOR = "Automation Bot"

DEFAULT_SCOPE: dict[str, Any] = {
    "objectives": [
        "Validate end-to-end user journeys",
        "Ensure regression stability for critical flows",
    ],
    "data_sets": ["Synthetic test data", "Seeded accounts"],
    "pass_criteria": ["All P0/P1 cases pass", "No critical regressions filed"],
    "risks": ["Flaky network environments", "3rd party dependencies"],
    "alignment": "Supports release readiness and CI quality gates",
}

DEFAULT_SECTIONS: dict[str, list[str]] = {
    "challenges": [
        "Intermittent latency from downstream APIs",
        "Maintenance of shared fixtures across suites",
    ],
    "lessons_learned": [
        "Parallelizing specs reduced suite time by 30%",
        "Centralized test data catalog improved reusability",
    ],
    "recommendations": [
        "Stabilize flaky selectors using resilient locating strategies",
        "Automate build health checks with PDF summaries in CI",
    ],
}


def _first_set(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _as_tuple(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    return tuple(str(item) for item in value or ())


def resolve_metadata(overrides: dict[str, Any]) -> ReportMetadata:
    """Fill unset metadata from environment variables, then fixed defaults."""
    env = os.environ
    return ReportMetadata(
        title=str(_first_set(overrides.get("title"), DEFAULT_TITLE)),
        author=str(
            _first_set(overrides.get("author"), env.get("GIT_AUTHOR_NAME"), DEFAULT_AUTHOR)
        ),
        build=str(_first_set(overrides.get("build"), env.get("BUILD_ID"), "local")),
        environment=str(_first_set(overrides.get("environment"), env.get("NODE_ENV"), "local")),
        project=str(_first_set(overrides.get("project"), "default")),
        release=str(_first_set(overrides.get("release"), env.get("RELEASE_NAME"), "rolling")),
        ci_link=str(_first_set(overrides.get("ci_link"), env.get("CI_JOB_URL"), "")),
        tags=_as_tuple(overrides.get("tags")),
    )


def resolve_scope(overrides: dict[str, Any]) -> TestScope:
    """Fill each unset scope field from the canned defaults."""
    merged = {
        key: _first_set(overrides.get(key), default) for key, default in DEFAULT_SCOPE.items()
    }
    return TestScope(
        objectives=_as_tuple(merged["objectives"]),
        data_sets=_as_tuple(merged["data_sets"]),
        pass_criteria=_as_tuple(merged["pass_criteria"]),
        risks=_as_tuple(merged["risks"]),
        alignment=str(merged["alignment"]),
    )


def resolve_sections(overrides: dict[str, Any]) -> CustomSections:
    """Fill each unset custom section from the canned defaults."""
    return CustomSections(
        challenges=_as_tuple(
            _first_set(overrides.get("challenges"), DEFAULT_SECTIONS["challenges"])
        ),
        lessons_learned=_as_tuple(
            _first_set(overrides.get("lessons_learned"), DEFAULT_SECTIONS["lessons_learned"])
        ),
        recommendations=_as_tuple(
            _first_set(overrides.get("recommendations"), DEFAULT_SECTIONS["recommendations"])
        ),
    )


def build_environment(config: RunConfig | None) -> EnvironmentInfo:
    """Enumerate browsers, devices and platforms from the runner configuration.

    Without configuration a single default entry (Chromium on the current
    platform) is reported.
    """
    if config is None:
        return EnvironmentInfo(
            browsers=(DEFAULT_BROWSER,),
            operating_systems=(sys.platform,),
        )

    browsers: dict[str, None] = {}
    devices: dict[str, None] = {}
    platforms: dict[str, None] = {}
    matrix: list[dict[str, str]] = []

    for project in config.projects:
        use = project.use or {}
        browser_name = use.get("browserName")
        if isinstance(browser_name, str):
            browsers[browser_name] = None
        channel = use.get("channel")
        if isinstance(channel, str):
            browsers[f"{browser_name or DEFAULT_BROWSER} ({channel})"] = None
        device = use.get("device")
        if isinstance(device, str):
            devices[device] = None

        row = {"project": project.name}
        viewport = use.get("viewport")
        if isinstance(viewport, dict):
            row["viewport"] = f"{viewport.get('width')}x{viewport.get('height')}"
        headless = use.get("headless")
        row["headless"] = "true" if headless is None else str(bool(headless)).lower()
        matrix.append(row)

        platform = use.get("platform")
        if isinstance(platform, str):
            platforms[platform] = None

    if not platforms:
        platforms[sys.platform] = None

    return EnvironmentInfo(
        browsers=tuple(browsers),
        devices=tuple(devices),
        operating_systems=tuple(platforms),
        config_matrix=tuple(matrix),
    )


def assemble_report(
    cases: Sequence[CaseDetail],
    config: RunConfig | None,
    options: ReporterOptions,
    warnings: Sequence[str],
    history: Sequence[HistoricalEntry],
    *,
    now_ms: float | None = None,
) -> ReportData:
    """Compose the immutable report handed to the renderers.

    Args:
        cases: Aggregated cases in first-seen order.
        config: Runner configuration snapshot, if any.
        options: Resolved reporter options.
        warnings: Warnings collected during the run.
        history: Full stored history, oldest first.
        now_ms: Clock override for the summary window.

    Returns:
        The assembled ``ReportData``.
    """
    warning_list = list(warnings)
    if not cases:
        logger.warning(NO_CASES_WARNING)
        if NO_CASES_WARNING not in warning_list:
            warning_list.append(NO_CASES_WARNING)

    summary = summarize(cases, now_ms=now_ms)
    return ReportData(
        options=options,
        summary=summary,
        metrics=derive_metrics(summary),
        environment=build_environment(config),
        cases=tuple(cases),
        failures=tuple(case for case in cases if case.status != CaseStatus.PASSED),
        scope=resolve_scope(options.scope),
        metadata=resolve_metadata(options.metadata),
        sections=resolve_sections(options.custom_sections),
        history=recent_entries(history),
        warnings=tuple(warning_list),
        reporter_version=__version__,
    )
