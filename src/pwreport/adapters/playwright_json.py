"""Playwright JSON reporter adapter.

Reads the output of ``npx playwright test --reporter=json`` and turns it
into a ``RunConfig`` plus one ``AttemptEvent`` per test result, in report
order (retries of a test follow each other).
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, cast

from pwreport.errors import ReportInputError
from pwreport.models.events import (
    AttemptEvent,
    ProjectSettings,
    RawAnnotation,
    RawAttachment,
    RawError,
    RawStep,
    RunConfig,
)

logger = logging.getLogger(__name__)

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")

# ── Result container ─────────────────────────────────────────────


@dataclass
class ParsedRun:
    """A decoded Playwright run."""

    config: RunConfig | None = None
    events: list[AttemptEvent] = field(default_factory=list)


# ── Entry points ─────────────────────────────────────────────────


def load_run(path: str | Path) -> ParsedRun:
    """Read and parse a Playwright JSON report file.

    Raises:
        ReportInputError: If the file is unreadable or not a JSON object.
    """
    report_path = Path(path)
    try:
        text = report_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ReportInputError(f"Cannot read results file {report_path}: {exc}") from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ReportInputError(f"Results file {report_path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ReportInputError(f"Results file {report_path} must contain a JSON object")

    return parse_run(data)


def parse_run(data: dict[str, Any]) -> ParsedRun:
    """Convert a decoded Playwright JSON report into config and attempt events."""
    run = ParsedRun(config=_parse_config(data.get("config")))

    def _walk(suite: dict[str, Any], titles: list[str]) -> None:
        suite_title = str(suite.get("title") or "")
        path = [*titles, suite_title] if suite_title else list(titles)

        for spec in cast("list[dict[str, Any]]", suite.get("specs", [])):
            run.events.extend(_spec_events(spec, path))

        for nested in cast("list[dict[str, Any]]", suite.get("suites", [])):
            _walk(nested, path)

    for suite in cast("list[dict[str, Any]]", data.get("suites", [])):
        _walk(suite, [])

    logger.info("Parsed %d attempt events from Playwright report", len(run.events))
    return run


# ── Parsing helpers ──────────────────────────────────────────────


def _parse_config(raw: Any) -> RunConfig | None:
    if not isinstance(raw, dict):
        return None
    projects: list[ProjectSettings] = []
    for project in raw.get("projects", []) or []:
        if not isinstance(project, dict):
            continue
        use = project.get("use")
        projects.append(
            ProjectSettings(
                name=str(project.get("name") or project.get("id") or ""),
                use=dict(use) if isinstance(use, dict) else {},
            )
        )
    return RunConfig(projects=projects)


def _spec_events(spec: dict[str, Any], suite_path: list[str]) -> list[AttemptEvent]:
    events: list[AttemptEvent] = []
    spec_title = str(spec.get("title") or "")
    spec_id = spec.get("id")

    for test in cast("list[dict[str, Any]]", spec.get("tests", [])):
        project_name = str(test.get("projectName") or test.get("projectId") or "")
        title_path = [segment for segment in (project_name, *suite_path, spec_title) if segment]
        annotations = [
            RawAnnotation(type=str(item["type"]), description=item.get("description"))
            for item in test.get("annotations", []) or []
            if isinstance(item, dict) and item.get("type")
        ]
        test_id = f"{spec_id}-{project_name}" if spec_id else None

        for result in cast("list[dict[str, Any]]", test.get("results", [])):
            events.append(
                AttemptEvent(
                    title_path=title_path,
                    test_id=test_id,
                    project_name=project_name or None,
                    file=spec.get("file"),
                    line=spec.get("line"),
                    annotations=annotations,
                    retry=int(result.get("retry") or 0),
                    status=result.get("status"),
                    duration=float(result.get("duration") or 0),
                    start_time=_parse_start_time(result.get("startTime")),
                    steps=[_parse_step(step) for step in result.get("steps", []) or []],
                    attachments=[
                        _parse_attachment(item) for item in result.get("attachments", []) or []
                    ],
                    errors=[_parse_error(item) for item in result.get("errors", []) or []],
                )
            )
    return events


def _parse_start_time(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return datetime.fromisoformat(str(value)).timestamp() * 1000
    except ValueError:
        logger.debug("Ignoring unparseable startTime %r", value)
        return None


def _parse_step(raw: dict[str, Any]) -> RawStep:
    return RawStep(
        title=str(raw.get("title") or ""),
        category=raw.get("category"),
        duration=raw.get("duration"),
        error=raw.get("error"),
        steps=[_parse_step(child) for child in raw.get("steps", []) or []],
    )


def _parse_attachment(raw: dict[str, Any]) -> RawAttachment:
    return RawAttachment(
        name=raw.get("name"),
        content_type=raw.get("contentType"),
        path=raw.get("path"),
    )


def _parse_error(raw: dict[str, Any]) -> RawError:
    message = raw.get("message")
    if not message and "value" in raw:
        message = str(raw.get("value", ""))
    stack = raw.get("stack")
    return RawError(
        message=_strip_ansi(message) if message else None,
        stack=_strip_ansi(stack) if stack else None,
    )


def _strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)
