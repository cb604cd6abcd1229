"""Shared fixtures for pwreport tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from pwreport.models.events import AttemptEvent, RawAnnotation, RawError, RawStep
from pwreport.models.report import AttemptDetail, CaseDetail, CaseStatus

EventFactory = Callable[..., AttemptEvent]
CaseFactory = Callable[..., CaseDetail]


# ── Event builders ───────────────────────────────────────────────


def build_event(
    title: str = "works",
    *,
    status: str | None = "passed",
    retry: int = 0,
    duration: float = 100.0,
    start_time: float | None = None,
    test_id: str | None = None,
    project: str | None = "chromium",
    suite: str = "login.spec.ts",
    errors: list[str | None] | None = None,
    steps: list[RawStep] | None = None,
    annotations: dict[str, str | None] | None = None,
    **extra: Any,
) -> AttemptEvent:
    """Build an ``AttemptEvent`` with sensible defaults."""
    title_path = [segment for segment in (project, suite, title) if segment]
    return AttemptEvent(
        title_path=title_path,
        test_id=test_id,
        project_name=project,
        status=status,
        retry=retry,
        duration=duration,
        start_time=start_time,
        errors=[RawError(message=message) for message in errors or []],
        steps=steps or [],
        annotations=[
            RawAnnotation(type=key, description=value) for key, value in (annotations or {}).items()
        ],
        **extra,
    )


def build_case(
    statuses: list[CaseStatus],
    *,
    annotations: dict[str, str] | None = None,
    case_id: str = "case",
    duration: float = 100.0,
) -> CaseDetail:
    """Build a ``CaseDetail`` whose attempts carry *statuses* in index order."""
    attempts = tuple(
        AttemptDetail(index=index, status=status, duration=duration)
        for index, status in enumerate(statuses)
    )
    return CaseDetail(
        id=case_id,
        title=case_id,
        path=case_id,
        status=attempts[-1].status if attempts else CaseStatus.SKIPPED,
        duration=duration * len(attempts),
        annotations=annotations or {},
        attempts=attempts,
    )


@pytest.fixture()
def make_event() -> EventFactory:
    return build_event


@pytest.fixture()
def make_case() -> CaseFactory:
    return build_case


# ── Playwright JSON payloads ─────────────────────────────────────


@pytest.fixture()
def playwright_results() -> dict[str, Any]:
    """A Playwright JSON report: one flaky test and one failing test."""
    return {
        "config": {
            "projects": [
                {
                    "name": "chromium",
                    "use": {
                        "browserName": "chromium",
                        "headless": True,
                        "viewport": {"width": 1280, "height": 720},
                    },
                },
            ],
        },
        "suites": [
            {
                "title": "login.spec.ts",
                "file": "login.spec.ts",
                "specs": [],
                "suites": [
                    {
                        "title": "Login",
                        "specs": [
                            {
                                "title": "signs in",
                                "id": "abc123",
                                "file": "login.spec.ts",
                                "line": 5,
                                "tests": [
                                    {
                                        "projectName": "chromium",
                                        "annotations": [],
                                        "results": [
                                            {
                                                "retry": 0,
                                                "status": "failed",
                                                "duration": 400,
                                                "startTime": "2024-01-01T00:00:00.000Z",
                                                "errors": [
                                                    {
                                                        "message": "\u001b[31mTimeout 5000ms "
                                                        "exceeded\u001b[39m",
                                                        "stack": "at login.spec.ts:9",
                                                    }
                                                ],
                                                "steps": [
                                                    {
                                                        "title": "Before Hooks",
                                                        "category": "hook",
                                                        "duration": 10,
                                                        "steps": [
                                                            {
                                                                "title": "browser.newPage",
                                                                "category": "pw:api",
                                                                "duration": 5,
                                                            }
                                                        ],
                                                    },
                                                    {
                                                        "title": "page.click(#submit)",
                                                        "category": "pw:api",
                                                        "duration": 380,
                                                        "error": {"message": "Timeout"},
                                                    },
                                                ],
                                                "attachments": [],
                                            },
                                            {
                                                "retry": 1,
                                                "status": "passed",
                                                "duration": 250,
                                                "startTime": "2024-01-01T00:00:01.000Z",
                                                "errors": [],
                                                "steps": [
                                                    {
                                                        "title": "page.click(#submit)",
                                                        "category": "pw:api",
                                                        "duration": 200,
                                                    }
                                                ],
                                                "attachments": [],
                                            },
                                        ],
                                    }
                                ],
                            },
                            {
                                "title": "rejects bad password",
                                "id": "def456",
                                "file": "login.spec.ts",
                                "line": 20,
                                "tests": [
                                    {
                                        "projectName": "chromium",
                                        "annotations": [
                                            {"type": "issue", "description": "JIRA-1"}
                                        ],
                                        "results": [
                                            {
                                                "retry": 0,
                                                "status": "failed",
                                                "duration": 900,
                                                "startTime": "2024-01-01T00:00:02.000Z",
                                                "errors": [
                                                    {"message": "locator not found, see #42"}
                                                ],
                                                "steps": [],
                                                "attachments": [
                                                    {
                                                        "name": "trace",
                                                        "contentType": "application/zip",
                                                        "path": "/nonexistent/trace.zip",
                                                    }
                                                ],
                                            }
                                        ],
                                    }
                                ],
                            },
                        ],
                    }
                ],
            }
        ],
    }
