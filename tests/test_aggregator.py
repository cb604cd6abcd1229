"""Tests for case aggregation (folding attempts into cases)."""

from __future__ import annotations

import base64
import itertools
from typing import TYPE_CHECKING

import pytest

from pwreport.aggregation.aggregator import (
    CaseAggregator,
    build_attempt,
    case_key,
    collect_attachments,
    map_status,
)
from pwreport.models.events import RawAttachment, RawStep
from pwreport.models.report import CaseStatus, FailureCategory

if TYPE_CHECKING:
    from pathlib import Path

    from conftest import EventFactory


# ── map_status / case_key ────────────────────────────────────────


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("passed", CaseStatus.PASSED),
        ("failed", CaseStatus.FAILED),
        ("timedOut", CaseStatus.FAILED),
        ("skipped", CaseStatus.SKIPPED),
        ("interrupted", CaseStatus.INTERRUPTED),
        (None, CaseStatus.SKIPPED),
        ("exploded", CaseStatus.FAILED),
    ],
)
def test_map_status(raw: str | None, expected: CaseStatus) -> None:
    assert map_status(raw) == expected


def test_case_key_prefers_test_id(make_event: EventFactory) -> None:
    assert case_key(make_event(test_id="abc-chromium")) == "abc-chromium"


def test_case_key_falls_back_to_title_path(make_event: EventFactory) -> None:
    event = make_event("Signs In", test_id=None)
    assert case_key(event) == "chromium-login-spec-ts-signs-in"


# ── Attachments ──────────────────────────────────────────────────


class TestCollectAttachments:
    def test_image_is_inlined(self, tmp_path: Path) -> None:
        image = tmp_path / "shot.png"
        image.write_bytes(b"png-bytes")
        (summary,) = collect_attachments(
            [RawAttachment(name="screenshot", content_type="image/png", path=str(image))],
            include_screenshots=True,
        )
        encoded = base64.b64encode(b"png-bytes").decode("ascii")
        assert summary.body == f"data:image/png;base64,{encoded}"
        assert summary.is_image

    def test_screenshots_disabled(self, tmp_path: Path) -> None:
        image = tmp_path / "shot.png"
        image.write_bytes(b"png-bytes")
        (summary,) = collect_attachments(
            [RawAttachment(name="screenshot", content_type="image/png", path=str(image))],
            include_screenshots=False,
        )
        assert summary.body is None
        assert summary.path == str(image)

    def test_unreadable_image_has_no_body(self, tmp_path: Path) -> None:
        (summary,) = collect_attachments(
            [RawAttachment(content_type="image/png", path=str(tmp_path / "missing.png"))],
            include_screenshots=True,
        )
        assert summary.body is None
        assert summary.name == "image/png"

    def test_non_image_is_not_inlined(self, tmp_path: Path) -> None:
        trace = tmp_path / "trace.zip"
        trace.write_bytes(b"zip")
        (summary,) = collect_attachments(
            [RawAttachment(name="trace", content_type="application/zip", path=str(trace))],
            include_screenshots=True,
        )
        assert summary.body is None

    def test_defaults_for_missing_fields(self) -> None:
        (summary,) = collect_attachments([RawAttachment()], include_screenshots=True)
        assert summary.name == "attachment"
        assert summary.content_type == "application/octet-stream"

    def test_none_is_empty(self) -> None:
        assert collect_attachments(None, include_screenshots=True) == ()


# ── build_attempt ────────────────────────────────────────────────


def test_build_attempt_completion_time(make_event: EventFactory) -> None:
    attempt = build_attempt(make_event(start_time=1_000.0, duration=250.0))
    assert attempt.started_at == 1_000.0
    assert attempt.completed_at == 1_250.0


def test_build_attempt_without_start_time(make_event: EventFactory) -> None:
    attempt = build_attempt(make_event(start_time=None, duration=250.0))
    assert attempt.started_at is None
    assert attempt.completed_at is None


def test_build_attempt_classifies_and_normalizes(make_event: EventFactory) -> None:
    event = make_event(
        status="timedOut",
        errors=["Timeout 5000ms exceeded"],
        steps=[RawStep(title="Before Hooks", category="hook", steps=[RawStep(title="goto")])],
    )
    attempt = build_attempt(event)
    assert attempt.status == CaseStatus.FAILED
    assert attempt.errors[0].category == FailureCategory.PERFORMANCE
    assert [step.title for step in attempt.steps] == ["goto"]


# ── CaseAggregator ───────────────────────────────────────────────


class TestCaseAggregator:
    def test_single_attempt_seeds_case(self, make_event: EventFactory) -> None:
        aggregator = CaseAggregator()
        event = make_event(
            "signs in",
            test_id="t1",
            file="login.spec.ts",
            line=12,
            annotations={"issue": "JIRA-1", "slow": None},
        )
        case = aggregator.observe(event)
        assert case.id == "chromium-login-spec-ts-signs-in"
        assert case.title == "signs in"
        assert case.path == "chromium › login.spec.ts › signs in"
        assert case.location == "login.spec.ts:12"
        assert case.project_name == "chromium"
        assert case.annotations == {"issue": "JIRA-1", "slow": ""}
        assert case.retries == 0
        assert len(aggregator) == 1

    def test_location_without_line(self, make_event: EventFactory) -> None:
        case = CaseAggregator().observe(make_event(file="a.spec.ts"))
        assert case.location == "a.spec.ts"

    def test_default_project_name(self, make_event: EventFactory) -> None:
        case = CaseAggregator().observe(make_event(project=None))
        assert case.project_name == "default"

    def test_retries_fold_into_one_case(self, make_event: EventFactory) -> None:
        aggregator = CaseAggregator()
        aggregator.observe(make_event(test_id="t1", status="failed", retry=0, duration=200.0))
        case = aggregator.observe(
            make_event(test_id="t1", status="passed", retry=1, duration=300.0)
        )
        assert len(aggregator) == 1
        assert case.status == CaseStatus.PASSED
        assert case.duration == 500.0
        assert [attempt.index for attempt in case.attempts] == [0, 1]
        assert case.retries == 1

    @pytest.mark.parametrize("order", list(itertools.permutations([0, 1, 2])))
    def test_fold_is_order_independent(
        self, make_event: EventFactory, order: tuple[int, ...]
    ) -> None:
        statuses = {0: "failed", 1: "timedOut", 2: "passed"}
        durations = {0: 100.0, 1: 250.0, 2: 75.0}
        aggregator = CaseAggregator()
        for index in order:
            aggregator.observe(
                make_event(
                    test_id="t1",
                    status=statuses[index],
                    retry=index,
                    duration=durations[index],
                    errors=[f"attempt {index}"],
                )
            )
        (case,) = aggregator.cases
        assert case.duration == 425.0
        assert case.status == CaseStatus.PASSED
        assert [error.message for error in case.errors] == ["attempt 2"]
        assert [attempt.index for attempt in case.attempts] == [0, 1, 2]

    def test_latest_attempt_wins_even_when_it_arrives_first(
        self, make_event: EventFactory
    ) -> None:
        aggregator = CaseAggregator()
        aggregator.observe(make_event(test_id="t1", status="failed", retry=1, errors=["boom"]))
        case = aggregator.observe(make_event(test_id="t1", status="passed", retry=0))
        assert case.status == CaseStatus.FAILED
        assert [error.message for error in case.errors] == ["boom"]

    def test_time_window_widens(self, make_event: EventFactory) -> None:
        aggregator = CaseAggregator()
        aggregator.observe(make_event(test_id="t1", retry=0, start_time=1_000.0, duration=100.0))
        case = aggregator.observe(
            make_event(test_id="t1", retry=1, start_time=2_000.0, duration=50.0)
        )
        assert case.started_at == 1_000.0
        assert case.completed_at == 2_050.0

    def test_missing_timestamps_do_not_erase_known_ones(self, make_event: EventFactory) -> None:
        aggregator = CaseAggregator()
        aggregator.observe(make_event(test_id="t1", retry=0, start_time=1_000.0, duration=100.0))
        case = aggregator.observe(make_event(test_id="t1", retry=1, start_time=None))
        assert case.started_at == 1_000.0
        assert case.completed_at == 1_100.0

    def test_distinct_keys_with_same_title_get_unique_ids(
        self, make_event: EventFactory
    ) -> None:
        aggregator = CaseAggregator()
        first = aggregator.observe(make_event("same", test_id="a"))
        second = aggregator.observe(make_event("same", test_id="b"))
        third = aggregator.observe(make_event("same", test_id="c"))
        assert first.id == "chromium-login-spec-ts-same"
        assert second.id == "chromium-login-spec-ts-same-2"
        assert third.id == "chromium-login-spec-ts-same-3"

    def test_empty_title_path_gets_placeholder_id(self, make_event: EventFactory) -> None:
        case = CaseAggregator().observe(make_event("", project=None, suite=""))
        assert case.id == "case-1"

    def test_cases_in_first_seen_order(self, make_event: EventFactory) -> None:
        aggregator = CaseAggregator()
        aggregator.observe(make_event("b", test_id="b"))
        aggregator.observe(make_event("a", test_id="a"))
        aggregator.observe(make_event("b", test_id="b", retry=1))
        assert [case.title for case in aggregator.cases] == ["b", "a"]

    def test_explicit_key_overrides_derived_key(self, make_event: EventFactory) -> None:
        aggregator = CaseAggregator()
        aggregator.observe(make_event("one", test_id="x"), key="shared")
        aggregator.observe(make_event("two", test_id="y", retry=1), key="shared")
        assert len(aggregator) == 1

    def test_bug_tracker_link(self, make_event: EventFactory) -> None:
        aggregator = CaseAggregator(bug_tracker_base_url="https://bugs.example/")
        case = aggregator.observe(make_event(status="failed", errors=["broken, see #12"]))
        assert case.errors[0].issue_link == "https://bugs.example/12"

    def test_missing_status_is_skipped(self, make_event: EventFactory) -> None:
        case = CaseAggregator().observe(make_event(status=None))
        assert case.status == CaseStatus.SKIPPED
