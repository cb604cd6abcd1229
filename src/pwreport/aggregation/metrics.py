"""Summary statistics and derived quality metrics."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from pwreport.models.report import AutomationMetrics, CaseStatus, SummaryStats
from pwreport.utils.format import clamp, percent

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pwreport.models.report import CaseDetail

FLAKY_ANNOTATION = "flaky"

# Heuristic score parameters, not statistically derived.
_MAINTAINABILITY_BASE = 100
_MAINTAINABILITY_FAILURE_PENALTY = 5
_REUSABILITY_BASE = 70
_REUSABILITY_PASS_BONUS = 2
_REUSABILITY_FAILURE_PENALTY = 3
_SCORE_FLOOR = 40
_SCORE_CEILING = 100

_FAILED_STATUSES = frozenset({CaseStatus.FAILED, CaseStatus.TIMED_OUT})
_MIN_ATTEMPTS_FOR_FLAKY = 2


def is_flaky(case: CaseDetail) -> bool:
    """Return ``True`` for a case annotated as flaky or passing after a failed attempt.

    A case whose attempts all failed, or all passed, is never flaky by the
    attempt rule.
    """
    if FLAKY_ANNOTATION in case.annotations:
        return True
    if len(case.attempts) < _MIN_ATTEMPTS_FOR_FLAKY:
        return False
    attempts = sorted(case.attempts, key=lambda attempt: attempt.index)
    had_failure = any(attempt.status in _FAILED_STATUSES for attempt in attempts)
    return attempts[-1].status == CaseStatus.PASSED and had_failure


def summarize(cases: Sequence[CaseDetail], *, now_ms: float | None = None) -> SummaryStats:
    """Compute counts, total duration and the run window over *cases*.

    Cases without timestamps are left out of the window. When no case has
    timestamps the window collapses to *now_ms* (current time by default).
    """
    now = now_ms if now_ms is not None else time.time() * 1000
    starts = [case.started_at for case in cases if case.started_at is not None]
    ends = [case.completed_at for case in cases if case.completed_at is not None]
    return SummaryStats(
        total=len(cases),
        passed=sum(1 for case in cases if case.status == CaseStatus.PASSED),
        failed=sum(1 for case in cases if case.status in _FAILED_STATUSES),
        skipped=sum(1 for case in cases if case.status == CaseStatus.SKIPPED),
        flaky=sum(1 for case in cases if is_flaky(case)),
        duration_ms=sum(case.duration or 0 for case in cases),
        start_time=min(starts) if starts else now,
        end_time=max(ends) if ends else now,
    )


def derive_metrics(summary: SummaryStats) -> AutomationMetrics:
    """Derive coverage, reliability and the heuristic maintainability/reusability scores."""
    executed = summary.total - summary.skipped
    return AutomationMetrics(
        coverage_percent=clamp(percent(executed, summary.total or 1)),
        reliability_score=clamp(percent(summary.passed, executed or 1)),
        maintainability_index=clamp(
            _MAINTAINABILITY_BASE - summary.failed * _MAINTAINABILITY_FAILURE_PENALTY,
            _SCORE_FLOOR,
            _SCORE_CEILING,
        ),
        reusability_score=clamp(
            _REUSABILITY_BASE
            + summary.passed * _REUSABILITY_PASS_BONUS
            - summary.failed * _REUSABILITY_FAILURE_PENALTY,
            _SCORE_FLOOR,
            _SCORE_CEILING,
        ),
    )
