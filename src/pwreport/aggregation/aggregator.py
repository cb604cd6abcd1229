"""Case aggregation — folds per-attempt events into one record per test case.

Attempts for the same case key are merged as they arrive:

* display fields (status, steps, attachments, errors) always come from the
  attempt with the highest retry index, whatever the arrival order;
* ``duration`` accumulates over every attempt, so the total cost includes
  retries;
* ``started_at`` / ``completed_at`` widen to cover all attempts.
"""

from __future__ import annotations

import base64
import dataclasses
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from pwreport.aggregation.classifier import classify_errors
from pwreport.aggregation.steps import normalize_steps
from pwreport.models.events import AttemptEvent, RawAttachment
from pwreport.models.report import (
    AttachmentSummary,
    AttemptDetail,
    CaseDetail,
    CaseStatus,
)
from pwreport.utils.format import slugify

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

PATH_SEPARATOR = " › "
DEFAULT_PROJECT_NAME = "default"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def map_status(status: str | None) -> CaseStatus:
    """Map a raw runner status; ``timedOut`` becomes failed, missing becomes skipped."""
    if not status:
        return CaseStatus.SKIPPED
    try:
        mapped = CaseStatus(status)
    except ValueError:
        logger.warning("Unknown test status %r, treating as failed", status)
        return CaseStatus.FAILED
    if mapped == CaseStatus.TIMED_OUT:
        return CaseStatus.FAILED
    return mapped


def case_key(event: AttemptEvent) -> str:
    """Stable identity of the logical test, independent of the retry index."""
    return event.test_id or slugify("-".join(event.title_path))


def collect_attachments(
    attachments: list[RawAttachment] | None, *, include_screenshots: bool
) -> tuple[AttachmentSummary, ...]:
    """Summarize raw attachments, inlining images as data URIs when enabled.

    An image that cannot be read is kept without a body.
    """
    summaries: list[AttachmentSummary] = []
    for attachment in attachments or []:
        content_type = attachment.content_type or DEFAULT_CONTENT_TYPE
        body: str | None = None
        if include_screenshots and attachment.path and content_type.startswith("image/"):
            body = _inline_image(Path(attachment.path), content_type)
        summaries.append(
            AttachmentSummary(
                name=attachment.name or attachment.content_type or "attachment",
                content_type=content_type,
                path=attachment.path,
                body=body,
            )
        )
    return tuple(summaries)


def _inline_image(path: Path, content_type: str) -> str | None:
    try:
        data = path.read_bytes()
    except OSError as exc:
        logger.debug("Skipping unreadable attachment %s: %s", path, exc)
        return None
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def build_attempt(
    event: AttemptEvent,
    *,
    bug_tracker_base_url: str | None = None,
    include_screenshots: bool = True,
) -> AttemptDetail:
    """Materialize an ``AttemptDetail`` from a raw attempt event."""
    duration = event.duration or 0.0
    completed_at = None
    if event.start_time is not None and duration:
        completed_at = event.start_time + duration
    return AttemptDetail(
        index=event.retry or 0,
        status=map_status(event.status),
        duration=duration,
        steps=normalize_steps(event.steps),
        attachments=collect_attachments(
            event.attachments, include_screenshots=include_screenshots
        ),
        errors=classify_errors(event.errors, bug_tracker_base_url),
        started_at=event.start_time,
        completed_at=completed_at,
    )


def seed_case(case_id: str, event: AttemptEvent, attempt: AttemptDetail) -> CaseDetail:
    """Create a new case seeded entirely from its first attempt."""
    location = None
    if event.file:
        location = f"{event.file}:{event.line}" if event.line is not None else event.file
    return CaseDetail(
        id=case_id,
        title=event.title,
        path=PATH_SEPARATOR.join(event.title_path),
        status=attempt.status,
        duration=attempt.duration,
        project_name=event.project_name or DEFAULT_PROJECT_NAME,
        location=location,
        annotations={
            annotation.type: annotation.description or "" for annotation in event.annotations
        },
        steps=attempt.steps,
        attachments=attempt.attachments,
        errors=attempt.errors,
        attempts=(attempt,),
        started_at=attempt.started_at,
        completed_at=attempt.completed_at,
    )


def fold_attempt(case: CaseDetail, attempt: AttemptDetail) -> CaseDetail:
    """Return *case* updated with one more attempt.

    Attempts are re-sorted by index and display fields are recomputed from
    the highest-index attempt; durations add up.
    """
    attempts = tuple(sorted((*case.attempts, attempt), key=lambda item: item.index))
    latest = attempts[-1]
    return dataclasses.replace(
        case,
        status=latest.status,
        steps=latest.steps,
        attachments=latest.attachments,
        errors=latest.errors,
        duration=case.duration + attempt.duration,
        attempts=attempts,
        started_at=_widen(case.started_at, attempt.started_at, min),
        completed_at=_widen(case.completed_at, attempt.completed_at, max),
    )


def _widen(
    current: float | None,
    candidate: float | None,
    pick: Callable[[float, float], float],
) -> float | None:
    if current is None:
        return candidate
    if candidate is None:
        return current
    return pick(current, candidate)


class CaseAggregator:
    """Owns the case map for one run and folds attempt events into it.

    Cases are returned in first-seen order.
    """

    def __init__(
        self,
        *,
        bug_tracker_base_url: str | None = None,
        include_screenshots: bool = True,
    ) -> None:
        """Initialize the aggregator.

        Args:
            bug_tracker_base_url: Base URL used to link ``#123`` references in errors.
            include_screenshots: Inline image attachments as data URIs.
        """
        self._bug_tracker_base_url = bug_tracker_base_url
        self._include_screenshots = include_screenshots
        self._cases: dict[str, CaseDetail] = {}
        self._ids: set[str] = set()

    def observe(self, event: AttemptEvent, key: str | None = None) -> CaseDetail:
        """Fold one attempt event into the case it belongs to.

        Args:
            event: The finished attempt.
            key: Case key override; derived from the event when omitted.

        Returns:
            The updated case record.
        """
        key = key or case_key(event)
        attempt = build_attempt(
            event,
            bug_tracker_base_url=self._bug_tracker_base_url,
            include_screenshots=self._include_screenshots,
        )
        existing = self._cases.get(key)
        if existing is None:
            case = seed_case(self._allocate_id(event), event, attempt)
        else:
            case = fold_attempt(existing, attempt)
            logger.debug("Merged attempt %d into case %s", attempt.index, case.id)
        self._cases[key] = case
        return case

    def _allocate_id(self, event: AttemptEvent) -> str:
        base = slugify("-".join(event.title_path)) or f"case-{len(self._cases) + 1}"
        candidate = base
        suffix = 2
        while candidate in self._ids:
            candidate = f"{base}-{suffix}"
            suffix += 1
        self._ids.add(candidate)
        return candidate

    @property
    def cases(self) -> list[CaseDetail]:
        """All cases observed so far, in first-seen order."""
        return list(self._cases.values())

    def __len__(self) -> int:
        return len(self._cases)
