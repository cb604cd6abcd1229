"""Heuristic failure classification.

Maps a raw failure message onto a category, a severity and an optional
bug-tracker link. Patterns are checked in table order and the first match
wins, so ``timeout`` classifies as performance even though it also appears
in the infrastructure patterns.
"""

from __future__ import annotations

import logging
import re

from pwreport.models.events import RawError
from pwreport.models.report import FailureCategory, FailureSeverity, ParsedError

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "Unknown error"

# Ordered: first matching pattern wins.
CATEGORY_PATTERNS: list[tuple[FailureCategory, re.Pattern[str]]] = [
    (FailureCategory.PERFORMANCE, re.compile(r"timeout", re.IGNORECASE)),
    (FailureCategory.FUNCTIONAL, re.compile(r"not found|selector", re.IGNORECASE)),
    (FailureCategory.COMPATIBILITY, re.compile(r"browser|protocol|websocket", re.IGNORECASE)),
    (
        FailureCategory.INFRASTRUCTURE,
        re.compile(r"network|fetch|timeout|ECONN", re.IGNORECASE),
    ),
]

# Ordered: first matching pattern wins.
SEVERITY_PATTERNS: list[tuple[FailureSeverity, re.Pattern[str]]] = [
    (FailureSeverity.CRITICAL, re.compile(r"critical|crash|data loss", re.IGNORECASE)),
    (FailureSeverity.HIGH, re.compile(r"timeout|not found|detached", re.IGNORECASE)),
    (FailureSeverity.LOW, re.compile(r"flaky|retry", re.IGNORECASE)),
]

_ISSUE_REF_RE = re.compile(r"#(\d+)")


def categorize_failure(message: str | None) -> FailureCategory:
    """Return the first category whose pattern matches *message*."""
    if not message:
        return FailureCategory.UNKNOWN
    for category, pattern in CATEGORY_PATTERNS:
        if pattern.search(message):
            return category
    return FailureCategory.UNKNOWN


def classify_severity(message: str | None) -> FailureSeverity:
    """Return the first severity whose pattern matches *message* (medium otherwise)."""
    if not message:
        return FailureSeverity.MEDIUM
    for severity, pattern in SEVERITY_PATTERNS:
        if pattern.search(message):
            return severity
    return FailureSeverity.MEDIUM


def derive_issue_link(message: str | None, base_url: str | None) -> str | None:
    """Build a tracker link from the first ``#<digits>`` token in *message*.

    Returns ``None`` when no base URL is configured or no token is present.
    """
    if not base_url or not message:
        return None
    match = _ISSUE_REF_RE.search(message)
    if match is None:
        return None
    return f"{base_url.removesuffix('/')}/{match.group(1)}"


def classify_error(error: RawError, bug_tracker_base_url: str | None = None) -> ParsedError:
    """Classify a raw runner error.

    Args:
        error: The raw error payload.
        bug_tracker_base_url: Optional tracker base URL used for issue links.

    Returns:
        A ``ParsedError`` with category, severity and optional issue link.
    """
    parsed = ParsedError(
        message=error.message or UNKNOWN_ERROR_MESSAGE,
        stack=error.stack,
        category=categorize_failure(error.message),
        severity=classify_severity(error.message),
        issue_link=derive_issue_link(error.message, bug_tracker_base_url),
    )
    logger.debug(
        "Classified failure as %s/%s", parsed.category.value, parsed.severity.value
    )
    return parsed


def classify_errors(
    errors: list[RawError] | None, bug_tracker_base_url: str | None = None
) -> tuple[ParsedError, ...]:
    """Classify every error of an attempt, preserving order."""
    return tuple(classify_error(error, bug_tracker_base_url) for error in errors or [])
