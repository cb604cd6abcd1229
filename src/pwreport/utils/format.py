"""Formatting and arithmetic helpers shared by the pipeline and templates."""

from __future__ import annotations

import math
import re
from datetime import datetime

_SLUG_RE = re.compile(r"[^a-z0-9]+")

_MS_PER_SECOND = 1000
_SECONDS_PER_MINUTE = 60
_MINUTES_PER_HOUR = 60


def format_duration(ms: float | None) -> str:
    """Format milliseconds as ``'1h 2m 3s'``; zero or missing renders as ``'0s'``."""
    if not ms or math.isnan(ms):
        return "0s"
    seconds = int(ms // _MS_PER_SECOND)
    minutes = seconds // _SECONDS_PER_MINUTE
    hours = minutes // _MINUTES_PER_HOUR
    remaining_seconds = seconds % _SECONDS_PER_MINUTE
    remaining_minutes = minutes % _MINUTES_PER_HOUR

    parts: list[str] = []
    if hours:
        parts.append(f"{hours}h")
    if remaining_minutes:
        parts.append(f"{remaining_minutes}m")
    if remaining_seconds or not parts:
        parts.append(f"{remaining_seconds}s")
    return " ".join(parts)


def percent(value: float, total: float) -> float:
    """Return ``value / total`` as a percentage rounded half-up to two decimals.

    A zero *total* yields ``0`` instead of raising.
    """
    if not total:
        return 0
    return math.floor(value / total * 10000 + 0.5) / 100


def clamp(value: float, low: float = 0, high: float = 100) -> float:
    """Saturate *value* into ``[low, high]``."""
    return min(max(value, low), high)


def to_datetime_string(timestamp_ms: float) -> str:
    """Render epoch milliseconds as a local date-time string."""
    return datetime.fromtimestamp(timestamp_ms / _MS_PER_SECOND).strftime("%Y-%m-%d %H:%M:%S")


def format_number(value: float) -> str:
    """Format a number with thousands separators."""
    if isinstance(value, float) and not value.is_integer():
        return f"{value:,.2f}"
    return f"{int(value):,}"


def slugify(value: str) -> str:
    """Lowercase *value* and collapse runs of non-alphanumerics into ``-``."""
    return _SLUG_RE.sub("-", value.lower()).strip("-")
