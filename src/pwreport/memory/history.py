"""Run history storage.

History is a flat JSON array of ``HistoricalEntry`` objects. It is best-effort
auxiliary data: a missing, unreadable or malformed file reads as an empty
history and never fails the run. Writes are read-then-overwrite with a single
writer per run.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from pwreport.models.report import HistoricalEntry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pwreport.models.report import AutomationMetrics, SummaryStats

logger = logging.getLogger(__name__)

# Number of most recent entries surfaced to the report.
DISPLAY_LIMIT = 20


def recent_entries(
    entries: Sequence[HistoricalEntry], limit: int = DISPLAY_LIMIT
) -> tuple[HistoricalEntry, ...]:
    """Return the most recent *limit* entries in chronological order."""
    if limit <= 0:
        return ()
    return tuple(entries[-limit:])


def build_entry(
    summary: SummaryStats,
    metrics: AutomationMetrics,
    *,
    timestamp: datetime | None = None,
) -> HistoricalEntry:
    """Build the history entry recorded for a finished run."""
    moment = timestamp or datetime.now(UTC)
    return HistoricalEntry(
        timestamp=moment.isoformat(),
        total=summary.total,
        passed=summary.passed,
        failed=summary.failed,
        skipped=summary.skipped,
        duration_ms=summary.duration_ms,
        coverage_percent=metrics.coverage_percent,
        reliability_score=metrics.reliability_score,
    )


class RunHistory:
    """Reads and rewrites the history JSON file.

    A ``None`` path disables history: loads return nothing and writes are no-ops.
    """

    def __init__(self, path: str | Path | None) -> None:
        """Initialize the history store.

        Args:
            path: Location of the history file, or ``None`` to disable history.
        """
        self._path = Path(path).resolve() if path else None

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def enabled(self) -> bool:
        return self._path is not None

    def load(self) -> list[HistoricalEntry]:
        """Load the full stored history, oldest first.

        Returns:
            All entries, or an empty list when the file is absent, unreadable
            or does not contain a JSON array. Non-object items are skipped.
        """
        if self._path is None:
            return []
        if not self._path.exists():
            logger.debug("No history file at %s", self._path)
            return []

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable history file %s: %s", self._path, exc)
            return []

        if not isinstance(data, list):
            logger.warning("Ignoring history file %s: expected a JSON array", self._path)
            return []

        entries: list[HistoricalEntry] = []
        for position, item in enumerate(data):
            if not isinstance(item, dict):
                logger.debug("Skipping malformed history item %d in %s", position, self._path)
                continue
            try:
                entries.append(HistoricalEntry.from_dict(item))
            except (TypeError, ValueError) as exc:
                logger.debug("Skipping malformed history item %d: %s", position, exc)
        logger.info("Loaded %d history entries from %s", len(entries), self._path)
        return entries

    def write(self, entries: Sequence[HistoricalEntry]) -> bool:
        """Overwrite the history file with *entries* (unbounded).

        The parent directory is created when missing.

        Returns:
            ``True`` when the file was written, ``False`` when history is
            disabled or the write failed.
        """
        if self._path is None:
            return False
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps([entry.to_dict() for entry in entries], indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
        except OSError as exc:
            logger.error("Failed to write history to %s: %s", self._path, exc)
            return False
        logger.info("Saved %d history entries to %s", len(entries), self._path)
        return True

    def append(self, entry: HistoricalEntry) -> list[HistoricalEntry]:
        """Append *entry* to the stored history (read-then-overwrite).

        Returns:
            The full history including *entry*.
        """
        entries = [*self.load(), entry]
        self.write(entries)
        return entries
