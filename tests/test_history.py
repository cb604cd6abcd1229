"""Tests for run history storage."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from pwreport.memory.history import DISPLAY_LIMIT, RunHistory, build_entry, recent_entries
from pwreport.models.report import AutomationMetrics, HistoricalEntry, SummaryStats

if TYPE_CHECKING:
    from pathlib import Path


def _entry(n: int) -> HistoricalEntry:
    return HistoricalEntry(
        timestamp=f"2024-01-{n:02d}T00:00:00+00:00",
        total=n,
        passed=n,
        duration_ms=float(n * 1000),
        coverage_percent=100.0,
        reliability_score=100.0,
    )


# ── Loading ──────────────────────────────────────────────────────


class TestLoad:
    def test_missing_file(self, tmp_path: Path) -> None:
        assert RunHistory(tmp_path / "history.json").load() == []

    def test_corrupt_json(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        path.write_text("{not json", encoding="utf-8")
        assert RunHistory(path).load() == []

    def test_non_array_is_discarded(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        path.write_text(json.dumps({"timestamp": "x"}), encoding="utf-8")
        assert RunHistory(path).load() == []

    def test_non_object_items_are_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        path.write_text(
            json.dumps([42, "junk", {"timestamp": "t1", "total": 3, "durationMs": 10}]),
            encoding="utf-8",
        )
        entries = RunHistory(path).load()
        assert len(entries) == 1
        assert entries[0].timestamp == "t1"
        assert entries[0].total == 3
        assert entries[0].duration_ms == 10.0

    def test_snake_case_keys_accepted(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        path.write_text(
            json.dumps([{"timestamp": "t", "reliability_score": 87.5}]), encoding="utf-8"
        )
        assert RunHistory(path).load()[0].reliability_score == 87.5

    def test_disabled_history(self) -> None:
        history = RunHistory(None)
        assert not history.enabled
        assert history.path is None
        assert history.load() == []


# ── Writing ──────────────────────────────────────────────────────


class TestWrite:
    def test_round_trip_uses_camel_case(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "history.json"
        history = RunHistory(path)
        assert history.write([_entry(1), _entry(2)])

        raw = json.loads(path.read_text(encoding="utf-8"))
        assert raw[0]["durationMs"] == 1000.0
        assert raw[1]["reliabilityScore"] == 100.0
        assert history.load() == [_entry(1), _entry(2)]

    def test_write_is_unbounded(self, tmp_path: Path) -> None:
        path = tmp_path / "history.json"
        RunHistory(path).write([_entry(n) for n in range(1, 31)])
        assert len(json.loads(path.read_text(encoding="utf-8"))) == 30

    def test_write_failure_is_not_fatal(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        assert RunHistory(blocker / "history.json").write([_entry(1)]) is False

    def test_disabled_write_is_noop(self) -> None:
        assert RunHistory(None).write([_entry(1)]) is False

    def test_append(self, tmp_path: Path) -> None:
        history = RunHistory(tmp_path / "history.json")
        history.append(_entry(1))
        entries = history.append(_entry(2))
        assert [entry.total for entry in entries] == [1, 2]
        assert len(history.load()) == 2


# ── Trimming and entries ─────────────────────────────────────────


def test_recent_entries_keeps_last_twenty_in_order() -> None:
    entries = [_entry(n) for n in range(1, 26)]
    recent = recent_entries(entries)
    assert len(recent) == DISPLAY_LIMIT == 20
    assert [entry.total for entry in recent] == list(range(6, 26))


def test_recent_entries_short_history() -> None:
    entries = [_entry(1), _entry(2)]
    assert recent_entries(entries) == (entries[0], entries[1])
    assert recent_entries(entries, 0) == ()


def test_build_entry() -> None:
    summary = SummaryStats(
        total=4,
        passed=3,
        failed=1,
        skipped=0,
        flaky=1,
        duration_ms=2500.0,
        start_time=0.0,
        end_time=2500.0,
    )
    metrics = AutomationMetrics(
        coverage_percent=100.0,
        reliability_score=75.0,
        maintainability_index=95.0,
        reusability_score=73.0,
    )
    entry = build_entry(summary, metrics, timestamp=datetime(2024, 5, 1, tzinfo=UTC))
    assert entry == HistoricalEntry(
        timestamp="2024-05-01T00:00:00+00:00",
        total=4,
        passed=3,
        failed=1,
        skipped=0,
        duration_ms=2500.0,
        coverage_percent=100.0,
        reliability_score=75.0,
    )
