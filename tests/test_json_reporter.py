"""Tests for the JSON reporter."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from pwreport.aggregation.aggregator import CaseAggregator
from pwreport.aggregation.assembler import assemble_report
from pwreport.config import resolve_options
from pwreport.models.events import RawAttachment
from pwreport.reporters.json_reporter import JSONReporter, report_to_dict

if TYPE_CHECKING:
    from pathlib import Path

    from conftest import EventFactory
    from pwreport.models.report import ReportData


@pytest.fixture
def reporter() -> JSONReporter:
    return JSONReporter()


@pytest.fixture
def sample_report(make_event: EventFactory, tmp_path: Path) -> ReportData:
    image = tmp_path / "shot.png"
    image.write_bytes(b"png")
    aggregator = CaseAggregator()
    aggregator.observe(make_event("add", test_id="1", status="passed", duration=200.0))
    aggregator.observe(
        make_event(
            "divide",
            test_id="2",
            status="failed",
            duration=100.0,
            errors=["ZeroDivisionError"],
            attachments=[
                RawAttachment(name="screenshot", content_type="image/png", path=str(image))
            ],
        )
    )
    return assemble_report(aggregator.cases, None, resolve_options(), [], [])


def test_generate_file(reporter: JSONReporter, sample_report: ReportData, tmp_path: Path) -> None:
    output = tmp_path / "nested" / "report.json"
    result_path = reporter.generate(sample_report, output)
    assert result_path == output
    assert output.exists()

    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["tool"] == "pwreport"
    assert "timestamp" in data


def test_generate_string(reporter: JSONReporter, sample_report: ReportData) -> None:
    data = json.loads(reporter.generate_string(sample_report))
    assert data["summary"]["total"] == 2
    assert data["summary"]["failed"] == 1
    assert data["metrics"]["reliability_score"] == 50.0
    assert [case["status"] for case in data["cases"]] == ["passed", "failed"]
    assert data["failures"][0]["errors"][0]["category"] == "unknown"
    assert data["options"]["report_type"] == "full"


def test_attachment_bodies_are_stripped(sample_report: ReportData) -> None:
    assert sample_report.failures[0].attachments[0].body is not None
    data = report_to_dict(sample_report)
    (attachment,) = data["failures"][0]["attachments"]
    assert "body" not in attachment
    assert attachment["name"] == "screenshot"
    assert "body" not in data["cases"][1]["attempts"][0]["attachments"][0]
    # The report itself is left untouched.
    assert sample_report.failures[0].attachments[0].body is not None
