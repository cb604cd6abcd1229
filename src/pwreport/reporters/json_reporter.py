"""JSON reporter — writes the assembled report as structured JSON.

Produces machine-readable output for downstream tooling alongside the
PDF artifact.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

    from pwreport.models.report import ReportData

logger = logging.getLogger(__name__)


class JSONReporter:
    """Serialize ``ReportData`` into a single JSON document."""

    def generate(self, report: ReportData, output_path: Path) -> Path:
        """Write a JSON report file.

        Args:
            report: Assembled report.
            output_path: Path to write the JSON file.

        Returns:
            The path to the generated JSON file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.generate_string(report), encoding="utf-8")
        logger.info("JSON report written to %s", output_path)
        return output_path

    def generate_string(self, report: ReportData) -> str:
        """Return the JSON report as a string."""
        return json.dumps(report_to_dict(report), indent=2, ensure_ascii=False, default=str)


def report_to_dict(report: ReportData) -> dict[str, Any]:
    """Build the JSON report structure."""
    payload = report.to_dict()
    # Inlined screenshots would dominate the document.
    for case in payload["cases"] + payload["failures"]:
        for attachment in case["attachments"]:
            attachment.pop("body", None)
        for attempt in case["attempts"]:
            for attachment in attempt["attachments"]:
                attachment.pop("body", None)
    return {
        "tool": "pwreport",
        "timestamp": datetime.now(tz=UTC).isoformat(),
        **payload,
    }
