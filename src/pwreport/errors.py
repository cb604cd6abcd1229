"""Exceptions raised by pwreport."""

from __future__ import annotations


class ReportError(Exception):
    """Fatal failure while producing a report artifact."""


class ReportInputError(ReportError):
    """Raised when run results cannot be read or decoded."""
