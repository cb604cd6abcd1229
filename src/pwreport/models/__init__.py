"""Data models for pwreport."""

from pwreport.models.events import AttemptEvent, RawAttachment, RawError, RawStep, RunConfig
from pwreport.models.report import (
    AttemptDetail,
    CaseDetail,
    CaseStatus,
    HistoricalEntry,
    ParsedError,
    ReportData,
    StepDetail,
)

__all__ = [
    "AttemptDetail",
    "AttemptEvent",
    "CaseDetail",
    "CaseStatus",
    "HistoricalEntry",
    "ParsedError",
    "RawAttachment",
    "RawError",
    "RawStep",
    "ReportData",
    "RunConfig",
    "StepDetail",
]
