"""Report data models.

Case, attempt and step records produced by the aggregation pipeline, the
derived summary/metrics values, and the immutable ``ReportData`` aggregate
handed to the renderers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class CaseStatus(Enum):
    """Outcome of a test attempt or case."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    TIMED_OUT = "timedOut"
    INTERRUPTED = "interrupted"


class StepStatus(Enum):
    """Outcome of a single step."""

    PASSED = "passed"
    FAILED = "failed"


class FailureCategory(Enum):
    """Heuristic failure category."""

    FUNCTIONAL = "functional"
    COMPATIBILITY = "compatibility"
    PERFORMANCE = "performance"
    INFRASTRUCTURE = "infrastructure"
    FLAKY = "flaky"
    UNKNOWN = "unknown"


class FailureSeverity(Enum):
    """Heuristic failure severity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class AttachmentSummary:
    """Attachment metadata, optionally with an inlined data-URI body."""

    name: str
    content_type: str
    path: str | None = None
    body: str | None = None

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


@dataclass(frozen=True)
class ParsedError:
    """A classified failure."""

    message: str
    category: FailureCategory = FailureCategory.UNKNOWN
    severity: FailureSeverity = FailureSeverity.MEDIUM
    stack: str | None = None
    issue_link: str | None = None


@dataclass(frozen=True)
class StepDetail:
    """A display-ready step node."""

    title: str
    status: StepStatus
    category: str | None = None
    duration: float | None = None
    steps: tuple[StepDetail, ...] = ()


@dataclass(frozen=True)
class AttemptDetail:
    """One execution attempt of a test case."""

    index: int
    """Retry ordinal (0 = first try)."""

    status: CaseStatus
    duration: float
    """Attempt duration in milliseconds."""

    steps: tuple[StepDetail, ...] = ()
    attachments: tuple[AttachmentSummary, ...] = ()
    errors: tuple[ParsedError, ...] = ()
    started_at: float | None = None
    """Epoch milliseconds."""

    completed_at: float | None = None
    """Epoch milliseconds."""


@dataclass(frozen=True)
class CaseDetail:
    """One logical test case with all of its attempts folded together.

    ``status``, ``steps``, ``attachments`` and ``errors`` mirror the attempt
    with the highest index. ``duration`` is the sum over all attempts.
    """

    id: str
    title: str
    path: str
    status: CaseStatus
    duration: float
    project_name: str = "default"
    location: str | None = None
    annotations: dict[str, str] = field(default_factory=dict)
    steps: tuple[StepDetail, ...] = ()
    attachments: tuple[AttachmentSummary, ...] = ()
    errors: tuple[ParsedError, ...] = ()
    attempts: tuple[AttemptDetail, ...] = ()
    started_at: float | None = None
    completed_at: float | None = None

    @property
    def retries(self) -> int:
        """Number of attempts after the first one."""
        return max(len(self.attempts) - 1, 0)


@dataclass(frozen=True)
class SummaryStats:
    """Counts and time window over all cases of a run."""

    total: int
    passed: int
    failed: int
    skipped: int
    flaky: int
    duration_ms: float
    start_time: float
    """Epoch milliseconds."""

    end_time: float
    """Epoch milliseconds."""


@dataclass(frozen=True)
class AutomationMetrics:
    """Derived quality scores.

    ``coverage_percent`` and ``reliability_score`` are ratios of the summary
    counts. ``maintainability_index`` and ``reusability_score`` are heuristic
    scores that only penalize failures; they are not measured properties.
    """

    coverage_percent: float
    reliability_score: float
    maintainability_index: float
    reusability_score: float


@dataclass(frozen=True)
class EnvironmentInfo:
    """Browsers, devices and platforms the run was configured for."""

    browsers: tuple[str, ...] = ()
    devices: tuple[str, ...] = ()
    operating_systems: tuple[str, ...] = ()
    config_matrix: tuple[dict[str, str], ...] = ()


@dataclass(frozen=True)
class HistoricalEntry:
    """Summary of one past run, used for trend display."""

    timestamp: str
    """ISO timestamp of the run."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    duration_ms: float = 0.0
    coverage_percent: float = 0.0
    reliability_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to the on-disk JSON shape.

        Returns:
            Dictionary with camelCase keys, compatible with existing history files.
        """
        return {
            "timestamp": self.timestamp,
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "durationMs": self.duration_ms,
            "coveragePercent": self.coverage_percent,
            "reliabilityScore": self.reliability_score,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoricalEntry:
        """Create from the on-disk JSON shape.

        Accepts both camelCase and snake_case keys.

        Args:
            data: Dictionary representation.

        Returns:
            HistoricalEntry instance.
        """

        def _pick(camel: str, snake: str, default: Any) -> Any:
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        return cls(
            timestamp=str(data.get("timestamp", "")),
            total=int(data.get("total", 0)),
            passed=int(data.get("passed", 0)),
            failed=int(data.get("failed", 0)),
            skipped=int(data.get("skipped", 0)),
            duration_ms=float(_pick("durationMs", "duration_ms", 0.0)),
            coverage_percent=float(_pick("coveragePercent", "coverage_percent", 0.0)),
            reliability_score=float(_pick("reliabilityScore", "reliability_score", 0.0)),
        )


@dataclass(frozen=True)
class ReportMetadata:
    """Fully resolved report metadata."""

    title: str
    author: str
    build: str
    environment: str
    project: str
    release: str
    ci_link: str
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class TestScope:
    """Fully resolved test scope section."""

    __test__ = False

    objectives: tuple[str, ...]
    data_sets: tuple[str, ...]
    pass_criteria: tuple[str, ...]
    risks: tuple[str, ...]
    alignment: str


@dataclass(frozen=True)
class CustomSections:
    """Fully resolved free-form narrative sections."""

    challenges: tuple[str, ...]
    lessons_learned: tuple[str, ...]
    recommendations: tuple[str, ...]


@dataclass(frozen=True)
class ReportData:
    """The single immutable aggregate handed to rendering."""

    options: Any
    """Resolved ``ReporterOptions``."""

    summary: SummaryStats
    metrics: AutomationMetrics
    environment: EnvironmentInfo
    cases: tuple[CaseDetail, ...]
    failures: tuple[CaseDetail, ...]
    """Cases whose status is not ``passed``."""

    scope: TestScope
    metadata: ReportMetadata
    sections: CustomSections
    history: tuple[HistoricalEntry, ...]
    """Most recent history entries, oldest first."""

    warnings: tuple[str, ...] = ()
    reporter_version: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary.

        Returns:
            Dictionary representation with enums flattened to their values.
        """
        return _jsonable(asdict(self))


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value
