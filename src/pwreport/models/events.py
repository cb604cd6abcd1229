"""Raw input shapes supplied by the host test runner.

Every optional field has an explicit default so that consumers can treat
absence as a defined value rather than as an error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RawStep:
    """A step or hook node as reported by the runner."""

    title: str = ""
    """Step title (e.g. ``'page.goto(https://example.com)'``)."""

    category: str | None = None
    """Runner category (``'hook'``, ``'fixture'``, ``'pw:api'``, ``'test.step'``...)."""

    duration: float | None = None
    """Step duration in milliseconds, when reported."""

    error: Any = None
    """Error payload attached to the step (any truthy value or mapping marks it failed)."""

    steps: list[RawStep] = field(default_factory=list)
    """Nested child steps."""


@dataclass
class RawAttachment:
    """Attachment reference as reported by the runner."""

    name: str | None = None
    content_type: str | None = None
    path: str | None = None


@dataclass
class RawError:
    """Error payload as reported by the runner."""

    message: str | None = None
    stack: str | None = None


@dataclass
class RawAnnotation:
    """Test annotation (``test.info().annotations``)."""

    type: str
    description: str | None = None


@dataclass
class AttemptEvent:
    """One finished execution attempt of a test case."""

    title_path: list[str]
    """Ordered title segments (project, file, describe blocks, test title)."""

    test_id: str | None = None
    """Stable runner-assigned identifier, independent of retries."""

    project_name: str | None = None
    """Name of the configured project the test ran under."""

    file: str | None = None
    """Test file path."""

    line: int | None = None
    """Line of the test declaration."""

    annotations: list[RawAnnotation] = field(default_factory=list)
    """Test annotations (type/description pairs)."""

    retry: int = 0
    """Retry index of this attempt (0 = first try)."""

    status: str | None = None
    """Raw runner status (``passed``, ``failed``, ``timedOut``, ``skipped``, ``interrupted``)."""

    duration: float = 0.0
    """Attempt duration in milliseconds."""

    start_time: float | None = None
    """Attempt start as epoch milliseconds."""

    steps: list[RawStep] = field(default_factory=list)
    """Root-level raw step forest."""

    attachments: list[RawAttachment] = field(default_factory=list)
    """Raw attachment list."""

    errors: list[RawError] = field(default_factory=list)
    """Raw error list."""

    @property
    def title(self) -> str:
        """Last title segment, i.e. the test's own title."""
        return self.title_path[-1] if self.title_path else ""


@dataclass
class ProjectSettings:
    """A configured runner project and its ``use`` options."""

    name: str
    use: dict[str, Any] = field(default_factory=dict)


@dataclass
class RunConfig:
    """Runner configuration snapshot taken at run start."""

    projects: list[ProjectSettings] = field(default_factory=list)
