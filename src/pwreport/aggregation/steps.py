"""Step tree normalization.

Turns the runner's raw step forest into display-ready ``StepDetail`` nodes.
Hook and fixture nodes are elided and their children spliced into the
parent's position, so filtering never drops useful descendants.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pwreport.models.events import RawStep
from pwreport.models.report import StepDetail, StepStatus

HOOK_KEYWORDS = ("beforeall", "afterall", "beforeeach", "aftereach")
IGNORED_STEP_CATEGORIES = frozenset({"hook", "fixture"})


def normalize_steps(forest: Iterable[RawStep | StepDetail] | None) -> tuple[StepDetail, ...]:
    """Normalize a step forest depth-first.

    Surviving siblings keep their input order. Already normalized
    ``StepDetail`` nodes are accepted, which makes the operation idempotent.

    Args:
        forest: Root-level steps (``None`` is treated as empty).

    Returns:
        The filtered, display-ready step tree.
    """
    if not forest:
        return ()
    normalized: list[StepDetail] = []
    for node in forest:
        normalized.extend(_normalize_node(node))
    return tuple(normalized)


def is_hook_step(step: RawStep | StepDetail) -> bool:
    """Return ``True`` when *step* is a hook/fixture node that should be elided."""
    category = (step.category or "").lower()
    if category in IGNORED_STEP_CATEGORIES:
        return True
    title = (step.title or "").lower()
    return any(keyword in title for keyword in HOOK_KEYWORDS)


def _normalize_node(step: RawStep | StepDetail) -> tuple[StepDetail, ...]:
    children = normalize_steps(step.steps)
    if is_hook_step(step):
        return children
    return (
        StepDetail(
            title=step.title,
            status=_step_status(step),
            category=step.category,
            duration=step.duration,
            steps=children,
        ),
    )


def _step_status(step: RawStep | StepDetail) -> StepStatus:
    if isinstance(step, StepDetail):
        return step.status
    return StepStatus.FAILED if _has_error(step.error) else StepStatus.PASSED


def _has_error(error: Any) -> bool:
    # An empty mapping still carries an error; scalars count when truthy.
    if isinstance(error, (dict, list)):
        return True
    return bool(error)
