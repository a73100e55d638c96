from __future__ import annotations

from enum import Enum
from typing import Dict, Union


class AssessmentKind(str, Enum):
    """Which family of assessment an item belongs to."""

    ASSIGNMENT = "assignment"
    EXAMINATION = "examination"


class AssignmentStatus(str, Enum):
    """Lifecycle of an assignment for one learner."""

    PENDING = "pending"
    SUBMITTED = "submitted"
    GRADED = "graded"


class ExaminationStatus(str, Enum):
    """Lifecycle of an examination for one learner, gated by subject completion."""

    LOCKED = "locked"
    AVAILABLE = "available"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class AttemptState(str, Enum):
    """Status values an examination attempt record can carry."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class LearnerActivity(str, Enum):
    """Whether a learner has engaged with at least one assessment item."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class NodeLevel(str, Enum):
    """Levels of the supervisory hierarchy, root first."""

    COURSE = "course"
    DEPARTMENT = "department"
    YEAR = "year"
    SECTION = "section"


class PerformanceBand(str, Enum):
    """Dashboard band derived from a completion percentage."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


ItemStatus = Union[AssignmentStatus, ExaminationStatus]

# Engaged: the learner has done something beyond the untouched state.
# Done: the item needs nothing further from the learner.
_ENGAGED: Dict[ItemStatus, bool] = {
    AssignmentStatus.PENDING: False,
    AssignmentStatus.SUBMITTED: True,
    AssignmentStatus.GRADED: True,
    ExaminationStatus.LOCKED: False,
    ExaminationStatus.AVAILABLE: False,
    ExaminationStatus.IN_PROGRESS: True,
    ExaminationStatus.COMPLETED: True,
}

_DONE: Dict[ItemStatus, bool] = {
    AssignmentStatus.PENDING: False,
    AssignmentStatus.SUBMITTED: True,
    AssignmentStatus.GRADED: True,
    ExaminationStatus.LOCKED: False,
    ExaminationStatus.AVAILABLE: False,
    ExaminationStatus.IN_PROGRESS: False,
    ExaminationStatus.COMPLETED: True,
}


def _check_exhaustive(table: Dict[ItemStatus, bool], name: str) -> None:
    missing = (set(AssignmentStatus) | set(ExaminationStatus)) - set(table)
    if missing:
        raise RuntimeError(f"{name} does not cover statuses: {sorted(s.value for s in missing)}")


_check_exhaustive(_ENGAGED, "_ENGAGED")
_check_exhaustive(_DONE, "_DONE")


def is_engaged(status: ItemStatus) -> bool:
    """Return True once the learner has moved an item past pending/available/locked."""
    return _ENGAGED[status]


def is_done(status: ItemStatus) -> bool:
    """Return True when an item is submitted, graded or its examination completed."""
    return _DONE[status]


def all_statuses(kind: AssessmentKind) -> tuple[ItemStatus, ...]:
    if kind is AssessmentKind.ASSIGNMENT:
        return tuple(AssignmentStatus)
    if kind is AssessmentKind.EXAMINATION:
        return tuple(ExaminationStatus)
    raise ValueError(f"Unknown assessment kind: {kind!r}")
