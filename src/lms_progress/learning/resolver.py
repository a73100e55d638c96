"""Lifecycle state of assessment items for one learner.

Every function here is pure: the state of an item depends only on its
definition, its subject's completion and its submission or attempt record.
The wall clock is read for the "days remaining" display value and nothing
else; callers may inject ``now`` to pin it.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from lms_progress.data_models import (
    AssessmentKind,
    AssignmentStatus,
    AttemptRecord,
    AttemptState,
    ExaminationDefinition,
    ExaminationStatus,
    LookupOutcome,
    ResolvedAssignment,
    ResolvedExamination,
    ResolvedItem,
    SubjectEnrollment,
    SubmissionRecord,
)
from lms_progress.data_models.status import all_statuses
from lms_progress.utils.numbers import round_half_up

from .flattener import FlatItem, FlattenedItems

logger = logging.getLogger(__name__)

FULL_COMPLETION = 100.0
_SECONDS_PER_DAY = 86400


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_remaining(due_date: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days until ``due_date``, rounded up; negative once overdue, None without a deadline."""
    if due_date is None:
        return None
    current = _as_utc(now or datetime.now(timezone.utc))
    delta = _as_utc(due_date) - current
    return math.ceil(delta.total_seconds() / _SECONDS_PER_DAY)


def resolve_assignment(
    item: FlatItem,
    submission: Optional[SubmissionRecord],
    *,
    completion_percentage: float = 0.0,
    now: Optional[datetime] = None,
) -> ResolvedAssignment:
    """Derive pending/submitted/graded from the submission record.

    A record with neither timestamp is malformed and stays pending.
    """
    definition = item.definition
    status = AssignmentStatus.PENDING
    if submission is not None:
        if submission.graded_at is not None:
            status = AssignmentStatus.GRADED
        elif submission.submitted_at is not None:
            status = AssignmentStatus.SUBMITTED
        else:
            logger.debug("Submission for %s has no timestamps; keeping it pending", definition.id)

    graded = status is AssignmentStatus.GRADED
    return ResolvedAssignment(
        assessment_id=definition.id,
        subject_id=item.subject_id,
        subject_name=item.subject_name,
        subject_code=item.subject_code,
        title=definition.title,
        max_score=definition.max_score,
        completion_percentage=completion_percentage,
        status=status,
        score=submission.score if graded else None,
        feedback=submission.feedback if graded else None,
        submitted_at=submission.submitted_at if submission is not None else None,
        graded_at=submission.graded_at if graded else None,
        due_date=definition.due_date,
        days_remaining=days_remaining(definition.due_date, now),
        is_late=submission.is_late if submission is not None else False,
    )


def _attempt_state(raw: Optional[str]) -> Optional[AttemptState]:
    if not raw:
        return None
    normalized = str(raw).strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return AttemptState(normalized)
    except ValueError:
        return None


def examination_scores(
    attempt: AttemptRecord, definition: ExaminationDefinition
) -> Tuple[Optional[float], Optional[float], Optional[bool]]:
    """Return (max score, percentage, passed) for a completed attempt.

    A percentage supplied by the source is used verbatim so it never diverges
    from server-side rounding. Otherwise it is computed from the scores, and
    left undefined when the max score is zero or unknown; the pass flag is
    then only what the source says. The attempt's max score wins over the
    definition's.
    """
    max_score = attempt.max_score if attempt.max_score is not None else definition.max_score
    percentage = attempt.percentage
    if percentage is None and max_score and max_score > 0 and attempt.total_score is not None:
        percentage = attempt.total_score * 100 / max_score

    is_passed = attempt.is_passed
    if is_passed is None and percentage is not None and max_score and max_score > 0:
        is_passed = percentage >= definition.passing_score
    return max_score, percentage, is_passed


def resolve_examination(
    item: FlatItem,
    attempt: Optional[AttemptRecord],
    *,
    completion_percentage: float = 0.0,
    now: Optional[datetime] = None,
) -> ResolvedExamination:
    """Derive locked/available/in_progress/completed for an examination.

    Completion gating comes first: below full completion the examination is
    locked even when an attempt already exists.
    """
    definition = item.definition
    fields = dict(
        assessment_id=definition.id,
        subject_id=item.subject_id,
        subject_name=item.subject_name,
        subject_code=item.subject_code,
        title=definition.title,
        max_score=definition.max_score,
        completion_percentage=completion_percentage,
        passing_score=definition.passing_score,
        time_limit=definition.time_limit,
    )

    if completion_percentage < FULL_COMPLETION:
        return ResolvedExamination(status=ExaminationStatus.LOCKED, **fields)
    if attempt is None:
        return ResolvedExamination(status=ExaminationStatus.AVAILABLE, **fields)

    state = _attempt_state(attempt.status)
    if state is AttemptState.IN_PROGRESS:
        return ResolvedExamination(
            status=ExaminationStatus.IN_PROGRESS, attempt_id=attempt.attempt_id, **fields
        )
    if state is AttemptState.COMPLETED:
        max_score, percentage, is_passed = examination_scores(attempt, definition)
        fields["max_score"] = max_score
        return ResolvedExamination(
            status=ExaminationStatus.COMPLETED,
            attempt_id=attempt.attempt_id,
            total_score=attempt.total_score,
            percentage=percentage,
            is_passed=is_passed,
            completed_at=attempt.completed_at,
            certificate_number=attempt.certificate_number,
            **fields,
        )

    logger.debug("Attempt for %s has unknown status %r; treating as no attempt", definition.id, attempt.status)
    return ResolvedExamination(status=ExaminationStatus.AVAILABLE, **fields)


@dataclass(frozen=True)
class Resolution:
    """Resolved items of one pass plus the ids whose lookups have not settled."""

    items: Tuple[ResolvedItem, ...]
    pending: Tuple[str, ...] = ()

    @property
    def is_settled(self) -> bool:
        return not self.pending


def resolve_items(
    flattened: FlattenedItems,
    submissions: Mapping[str, LookupOutcome],
    attempts: Mapping[str, LookupOutcome],
    *,
    now: Optional[datetime] = None,
) -> Resolution:
    """Resolve every flattened item whose lookup has settled.

    An id missing from the lookup mappings, or mapped to a pending outcome,
    has not finished fetching; it is reported in ``pending`` and not resolved,
    so the presentation can wait instead of showing a no-record default.
    """
    current = now or datetime.now(timezone.utc)
    completions = flattened.completions()
    resolved: List[ResolvedItem] = []
    pending: List[str] = []

    for item in flattened:
        completion = completions[item.subject_id].completion_percentage
        if item.kind is AssessmentKind.ASSIGNMENT:
            outcome = submissions.get(item.assessment_id)
            if outcome is None or outcome.is_pending:
                pending.append(item.assessment_id)
                continue
            record = outcome.record if isinstance(outcome.record, SubmissionRecord) else None
            resolved.append(resolve_assignment(item, record, completion_percentage=completion, now=current))
        elif item.kind is AssessmentKind.EXAMINATION:
            outcome = attempts.get(item.assessment_id)
            if outcome is None or outcome.is_pending:
                pending.append(item.assessment_id)
                continue
            record = outcome.record if isinstance(outcome.record, AttemptRecord) else None
            resolved.append(resolve_examination(item, record, completion_percentage=completion, now=current))
        else:
            raise ValueError(f"Unknown assessment kind: {item.kind!r}")

    return Resolution(items=tuple(resolved), pending=tuple(pending))


def status_counts(items: Iterable[ResolvedItem], kind: AssessmentKind) -> Dict[str, int]:
    """Count items of one kind per status; every status of the kind is present."""
    counts = Counter(item.status.value for item in items if item.kind == kind)
    return {status.value: counts.get(status.value, 0) for status in all_statuses(kind)}


class EnrollmentStats(BaseModel):
    """Headline numbers of a learner's enrolment."""

    total_subjects: int = 0
    completed_subjects: int = 0
    in_progress_subjects: int = 0
    not_started_subjects: int = 0
    average_completion: int = 0


def enrollment_stats(subjects: Iterable[SubjectEnrollment]) -> EnrollmentStats:
    percentages = [subject.completion_percentage or 0.0 for subject in subjects]
    if not percentages:
        return EnrollmentStats()
    return EnrollmentStats(
        total_subjects=len(percentages),
        completed_subjects=sum(1 for p in percentages if p >= FULL_COMPLETION),
        in_progress_subjects=sum(1 for p in percentages if 0 < p < FULL_COMPLETION),
        not_started_subjects=sum(1 for p in percentages if p <= 0),
        average_completion=round_half_up(sum(percentages) / len(percentages)),
    )
