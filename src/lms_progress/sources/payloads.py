"""Normalisation of API payloads into typed records.

The platform wraps responses inconsistently: some endpoints return
``{"success": true, "data": {...}}``, some nest that envelope once more, and
others return the bare object or list. These helpers peel envelopes off and
turn whatever remains into records, treating malformed pieces as "no record"
instead of failing the pass.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from lms_progress.data_models import (
    AssignmentDefinition,
    AttemptRecord,
    AttemptStatus,
    CourseGroup,
    DepartmentGroup,
    ExaminationDefinition,
    LearnerEntry,
    SectionGroup,
    SubjectEnrollment,
    SubmissionRecord,
    SubmissionStatus,
    YearGroup,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

_ENVELOPE_KEYS = {"data", "success", "message", "pagination"}


def unwrap(payload: Any) -> Any:
    """Strip ``{"data": ...}`` envelopes until the payload itself remains."""
    while isinstance(payload, Mapping) and "data" in payload and set(payload) <= _ENVELOPE_KEYS:
        payload = payload["data"]
    return payload


def unwrap_list(payload: Any) -> List[Any]:
    """Return the list inside a payload, or an empty list when there is none."""
    payload = unwrap(payload)
    if isinstance(payload, list):
        return payload
    return []


def _validate_each(model: Type[ModelT], raw_items: Any, context: str) -> List[ModelT]:
    records: List[ModelT] = []
    if not isinstance(raw_items, list):
        return records
    for raw in raw_items:
        try:
            records.append(model.model_validate(raw))
        except ValidationError as exc:
            logger.warning("Skipping malformed %s record: %s", context, exc.errors()[0]["msg"])
    return records


def parse_enrollment(payload: Any) -> List[SubjectEnrollment]:
    """Parse enrolled subjects, dropping only the definitions that are unusable.

    A subject without an id cannot be attributed and is skipped. Inside a
    valid subject each definition is validated on its own, so one broken
    assignment never hides its siblings.
    """
    subjects: List[SubjectEnrollment] = []
    for raw in unwrap_list(payload):
        if not isinstance(raw, Mapping):
            continue
        header = {key: value for key, value in raw.items() if key not in ("assignments", "examinations")}
        try:
            subject = SubjectEnrollment.model_validate(header)
        except ValidationError as exc:
            logger.warning("Skipping malformed subject record: %s", exc.errors()[0]["msg"])
            continue
        assignments = _validate_each(AssignmentDefinition, raw.get("assignments"), "assignment")
        examinations = _validate_each(ExaminationDefinition, raw.get("examinations"), "examination")
        subjects.append(subject.model_copy(update={"assignments": assignments, "examinations": examinations}))
    return subjects


def parse_submission_status(payload: Any) -> SubmissionStatus:
    """Parse a submission-status response.

    A submission that is flagged but fails validation is kept as an empty
    record, which resolves to pending.
    """
    data = unwrap(payload)
    if not isinstance(data, Mapping):
        return SubmissionStatus()
    has_submitted = bool(data.get("hasSubmitted", data.get("has_submitted", False)))
    raw_submission = data.get("submission")
    if not has_submitted or raw_submission is None:
        return SubmissionStatus(has_submitted=has_submitted)
    try:
        submission = SubmissionRecord.model_validate(raw_submission)
    except ValidationError:
        logger.debug("Malformed submission record; treating as empty")
        submission = SubmissionRecord()
    return SubmissionStatus(has_submitted=True, submission=submission)


def parse_attempt_status(payload: Any) -> AttemptStatus:
    """Parse an attempt-status response.

    Some endpoints return ``{"hasAttempt": true, ...attempt fields}`` without a
    nested ``attempt``; the payload itself is then the attempt.
    """
    data = unwrap(payload)
    if not isinstance(data, Mapping):
        return AttemptStatus()
    has_attempt = bool(data.get("hasAttempt", data.get("has_attempt", False)))
    raw_attempt = data.get("attempt")
    if raw_attempt is None and has_attempt:
        raw_attempt = {key: value for key, value in data.items() if key not in ("hasAttempt", "has_attempt")}
    if raw_attempt is None:
        return AttemptStatus()
    try:
        attempt = AttemptRecord.model_validate(raw_attempt)
    except ValidationError:
        logger.debug("Malformed attempt record; treating as no attempt")
        return AttemptStatus()
    return AttemptStatus(has_attempt=True, attempt=attempt)


def _children(raw: Mapping[str, Any], aliases: Tuple[str, ...]) -> Any:
    for alias in aliases:
        if raw.get(alias) is not None:
            return raw[alias]
    return None


def _parse_group(
    model: Type[ModelT],
    raw: Any,
    children: Sequence[Tuple[str, Tuple[str, ...], Callable[[Any], List[Any]]]],
    context: str,
) -> Optional[ModelT]:
    """Validate one hierarchy level on its own, then attach its parsed children.

    Only the level's own fields decide whether it is kept; broken records
    further down are dropped where they sit.
    """
    if not isinstance(raw, Mapping):
        return None
    nested = {alias for _, aliases, _ in children for alias in aliases}
    header = {key: value for key, value in raw.items() if key not in nested}
    try:
        group = model.model_validate(header)
    except ValidationError as exc:
        logger.warning("Skipping malformed %s record: %s", context, exc.errors()[0]["msg"])
        return None
    update = {field: parse(_children(raw, aliases)) for field, aliases, parse in children}
    return group.model_copy(update=update)


def _parse_groups(raw_items: Any, parse: Callable[[Any], Optional[ModelT]]) -> List[ModelT]:
    if not isinstance(raw_items, list):
        return []
    return [group for group in map(parse, raw_items) if group is not None]


def _parse_learner(raw: Any) -> Optional[LearnerEntry]:
    # A dropped submission or attempt resolves like a missing one.
    return _parse_group(
        LearnerEntry,
        raw,
        [
            ("subjects", ("subjects",), parse_enrollment),
            ("submissions", ("submissions",), partial(_validate_each, SubmissionRecord, context="submission")),
            ("attempts", ("attempts",), partial(_validate_each, AttemptRecord, context="attempt")),
        ],
        "learner",
    )


def _parse_section(raw: Any) -> Optional[SectionGroup]:
    learners = partial(_parse_groups, parse=_parse_learner)
    return _parse_group(SectionGroup, raw, [("learners", ("learners", "students"), learners)], "section")


def _parse_year(raw: Any) -> Optional[YearGroup]:
    sections = partial(_parse_groups, parse=_parse_section)
    return _parse_group(YearGroup, raw, [("sections", ("sections",), sections)], "year")


def _parse_department(raw: Any) -> Optional[DepartmentGroup]:
    years = partial(_parse_groups, parse=_parse_year)
    return _parse_group(DepartmentGroup, raw, [("years", ("years",), years)], "department")


def _parse_course(raw: Any) -> Optional[CourseGroup]:
    departments = partial(_parse_groups, parse=_parse_department)
    return _parse_group(CourseGroup, raw, [("departments", ("departments",), departments)], "course")


def parse_hierarchy(payload: Any) -> List[CourseGroup]:
    """Parse the supervisory forest one level at a time.

    A node missing its own identity is skipped together with its subtree. A
    malformed learner, submission, attempt or definition only loses itself.
    """
    return _parse_groups(unwrap_list(payload), _parse_course)
