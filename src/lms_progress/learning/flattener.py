from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple, Union

from lms_progress.data_models import (
    AssessmentKind,
    AssignmentDefinition,
    CompletionRecord,
    ExaminationDefinition,
    SubjectEnrollment,
)


@dataclass(frozen=True)
class FlatItem:
    """One assessment definition together with the subject it belongs to."""

    subject_id: str
    subject_name: str
    subject_code: str
    definition: Union[AssignmentDefinition, ExaminationDefinition]

    @property
    def assessment_id(self) -> str:
        return self.definition.id

    @property
    def kind(self) -> AssessmentKind:
        if isinstance(self.definition, AssignmentDefinition):
            return AssessmentKind.ASSIGNMENT
        return AssessmentKind.EXAMINATION


class FlattenedItems:
    """Lazy, restartable view of every assessment item across enrolled subjects.

    Iteration yields subjects in their given order and, inside a subject, its
    assignments followed by its examinations, each in their given order.
    Every iteration walks the same snapshot, so repeated runs are identical.
    Missing subject names and codes become empty strings; an item is never
    dropped because of them.
    """

    def __init__(self, subjects: Iterable[SubjectEnrollment]):
        self._subjects: Tuple[SubjectEnrollment, ...] = tuple(subjects)

    def __iter__(self) -> Iterator[FlatItem]:
        for subject in self._subjects:
            name = subject.subject_name or ""
            code = subject.subject_code or ""
            for assignment in subject.assignments:
                yield FlatItem(subject.subject_id, name, code, assignment)
            for examination in subject.examinations:
                yield FlatItem(subject.subject_id, name, code, examination)

    def __len__(self) -> int:
        return sum(len(s.assignments) + len(s.examinations) for s in self._subjects)

    @property
    def subjects(self) -> Tuple[SubjectEnrollment, ...]:
        return self._subjects

    def assignments(self) -> Iterator[FlatItem]:
        return (item for item in self if item.kind is AssessmentKind.ASSIGNMENT)

    def examinations(self) -> Iterator[FlatItem]:
        return (item for item in self if item.kind is AssessmentKind.EXAMINATION)

    def completions(self) -> Dict[str, CompletionRecord]:
        """Completion record per subject id; an absent percentage counts as 0."""
        records: Dict[str, CompletionRecord] = {}
        for subject in self._subjects:
            if subject.subject_id in records:
                continue
            records[subject.subject_id] = CompletionRecord(
                subject_id=subject.subject_id,
                completion_percentage=subject.completion_percentage or 0.0,
            )
        return records

    def completion_for(self, subject_id: str) -> Optional[CompletionRecord]:
        return self.completions().get(subject_id)


def flatten_subjects(subjects: Iterable[SubjectEnrollment]) -> FlattenedItems:
    return FlattenedItems(subjects)
