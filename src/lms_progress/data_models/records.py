from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class SourceRecord(BaseModel):
    """Base for records served by the platform API.

    The API speaks camelCase while Python callers use snake_case; both are
    accepted on input. Unknown keys are ignored so additive API changes do not
    break parsing.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AssignmentDefinition(SourceRecord):
    """Assignment attached to a subject. Immutable once fetched."""

    model_config = ConfigDict(frozen=True)

    id: str
    parent_subject_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("parentSubjectId", "subjectId", "parent_subject_id")
    )
    title: str = ""
    description: str = ""
    max_score: float = Field(
        default=100, validation_alias=AliasChoices("maxScore", "maxPoints", "max_score")
    )
    due_date: Optional[datetime] = None

    @field_validator("max_score", mode="before")
    @classmethod
    def default_max_score(cls, value: Any) -> Any:
        return 100 if value is None else value

    @field_validator("title", "description", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class ExaminationDefinition(SourceRecord):
    """Examination attached to a subject; unlocked by completing the subject's content."""

    model_config = ConfigDict(frozen=True)

    id: str
    parent_subject_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("parentSubjectId", "subjectId", "parent_subject_id")
    )
    title: str = ""
    instructions: str = ""
    max_score: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("maxScore", "totalPoints", "max_score")
    )
    passing_score: float = Field(
        default=50, validation_alias=AliasChoices("passingScore", "passingPercentage", "passing_score")
    )
    time_limit: int = Field(
        default=60, validation_alias=AliasChoices("timeLimit", "duration", "time_limit")
    )

    @field_validator("passing_score", mode="before")
    @classmethod
    def default_passing_score(cls, value: Any) -> Any:
        return 50 if value is None else value

    @field_validator("time_limit", mode="before")
    @classmethod
    def default_time_limit(cls, value: Any) -> Any:
        return 60 if value is None else value

    @field_validator("title", "instructions", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


AssessmentDefinition = Union[AssignmentDefinition, ExaminationDefinition]


class SubjectEnrollment(SourceRecord):
    """One enrolled subject with its completion and assessment definitions."""

    subject_id: str
    subject_name: Optional[str] = None
    subject_code: Optional[str] = None
    completion_percentage: Optional[float] = None
    assignments: List[AssignmentDefinition] = Field(default_factory=list)
    examinations: List[ExaminationDefinition] = Field(default_factory=list)

    @field_validator("assignments", "examinations", mode="before")
    @classmethod
    def none_to_list(cls, value: Any) -> Any:
        return [] if value is None else value


class CompletionRecord(SourceRecord):
    """Content completion of one subject for one learner."""

    subject_id: str
    completion_percentage: float = 0.0

    @property
    def is_fully_completed(self) -> bool:
        return self.completion_percentage >= 100


class SubmissionRecord(SourceRecord):
    """A learner's submission for one assignment. Every field may be missing."""

    assessment_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("assessmentId", "assignmentId", "assessment_id")
    )
    submitted_at: Optional[datetime] = None
    graded_at: Optional[datetime] = None
    score: Optional[float] = None
    feedback: Optional[str] = None
    is_late: bool = False

    @field_validator("is_late", mode="before")
    @classmethod
    def none_to_false(cls, value: Any) -> Any:
        return False if value is None else value


class AttemptRecord(SourceRecord):
    """The live attempt of a learner at one examination."""

    assessment_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("assessmentId", "examinationId", "assessment_id")
    )
    attempt_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("attemptId", "id", "attempt_id"))
    status: Optional[str] = None
    total_score: Optional[float] = None
    max_score: Optional[float] = None
    percentage: Optional[float] = None
    is_passed: Optional[bool] = None
    completed_at: Optional[datetime] = None
    certificate_number: Optional[str] = None
    certificate_url: Optional[str] = None


class SubmissionStatus(SourceRecord):
    """Result of a submission-status lookup."""

    has_submitted: bool = False
    submission: Optional[SubmissionRecord] = None

    @property
    def record(self) -> Optional[SubmissionRecord]:
        if self.has_submitted and self.submission is not None:
            return self.submission
        return None


class AttemptStatus(SourceRecord):
    """Result of an attempt-status lookup."""

    has_attempt: bool = False
    attempt: Optional[AttemptRecord] = None

    @property
    def record(self) -> Optional[AttemptRecord]:
        return self.attempt


class FetchState(str, Enum):
    PENDING = "pending"
    SETTLED = "settled"


@dataclass(frozen=True)
class LookupOutcome:
    """Outcome of one per-item lookup inside a pass.

    A pending outcome means the fetch has not finished; a settled outcome with
    no record means the learner has not interacted with the item yet. A failed
    lookup settles with no record and keeps the error text for diagnostics.
    """

    state: FetchState
    record: Optional[Union[SubmissionRecord, AttemptRecord]] = None
    error: Optional[str] = None

    @classmethod
    def pending(cls) -> "LookupOutcome":
        return cls(state=FetchState.PENDING)

    @classmethod
    def settled(cls, record: Optional[Union[SubmissionRecord, AttemptRecord]] = None) -> "LookupOutcome":
        return cls(state=FetchState.SETTLED, record=record)

    @classmethod
    def failed(cls, error: str) -> "LookupOutcome":
        return cls(state=FetchState.SETTLED, error=error)

    @property
    def is_pending(self) -> bool:
        return self.state is FetchState.PENDING

    @property
    def is_failure(self) -> bool:
        return self.error is not None
