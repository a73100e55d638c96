from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .status import AssessmentKind, AssignmentStatus, ExaminationStatus


class ResolvedItemBase(BaseModel):
    """Fields shared by every resolved assessment item."""

    model_config = ConfigDict(frozen=True)

    assessment_id: str
    subject_id: str
    subject_name: str = ""
    subject_code: str = ""
    title: str = ""
    max_score: Optional[float] = None
    completion_percentage: float = 0.0


class ResolvedAssignment(ResolvedItemBase):
    """Assignment state for one learner at computation time."""

    kind: Literal[AssessmentKind.ASSIGNMENT] = AssessmentKind.ASSIGNMENT
    status: AssignmentStatus
    score: Optional[float] = None
    feedback: Optional[str] = None
    submitted_at: Optional[datetime] = None
    graded_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    days_remaining: Optional[int] = None
    is_late: bool = False

    @property
    def derived_score(self) -> Optional[float]:
        return self.score

    @property
    def overdue(self) -> bool:
        return (
            self.status is AssignmentStatus.PENDING
            and self.days_remaining is not None
            and self.days_remaining < 0
        )


class ResolvedExamination(ResolvedItemBase):
    """Examination state for one learner at computation time."""

    kind: Literal[AssessmentKind.EXAMINATION] = AssessmentKind.EXAMINATION
    status: ExaminationStatus
    passing_score: float = 50
    time_limit: Optional[int] = None
    attempt_id: Optional[str] = None
    total_score: Optional[float] = None
    percentage: Optional[float] = None
    is_passed: Optional[bool] = None
    completed_at: Optional[datetime] = None
    certificate_number: Optional[str] = None

    @property
    def derived_score(self) -> Optional[float]:
        return self.total_score

    @property
    def overdue(self) -> bool:
        return False


ResolvedItem = Annotated[
    Union[ResolvedAssignment, ResolvedExamination],
    Field(discriminator="kind"),
]
