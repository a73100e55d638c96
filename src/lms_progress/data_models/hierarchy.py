from __future__ import annotations

from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .records import AttemptRecord, SourceRecord, SubjectEnrollment, SubmissionRecord
from .resolved import ResolvedItem
from .status import LearnerActivity, NodeLevel


class LearnerEntry(SourceRecord):
    """A learner row in the supervisory hierarchy, with their raw records."""

    id: str
    name: str = ""
    email: str = ""
    roll_number: str = ""
    subjects: List[SubjectEnrollment] = Field(default_factory=list)
    submissions: List[SubmissionRecord] = Field(default_factory=list)
    attempts: List[AttemptRecord] = Field(default_factory=list)

    @field_validator("name", "email", "roll_number", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class SectionGroup(SourceRecord):
    name: str = Field(validation_alias=AliasChoices("name", "section"))
    learners: List[LearnerEntry] = Field(
        default_factory=list, validation_alias=AliasChoices("learners", "students")
    )


class YearGroup(SourceRecord):
    year: int
    sections: List[SectionGroup] = Field(default_factory=list)


class DepartmentGroup(SourceRecord):
    id: str = Field(validation_alias=AliasChoices("id", "departmentId"))
    name: str = Field(default="", validation_alias=AliasChoices("name", "departmentName"))
    code: str = Field(default="", validation_alias=AliasChoices("code", "departmentCode"))
    years: List[YearGroup] = Field(default_factory=list)


class CourseGroup(SourceRecord):
    """Root of one hierarchy tree as returned by the hierarchy source."""

    id: str = Field(validation_alias=AliasChoices("id", "courseId"))
    name: str = Field(default="", validation_alias=AliasChoices("name", "courseName"))
    institution_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("institutionId", "collegeId", "institution_id")
    )
    departments: List[DepartmentGroup] = Field(default_factory=list)


class ResolvedLearner(BaseModel):
    """A learner with the resolved state of every assessment item they hold."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    email: str = ""
    roll_number: str = ""
    items: List[ResolvedItem] = Field(default_factory=list)
    activity: LearnerActivity = LearnerActivity.INACTIVE
    fully_participating: bool = False


class NodeStats(BaseModel):
    """Raw counts and the derived completion percentage of a hierarchy node."""

    model_config = ConfigDict(frozen=True)

    total_learners: int = 0
    active_learners: int = 0
    participating_learners: int = 0
    completion_percentage: int = 0

    @property
    def pending_learners(self) -> int:
        return max(0, self.total_learners - self.participating_learners)


class HierarchyNode(BaseModel):
    """An aggregation point of the supervisory hierarchy.

    Sections hold learners directly; every other level holds child nodes.
    Nodes are rebuilt on each pass and never updated in place.
    """

    model_config = ConfigDict(frozen=True)

    level: NodeLevel
    id: str
    name: str = ""
    code: str = ""
    year: Optional[int] = None
    institution_id: Optional[str] = None
    children: List["HierarchyNode"] = Field(default_factory=list)
    learners: List[ResolvedLearner] = Field(default_factory=list)
    stats: NodeStats = Field(default_factory=NodeStats)
