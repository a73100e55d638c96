from .hierarchy import (
    CourseGroup,
    DepartmentGroup,
    HierarchyNode,
    LearnerEntry,
    NodeStats,
    ResolvedLearner,
    SectionGroup,
    YearGroup,
)
from .records import (
    AssessmentDefinition,
    AssignmentDefinition,
    AttemptRecord,
    AttemptStatus,
    CompletionRecord,
    ExaminationDefinition,
    FetchState,
    LookupOutcome,
    SubjectEnrollment,
    SubmissionRecord,
    SubmissionStatus,
)
from .resolved import ResolvedAssignment, ResolvedExamination, ResolvedItem
from .status import (
    AssessmentKind,
    AssignmentStatus,
    AttemptState,
    ExaminationStatus,
    LearnerActivity,
    NodeLevel,
    PerformanceBand,
)

__all__ = [
    "AssessmentDefinition",
    "AssessmentKind",
    "AssignmentDefinition",
    "AssignmentStatus",
    "AttemptRecord",
    "AttemptState",
    "AttemptStatus",
    "CompletionRecord",
    "CourseGroup",
    "DepartmentGroup",
    "ExaminationDefinition",
    "ExaminationStatus",
    "FetchState",
    "HierarchyNode",
    "LearnerActivity",
    "LearnerEntry",
    "LookupOutcome",
    "NodeLevel",
    "NodeStats",
    "PerformanceBand",
    "ResolvedAssignment",
    "ResolvedExamination",
    "ResolvedItem",
    "ResolvedLearner",
    "SectionGroup",
    "SubjectEnrollment",
    "SubmissionRecord",
    "SubmissionStatus",
    "YearGroup",
]
