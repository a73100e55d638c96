"""Free-text and categorical filtering over resolved items and hierarchy forests.

Every supplied predicate must hold (logical AND). A dimension whose value is
absent imposes no constraint, while ``0`` and ``False`` are real values and
constrain like any other. Filtering returns new collections and never
modifies its input.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, field_validator

from lms_progress.data_models import (
    AssessmentKind,
    AssignmentStatus,
    ExaminationStatus,
    HierarchyNode,
    LearnerActivity,
    NodeLevel,
    ResolvedItem,
    ResolvedLearner,
)

from .aggregator import rollup


def clean_filters(filters: Mapping[str, Any]) -> Dict[str, Any]:
    """Drop empty-string and None values; keep 0 and False, which are meaningful."""
    return {key: value for key, value in filters.items() if value is not None and value != ""}


def _normalize_search(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _contains(needle: str, *haystack: Optional[str]) -> bool:
    lowered = needle.lower()
    return any(lowered in (field or "").lower() for field in haystack)


class Viewer(BaseModel):
    """The signed-in supervisor whose role narrows what they may see."""

    role: str
    institution_id: Optional[str] = None
    department_id: Optional[str] = None
    class_in_charge: Optional[str] = None


def apply_role_scope(filters: Mapping[str, Any], viewer: Optional[Viewer]) -> Dict[str, Any]:
    """Clean ``filters`` and pin the dimensions the viewer's role is confined to.

    Principals see their institution, heads of department their department,
    and staff their department plus, when they are in charge of a class, that
    section. Role scope overrides whatever the caller asked for.
    """
    scoped = clean_filters(filters)
    if viewer is None:
        return scoped
    role = viewer.role.lower()
    if role == "principal" and viewer.institution_id:
        scoped["institution_id"] = viewer.institution_id
    elif role == "hod" and viewer.department_id:
        scoped["department_id"] = viewer.department_id
    elif role == "staff" and viewer.department_id:
        scoped["department_id"] = viewer.department_id
        if viewer.class_in_charge:
            scoped["section"] = viewer.class_in_charge
    return scoped


class SearchFilter(BaseModel):
    """Base for filter criteria carrying free-text search; blank text means no search."""

    search_text: Optional[str] = None

    @field_validator("search_text", mode="before")
    @classmethod
    def blank_search_is_absent(cls, value: Any) -> Any:
        return _normalize_search(value)


class ItemFilter(SearchFilter):
    """Filters for the learner-facing list of resolved items."""

    status: Optional[Union[AssignmentStatus, ExaminationStatus]] = None
    kind: Optional[AssessmentKind] = None
    subject_id: Optional[str] = None
    overdue: Optional[bool] = None

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "ItemFilter":
        return cls.model_validate(clean_filters(params))


def matches_item(item: ResolvedItem, criteria: ItemFilter) -> bool:
    if criteria.search_text is not None and not _contains(
        criteria.search_text, item.title, item.subject_name, item.subject_code, item.assessment_id
    ):
        return False
    if criteria.status is not None and item.status.value != criteria.status.value:
        return False
    if criteria.kind is not None and item.kind != criteria.kind:
        return False
    if criteria.subject_id is not None and item.subject_id != criteria.subject_id:
        return False
    if criteria.overdue is not None and item.overdue != criteria.overdue:
        return False
    return True


def filter_items(items: Iterable[ResolvedItem], criteria: Optional[ItemFilter] = None) -> List[ResolvedItem]:
    if criteria is None:
        return list(items)
    return [item for item in items if matches_item(item, criteria)]


class HierarchyFilter(SearchFilter):
    """Filters for the supervisory forest; every predicate applies per learner path."""

    institution_id: Optional[str] = None
    course_id: Optional[str] = None
    department_id: Optional[str] = None
    year: Optional[int] = None
    section: Optional[str] = None
    learner_status: Optional[LearnerActivity] = None

    @classmethod
    def from_params(
        cls, params: Mapping[str, Any], viewer: Optional[Viewer] = None
    ) -> "HierarchyFilter":
        return cls.model_validate(apply_role_scope(params, viewer))


def _learner_matches(
    criteria: HierarchyFilter,
    course: HierarchyNode,
    department: HierarchyNode,
    learner: ResolvedLearner,
) -> bool:
    if criteria.learner_status is not None and learner.activity != criteria.learner_status:
        return False
    if criteria.search_text is not None and not _contains(
        criteria.search_text,
        course.name,
        department.name,
        department.code,
        learner.name,
        learner.email,
        learner.roll_number,
    ):
        return False
    return True


def filter_hierarchy(
    forest: Iterable[HierarchyNode], criteria: Optional[HierarchyFilter] = None
) -> List[HierarchyNode]:
    """Keep the learners whose path satisfies every predicate, pruning empty branches.

    Statistics of the returned nodes are recomputed over the retained
    learners, so totals still add up within a filtered view.
    """
    forest = list(forest)
    if criteria is None:
        return forest

    result: List[HierarchyNode] = []
    for course in forest:
        if course.level is not NodeLevel.COURSE:
            raise ValueError(f"Expected course roots, got {course.level.value!r}")
        if criteria.course_id is not None and course.id != criteria.course_id:
            continue
        if criteria.institution_id is not None and course.institution_id != criteria.institution_id:
            continue
        departments: List[HierarchyNode] = []
        for department in course.children:
            if criteria.department_id is not None and department.id != criteria.department_id:
                continue
            years: List[HierarchyNode] = []
            for year in department.children:
                if criteria.year is not None and year.year != criteria.year:
                    continue
                sections: List[HierarchyNode] = []
                for section in year.children:
                    if criteria.section is not None and section.name != criteria.section:
                        continue
                    learners = [
                        learner
                        for learner in section.learners
                        if _learner_matches(criteria, course, department, learner)
                    ]
                    if learners:
                        sections.append(section.model_copy(update={"learners": learners}))
                if sections:
                    years.append(year.model_copy(update={"children": sections}))
            if years:
                departments.append(department.model_copy(update={"children": years}))
        if departments:
            result.append(rollup(course.model_copy(update={"children": departments})))
    return result
