"""Tests for item and hierarchy filtering, search and role scoping."""

from __future__ import annotations

import json
from datetime import timedelta

import pytest

from lms_progress.data_models import (
    AssessmentKind,
    AssignmentStatus,
    ExaminationStatus,
    LearnerActivity,
    NodeLevel,
    ResolvedAssignment,
    ResolvedExamination,
)
from lms_progress.learning import (
    HierarchyFilter,
    ItemFilter,
    Viewer,
    aggregate,
    apply_role_scope,
    clean_filters,
    filter_hierarchy,
    filter_items,
)
from lms_progress.learning.aggregator import iter_nodes
from lms_progress.sources.payloads import parse_hierarchy


@pytest.fixture
def items(now):
    return [
        ResolvedAssignment(
            assessment_id="asg-1",
            subject_id="sub-math",
            subject_name="Mathematics",
            subject_code="MA101",
            title="Matrix Worksheet",
            status=AssignmentStatus.PENDING,
            due_date=now - timedelta(days=2),
            days_remaining=-2,
        ),
        ResolvedAssignment(
            assessment_id="asg-2",
            subject_id="sub-phys",
            subject_name="Physics",
            subject_code="PH101",
            title="Optics Report",
            status=AssignmentStatus.SUBMITTED,
        ),
        ResolvedExamination(
            assessment_id="exm-1",
            subject_id="sub-math",
            subject_name="Mathematics",
            subject_code="MA101",
            title="Mathematics Final",
            status=ExaminationStatus.LOCKED,
        ),
    ]


@pytest.fixture
def forest(sample_fixture, now):
    with sample_fixture.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return aggregate(parse_hierarchy(payload["hierarchy"]), now=now)


def _ids(items):
    return [item.assessment_id for item in items]


def test_clean_filters_keeps_zero_and_false():
    cleaned = clean_filters({"search_text": "", "year": 0, "overdue": False, "section": None, "kind": "exam"})

    assert cleaned == {"year": 0, "overdue": False, "kind": "exam"}


def test_no_filter_returns_everything(items):
    assert _ids(filter_items(items)) == ["asg-1", "asg-2", "exm-1"]
    assert _ids(filter_items(items, ItemFilter())) == ["asg-1", "asg-2", "exm-1"]


def test_search_is_case_insensitive_over_fixed_fields(items):
    assert _ids(filter_items(items, ItemFilter(search_text="matrix"))) == ["asg-1"]
    assert _ids(filter_items(items, ItemFilter(search_text="ph101"))) == ["asg-2"]
    assert _ids(filter_items(items, ItemFilter(search_text="MATHEMATICS"))) == ["asg-1", "exm-1"]
    assert _ids(filter_items(items, ItemFilter(search_text="exm-"))) == ["exm-1"]


def test_blank_search_imposes_no_constraint(items):
    criteria = ItemFilter(search_text="   ")

    assert criteria.search_text is None
    assert len(filter_items(items, criteria)) == 3


def test_filters_intersect(items):
    """Combined predicates return the intersection of the single-predicate results."""
    by_subject = set(_ids(filter_items(items, ItemFilter(subject_id="sub-math"))))
    by_kind = set(_ids(filter_items(items, ItemFilter(kind=AssessmentKind.ASSIGNMENT))))

    combined = filter_items(items, ItemFilter(subject_id="sub-math", kind=AssessmentKind.ASSIGNMENT))

    assert set(_ids(combined)) == by_subject & by_kind == {"asg-1"}


def test_overdue_false_is_a_real_constraint(items):
    criteria = ItemFilter.from_params({"overdue": False, "search_text": ""})

    assert _ids(filter_items(items, criteria)) == ["asg-2", "exm-1"]
    assert _ids(filter_items(items, ItemFilter(overdue=True))) == ["asg-1"]


def test_status_filter_and_input_untouched(items):
    snapshot = list(items)

    result = filter_items(items, ItemFilter.from_params({"status": "locked"}))

    assert _ids(result) == ["exm-1"]
    assert items == snapshot


def test_status_filter_accepts_enums_of_either_kind(items):
    criteria = ItemFilter(status=AssignmentStatus.SUBMITTED)

    assert _ids(filter_items(items, criteria)) == ["asg-2"]
    assert ItemFilter.from_params({"status": "in_progress"}).status is ExaminationStatus.IN_PROGRESS


def test_unknown_status_is_rejected():
    with pytest.raises(ValueError):
        ItemFilter.from_params({"status": "submited"})


@pytest.mark.parametrize(
    "viewer, expected",
    [
        (Viewer(role="principal", institution_id="inst-01"), {"institution_id": "inst-01"}),
        (Viewer(role="hod", department_id="dep-cse"), {"department_id": "dep-cse"}),
        (Viewer(role="staff", department_id="dep-cse"), {"department_id": "dep-cse"}),
        (
            Viewer(role="staff", department_id="dep-cse", class_in_charge="A"),
            {"department_id": "dep-cse", "section": "A"},
        ),
        (Viewer(role="student"), {}),
    ],
)
def test_role_scope(viewer, expected):
    assert apply_role_scope({"search_text": ""}, viewer) == expected


def test_role_scope_overrides_requested_value():
    viewer = Viewer(role="hod", department_id="dep-ece")

    scoped = apply_role_scope({"department_id": "dep-cse", "year": 0}, viewer)

    assert scoped == {"department_id": "dep-ece", "year": 0}


def test_hierarchy_without_filter_is_unchanged(forest):
    assert filter_hierarchy(forest) == forest
    assert forest[0].stats.total_learners == 3
    assert forest[0].stats.completion_percentage == 67


def test_hierarchy_department_filter_prunes_and_restats(forest):
    result = filter_hierarchy(forest, HierarchyFilter(department_id="dep-ece"))

    assert [node.id for node in iter_nodes(result, NodeLevel.DEPARTMENT)] == ["dep-ece"]
    assert result[0].stats.total_learners == 1
    assert result[0].stats.completion_percentage == 100


def test_hierarchy_learner_status_and_search(forest):
    inactive = filter_hierarchy(forest, HierarchyFilter(learner_status=LearnerActivity.INACTIVE))
    by_roll = filter_hierarchy(forest, HierarchyFilter(search_text="cse1a02"))
    by_department = filter_hierarchy(forest, HierarchyFilter(search_text="electronics"))

    assert inactive == []
    assert [learner.id for node in iter_nodes(by_roll, NodeLevel.SECTION) for learner in node.learners] == ["stu-2002"]
    assert by_roll[0].stats.completion_percentage == 0
    assert by_department[0].stats.total_learners == 1


def test_hierarchy_year_and_section_filters(forest):
    year_two = filter_hierarchy(forest, HierarchyFilter(year=2))
    section_a = filter_hierarchy(forest, HierarchyFilter(section="A"))
    year_two_section_a = filter_hierarchy(forest, HierarchyFilter(year=2, section="A"))

    assert [node.id for node in iter_nodes(year_two, NodeLevel.DEPARTMENT)] == ["dep-ece"]
    assert section_a[0].stats.total_learners == 2
    assert section_a[0].stats.completion_percentage == 50
    assert year_two_section_a == []


def test_hierarchy_institution_scope(forest):
    principal = Viewer(role="principal", institution_id="inst-99")

    assert filter_hierarchy(forest, HierarchyFilter.from_params({}, principal)) == []
    assert len(filter_hierarchy(forest, HierarchyFilter(institution_id="inst-01"))) == 1


def test_filtered_view_totals_still_add_up(forest):
    result = filter_hierarchy(forest, HierarchyFilter(learner_status=LearnerActivity.ACTIVE))

    for node in iter_nodes(result):
        if node.children:
            assert node.stats.total_learners == sum(child.stats.total_learners for child in node.children)


def test_hierarchy_filter_rejects_non_course_roots(forest):
    department = next(iter_nodes(forest, NodeLevel.DEPARTMENT))

    with pytest.raises(ValueError):
        filter_hierarchy([department], HierarchyFilter(year=1))
