"""Tests for flattening enrolled subjects into one ordered item sequence."""

from __future__ import annotations

from lms_progress.data_models import AssessmentKind, SubjectEnrollment
from lms_progress.learning import flatten_subjects


def test_order_is_subject_then_assignments_then_examinations(make_subject):
    subjects = [
        make_subject("sub-a", assignments=["a1", "a2"], examinations=["e1"]),
        make_subject("sub-b", assignments=["b1"], examinations=["e2"]),
    ]

    flattened = flatten_subjects(subjects)

    assert [item.assessment_id for item in flattened] == ["a1", "a2", "e1", "b1", "e2"]
    assert [item.subject_id for item in flattened] == ["sub-a", "sub-a", "sub-a", "sub-b", "sub-b"]
    assert len(flattened) == 5


def test_iteration_is_restartable_and_identical(make_subject):
    """Flattening the same input twice must produce the same sequence."""
    flattened = flatten_subjects([make_subject(assignments=["a1"], examinations=["e1"])])

    first = list(flattened)
    second = list(flattened)

    assert first == second
    assert list(flatten_subjects(flattened.subjects)) == first


def test_missing_subject_name_and_code_become_empty(make_subject):
    flattened = flatten_subjects([make_subject(name=None, code=None, assignments=["a1"])])

    (item,) = list(flattened)
    assert item.subject_name == ""
    assert item.subject_code == ""
    assert item.assessment_id == "a1"


def test_kind_views(make_subject):
    flattened = flatten_subjects([make_subject(assignments=["a1", "a2"], examinations=["e1"])])

    assert [item.assessment_id for item in flattened.assignments()] == ["a1", "a2"]
    assert [item.assessment_id for item in flattened.examinations()] == ["e1"]
    assert {item.kind for item in flattened.examinations()} == {AssessmentKind.EXAMINATION}


def test_completions_default_to_zero_and_first_subject_wins(make_subject):
    subjects = [
        make_subject("sub-a", completion=None),
        make_subject("sub-b", completion=100),
        make_subject("sub-b", completion=20),
    ]

    flattened = flatten_subjects(subjects)

    assert flattened.completion_for("sub-a").completion_percentage == 0.0
    assert flattened.completion_for("sub-b").is_fully_completed
    assert flattened.completion_for("missing") is None


def test_empty_enrollment_yields_nothing():
    flattened = flatten_subjects([])

    assert list(flattened) == []
    assert len(flattened) == 0


def test_subject_without_definitions_is_kept_for_completion():
    subject = SubjectEnrollment(subject_id="sub-x", completion_percentage=40)

    flattened = flatten_subjects([subject])

    assert list(flattened) == []
    assert flattened.completion_for("sub-x").completion_percentage == 40
