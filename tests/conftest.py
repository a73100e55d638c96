"""Shared fixtures for the progress pipeline tests."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

import pytest

from lms_progress.data_models import (
    AssignmentDefinition,
    ExaminationDefinition,
    HierarchyNode,
    LearnerActivity,
    NodeLevel,
    ResolvedLearner,
    SubjectEnrollment,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
SAMPLE_FIXTURE = Path(__file__).resolve().parents[1] / "data" / "fixtures" / "sample.json"


@pytest.fixture
def now() -> datetime:
    """Pinned wall clock so day counts are reproducible."""
    return NOW


@pytest.fixture
def sample_fixture() -> Path:
    return SAMPLE_FIXTURE


@pytest.fixture(autouse=True)
def no_config_overrides(monkeypatch):
    """Keep a developer's override variable from leaking into tests."""
    monkeypatch.delenv("LMS_PROGRESS_CONFIG_OVERRIDES", raising=False)
    monkeypatch.delenv("LMS_PROGRESS_CONFIG", raising=False)


@pytest.fixture
def make_subject():
    """Factory for enrolled subjects with plain id-only definitions."""

    def _make(
        subject_id: str = "sub-1",
        *,
        completion: Optional[float] = 100,
        assignments: Iterable[str] = (),
        examinations: Iterable[str] = (),
        name: Optional[str] = "Subject",
        code: Optional[str] = "S1",
    ) -> SubjectEnrollment:
        return SubjectEnrollment(
            subject_id=subject_id,
            subject_name=name,
            subject_code=code,
            completion_percentage=completion,
            assignments=[AssignmentDefinition(id=a, title=f"Assignment {a}") for a in assignments],
            examinations=[ExaminationDefinition(id=e, title=f"Examination {e}") for e in examinations],
        )

    return _make


@pytest.fixture
def make_section():
    """Factory for a section node holding ``total`` learners, ``participating`` of them done."""

    def _make(node_id: str, total: int, participating: int, *, active: Optional[int] = None) -> HierarchyNode:
        active = participating if active is None else active
        learners = [
            ResolvedLearner(
                id=f"{node_id}-{index}",
                name=f"Learner {index}",
                activity=LearnerActivity.ACTIVE if index < active else LearnerActivity.INACTIVE,
                fully_participating=index < participating,
            )
            for index in range(total)
        ]
        return HierarchyNode(level=NodeLevel.SECTION, id=node_id, name=node_id, learners=learners)

    return _make
