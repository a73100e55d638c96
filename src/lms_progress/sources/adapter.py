from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from lms_progress.data_models import AttemptStatus, CourseGroup, SubjectEnrollment, SubmissionStatus


class SourceAdapter(ABC):
    """Abstract read interface over the platform's learner and supervisory records.

    Implementations return empty or not-found outcomes when a learner has not
    interacted with something yet, and raise `TransportFailure` only when the
    call itself fails. Retry and timeout policy belong to the implementation.
    """

    @abstractmethod
    async def fetch_enrollment(self, learner_id: str) -> List[SubjectEnrollment]:
        """Return the learner's enrolled subjects with completion and assessment definitions."""

    @abstractmethod
    async def fetch_submission_status(
        self, assignment_id: str, *, learner_id: Optional[str] = None
    ) -> SubmissionStatus:
        """Return whether the learner has a submission for the assignment."""

    @abstractmethod
    async def fetch_attempt_status(
        self, examination_id: str, *, learner_id: Optional[str] = None
    ) -> AttemptStatus:
        """Return the learner's live attempt at the examination, if any."""

    @abstractmethod
    async def fetch_hierarchy(self, filter_spec: Optional[object] = None) -> List[CourseGroup]:
        """Return the course → department → year → section → learner forest."""
