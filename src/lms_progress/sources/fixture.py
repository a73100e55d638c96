from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from lms_progress.data_models import AttemptStatus, CourseGroup, SubjectEnrollment, SubmissionStatus
from lms_progress.errors import TransportFailure

from .adapter import SourceAdapter
from .payloads import parse_attempt_status, parse_enrollment, parse_hierarchy, parse_submission_status

logger = logging.getLogger(__name__)


class FixtureSourceAdapter(SourceAdapter):
    """Source adapter serving raw API payloads held in memory or in a JSON file.

    The payloads keep the platform's own response shapes (envelopes included)
    and go through the same normalisation as live responses. The JSON layout is::

        {
          "learners": {
            "<learner id>": {
              "enrollment": [...],
              "submissions": {"<assignment id>": {...}},
              "attempts": {"<examination id>": {...}}
            }
          },
          "hierarchy": [...]
        }

    Lookups without a ``learner_id`` use ``default_learner``; a learner with
    no entry simply has no records.
    """

    def __init__(
        self,
        learners: Optional[Mapping[str, Mapping[str, Any]]] = None,
        hierarchy: Any = None,
        *,
        default_learner: Optional[str] = None,
    ):
        self.learners: Dict[str, Mapping[str, Any]] = dict(learners or {})
        self.hierarchy = hierarchy if hierarchy is not None else []
        self.default_learner = default_learner

    def _learner(self, learner_id: Optional[str]) -> Mapping[str, Any]:
        key = learner_id or self.default_learner
        if key is None:
            return {}
        return self.learners.get(key) or {}

    async def fetch_enrollment(self, learner_id: str) -> List[SubjectEnrollment]:
        return parse_enrollment(self._learner(learner_id).get("enrollment", []))

    async def fetch_submission_status(
        self, assignment_id: str, *, learner_id: Optional[str] = None
    ) -> SubmissionStatus:
        submissions = self._learner(learner_id).get("submissions") or {}
        return parse_submission_status(submissions.get(assignment_id))

    async def fetch_attempt_status(
        self, examination_id: str, *, learner_id: Optional[str] = None
    ) -> AttemptStatus:
        attempts = self._learner(learner_id).get("attempts") or {}
        return parse_attempt_status(attempts.get(examination_id))

    async def fetch_hierarchy(self, filter_spec: Optional[object] = None) -> List[CourseGroup]:
        return parse_hierarchy(self.hierarchy)

    @classmethod
    def from_path(cls, path: Path, *, default_learner: Optional[str] = None) -> "FixtureSourceAdapter":
        """Load a fixture file; an unreadable file is a transport failure."""
        try:
            with Path(path).open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Could not read fixture %s: %s", path, exc)
            raise TransportFailure("load_fixture", str(exc)) from exc
        if not isinstance(data, Mapping):
            raise TransportFailure("load_fixture", f"{path} does not hold a JSON object")
        return cls(
            learners=data.get("learners") or {},
            hierarchy=data.get("hierarchy") or [],
            default_learner=default_learner,
        )
