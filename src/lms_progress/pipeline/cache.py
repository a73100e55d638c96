from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from lms_progress.data_models import LookupOutcome, ResolvedItem, SubjectEnrollment


def _freeze(mapping: Mapping[str, LookupOutcome]) -> Mapping[str, LookupOutcome]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class PassCache:
    """Everything one refresh pass fetched and resolved for one learner.

    A new pass builds a new instance and the facade swaps the reference, so a
    reader never sees a half-updated cache and a stale pass is dropped by not
    swapping it in.
    """

    learner_id: str
    generation: int
    subjects: Tuple[SubjectEnrollment, ...]
    items: Tuple[ResolvedItem, ...]
    pending: Tuple[str, ...] = ()
    submissions: Mapping[str, LookupOutcome] = field(default_factory=dict)
    attempts: Mapping[str, LookupOutcome] = field(default_factory=dict)
    resolved_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "submissions", _freeze(self.submissions))
        object.__setattr__(self, "attempts", _freeze(self.attempts))

    @property
    def is_settled(self) -> bool:
        return not self.pending

    @property
    def failed_lookups(self) -> Tuple[str, ...]:
        failed = [key for key, outcome in self.submissions.items() if outcome.is_failure]
        failed.extend(key for key, outcome in self.attempts.items() if outcome.is_failure)
        return tuple(failed)

    def item(self, assessment_id: str) -> Optional[ResolvedItem]:
        for resolved in self.items:
            if resolved.assessment_id == assessment_id:
                return resolved
        return None

    def by_id(self) -> Dict[str, ResolvedItem]:
        return {resolved.assessment_id: resolved for resolved in self.items}
