from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from functools import partial
from typing import Optional

from lms_progress.data_models import AttemptStatus, SubmissionStatus
from lms_progress.learning.flattener import FlattenedItems
from lms_progress.learning.resolver import resolve_items
from lms_progress.sources import SourceAdapter
from lms_progress.utils.logging import get_logger, pass_context

from .cache import PassCache
from .fan_out import gather_lookups

logger = get_logger(__name__)


def _submission_record(status: SubmissionStatus):
    return status.record


def _attempt_record(status: AttemptStatus):
    return status.record


async def run_learner_pass(
    adapter: SourceAdapter,
    learner_id: str,
    *,
    generation: int = 0,
    limit: int = 8,
    now: Optional[datetime] = None,
) -> PassCache:
    """
    Fetch, resolve and package one learner's items as a fresh cache.

    The enrolment is fetched first because it names the items to look up.
    Submission and examination lookups then fan out concurrently, bounded by
    ``limit`` each. A failing lookup only affects its own item.

    Raises
    ------
    TransportFailure
        If the enrolment fetch fails; there is nothing to resolve without it.
    """
    with pass_context(learner_id=learner_id, generation=generation):
        return await _run_pass(adapter, learner_id, generation=generation, limit=limit, now=now)


async def _run_pass(
    adapter: SourceAdapter, learner_id: str, *, generation: int, limit: int, now: Optional[datetime]
) -> PassCache:
    logger.info("pass_started")

    subjects = await adapter.fetch_enrollment(learner_id)
    flattened = FlattenedItems(subjects)
    assignment_ids = [item.assessment_id for item in flattened.assignments()]
    examination_ids = [item.assessment_id for item in flattened.examinations()]

    submissions, attempts = await asyncio.gather(
        gather_lookups(
            assignment_ids,
            partial(adapter.fetch_submission_status, learner_id=learner_id),
            _submission_record,
            limit=limit,
            operation="fetch_submission_status",
        ),
        gather_lookups(
            examination_ids,
            partial(adapter.fetch_attempt_status, learner_id=learner_id),
            _attempt_record,
            limit=limit,
            operation="fetch_attempt_status",
        ),
    )

    resolved_at = now or datetime.now(timezone.utc)
    resolution = resolve_items(flattened, submissions, attempts, now=resolved_at)
    cache = PassCache(
        learner_id=learner_id,
        generation=generation,
        subjects=tuple(flattened.subjects),
        items=resolution.items,
        pending=resolution.pending,
        submissions=submissions,
        attempts=attempts,
        resolved_at=resolved_at,
    )
    logger.info(
        "pass_resolved",
        subjects=len(cache.subjects),
        items=len(cache.items),
        failed_lookups=len(cache.failed_lookups),
    )
    return cache
