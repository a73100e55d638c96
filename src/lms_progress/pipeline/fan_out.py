from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Optional, Sequence, TypeVar

from lms_progress.data_models import AttemptRecord, LookupOutcome, SubmissionRecord
from lms_progress.utils.logging import get_logger

logger = get_logger(__name__)

StatusT = TypeVar("StatusT")

Record = Optional[SubmissionRecord | AttemptRecord]


async def gather_lookups(
    assessment_ids: Sequence[str],
    fetch: Callable[[str], Awaitable[StatusT]],
    extract: Callable[[StatusT], Record],
    *,
    limit: int,
    operation: str,
) -> Dict[str, LookupOutcome]:
    """Run one lookup per assessment id with at most ``limit`` in flight.

    Each lookup settles on its own. A failing lookup is logged and settles as
    "no record" for that id alone; its siblings and the batch carry on.
    Cancellation is not swallowed, so a superseded pass still stops.
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")
    semaphore = asyncio.Semaphore(limit)

    async def run_one(assessment_id: str) -> LookupOutcome:
        async with semaphore:
            try:
                status = await fetch(assessment_id)
            except Exception as exc:
                logger.warning(
                    "lookup_failed",
                    operation=operation,
                    assessment_id=assessment_id,
                    error=str(exc) or exc.__class__.__name__,
                )
                return LookupOutcome.failed(str(exc) or exc.__class__.__name__)
        return LookupOutcome.settled(extract(status))

    unique_ids = list(dict.fromkeys(assessment_ids))
    outcomes = await asyncio.gather(*(run_one(assessment_id) for assessment_id in unique_ids))
    return dict(zip(unique_ids, outcomes))
