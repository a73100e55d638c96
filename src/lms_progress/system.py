from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from lms_progress.config import Settings, load_settings
from lms_progress.data_models import AssessmentKind, HierarchyNode, NodeLevel, NodeStats, PerformanceBand, ResolvedItem
from lms_progress.errors import TransportFailure
from lms_progress.learning import (
    HierarchyFilter,
    ItemFilter,
    Viewer,
    aggregate,
    enrollment_stats,
    filter_hierarchy,
    filter_items,
    performance_band,
    rank_nodes,
    status_counts,
    summarize_forest,
)
from lms_progress.learning.aggregator import RankOrder, iter_nodes
from lms_progress.pipeline import PassCache, run_learner_pass
from lms_progress.sources import FixtureSourceAdapter, SourceAdapter
from lms_progress.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


class ProgressSystem:
    """
    Facade coordinating the learner pass and the supervisory hierarchy.

    Presentation code talks to this class only. It owns the generation
    counters that decide which pass may publish, the currently published
    `PassCache` and the aggregated forest, and it reads its limits from the
    `Settings` object loaded from config/default.yaml.

    Attributes
    ----------
    settings : Settings
        Validated configuration.
    adapter : SourceAdapter
        Read interface over learner and supervisory records.
    """

    def __init__(self, settings: Settings, adapter: SourceAdapter):
        self.settings = settings
        self.adapter = adapter
        configure_logging(settings.logging.level, settings.logging.use_json)

        self._learner_id: Optional[str] = None
        self._generation = 0
        self._cache: Optional[PassCache] = None

        self._hierarchy_generation = 0
        self._forest: List[HierarchyNode] = []

    @classmethod
    def from_config(
        cls,
        config_path: str | Path | None = None,
        fixture: str | Path | None = None,
        learner_id: Optional[str] = None,
    ) -> "ProgressSystem":
        """
        Build a system backed by the fixture adapter.

        Parameters
        ----------
        config_path : str | Path | None, default=None
            YAML configuration; config/default.yaml or built-in defaults when None.
        fixture : str | Path | None, default=None
            Fixture JSON overriding `sources.fixture_path`.
        learner_id : Optional[str], default=None
            Learner selected before the first refresh.

        Raises
        ------
        ValueError
            If no fixture is given and the configuration names none.
        TransportFailure
            If the fixture file cannot be read.
        """
        settings = load_settings(config_path)
        fixture_path = Path(fixture) if fixture is not None else settings.sources.fixture_path
        if fixture_path is None:
            raise ValueError("No fixture file given and sources.fixture_path is not configured.")
        adapter = FixtureSourceAdapter.from_path(fixture_path, default_learner=learner_id)
        system = cls(settings, adapter)
        if learner_id is not None:
            system.switch_learner(learner_id)
        return system

    @property
    def learner_id(self) -> Optional[str]:
        return self._learner_id

    @property
    def cache(self) -> Optional[PassCache]:
        """The last published pass; None until a pass for the current learner completes."""
        return self._cache

    @property
    def forest(self) -> List[HierarchyNode]:
        return list(self._forest)

    def switch_learner(self, learner_id: str) -> None:
        """Make ``learner_id`` the active learner; any pass still running for the previous one goes stale."""
        if learner_id == self._learner_id:
            return
        self._generation += 1
        self._learner_id = learner_id
        self._cache = None
        logger.info("learner_switched", learner_id=learner_id, generation=self._generation)

    async def refresh(self, learner_id: Optional[str] = None, *, now: Optional[datetime] = None) -> Optional[PassCache]:
        """
        Run one pass for the active learner and publish its cache.

        Calling it again simply runs another full pass. A pass superseded by a
        newer refresh or a learner switch while it ran is discarded and this
        returns None.

        Raises
        ------
        TransportFailure
            If the pass fails as a whole; the previously published cache stays.
        ValueError
            If no learner has been selected.
        """
        if learner_id is not None:
            self.switch_learner(learner_id)
        if self._learner_id is None:
            raise ValueError("No active learner; call switch_learner() first.")

        self._generation += 1
        generation = self._generation
        target = self._learner_id
        try:
            cache = await run_learner_pass(
                self.adapter,
                target,
                generation=generation,
                limit=self.settings.concurrency.max_concurrent_lookups,
                now=now,
            )
        except TransportFailure as exc:
            if generation != self._generation:
                logger.info("stale_pass_discarded", learner_id=target, generation=generation, error=str(exc))
                return None
            logger.error("pass_failed", learner_id=target, generation=generation, error=str(exc))
            raise

        if generation != self._generation:
            logger.info("stale_pass_discarded", learner_id=target, generation=generation)
            return None
        self._cache = cache
        logger.info("pass_published", learner_id=target, generation=generation, pending=len(cache.pending))
        return cache

    def run_refresh(self, learner_id: Optional[str] = None, *, now: Optional[datetime] = None) -> Optional[PassCache]:
        """Synchronous wrapper for callers without an event loop."""
        return asyncio.run(self.refresh(learner_id, now=now))

    async def refresh_hierarchy(
        self,
        filters: Optional[HierarchyFilter] = None,
        *,
        now: Optional[datetime] = None,
    ) -> Optional[List[HierarchyNode]]:
        """Fetch and aggregate the supervisory forest; keeps the previous forest on failure."""
        self._hierarchy_generation += 1
        generation = self._hierarchy_generation
        try:
            groups = await self.adapter.fetch_hierarchy(filters)
        except TransportFailure as exc:
            if generation != self._hierarchy_generation:
                return None
            logger.error("hierarchy_failed", generation=generation, error=str(exc))
            raise

        forest = aggregate(groups, now=now)
        if generation != self._hierarchy_generation:
            logger.info("stale_hierarchy_discarded", generation=generation)
            return None
        self._forest = forest
        logger.info("hierarchy_published", generation=generation, courses=len(forest))
        return list(forest)

    def run_refresh_hierarchy(
        self, filters: Optional[HierarchyFilter] = None, *, now: Optional[datetime] = None
    ) -> Optional[List[HierarchyNode]]:
        return asyncio.run(self.refresh_hierarchy(filters, now=now))

    def items(self, filters: Optional[ItemFilter | Mapping[str, Any]] = None) -> List[ResolvedItem]:
        """Resolved items of the published pass, optionally filtered."""
        if self._cache is None:
            return []
        criteria = ItemFilter.from_params(filters) if isinstance(filters, Mapping) else filters
        return filter_items(self._cache.items, criteria)

    def summary(self) -> Dict[str, Any]:
        """Per-status counts and enrolment figures for the published pass."""
        cache = self._cache
        if cache is None:
            return {}
        return {
            "learner_id": cache.learner_id,
            "enrollment": enrollment_stats(cache.subjects).model_dump(),
            "assignments": status_counts(cache.items, AssessmentKind.ASSIGNMENT),
            "examinations": status_counts(cache.items, AssessmentKind.EXAMINATION),
            "pending_lookups": list(cache.pending),
            "failed_lookups": list(cache.failed_lookups),
        }

    def hierarchy(
        self,
        filters: Optional[HierarchyFilter | Mapping[str, Any]] = None,
        viewer: Optional[Viewer] = None,
    ) -> List[HierarchyNode]:
        """The published forest with role scope and filters applied."""
        if isinstance(filters, HierarchyFilter):
            criteria = filters
            if viewer is not None:
                criteria = HierarchyFilter.from_params(criteria.model_dump(), viewer)
        elif filters is not None or viewer is not None:
            criteria = HierarchyFilter.from_params(filters or {}, viewer)
        else:
            criteria = None
        return filter_hierarchy(self._forest, criteria)

    def rankings(
        self,
        order: RankOrder = "top",
        *,
        level: NodeLevel = NodeLevel.DEPARTMENT,
        limit: Optional[int] = None,
        forest: Optional[List[HierarchyNode]] = None,
    ) -> List[HierarchyNode]:
        nodes = iter_nodes(self._forest if forest is None else forest, level)
        if limit is None:
            limit = self.settings.aggregation.ranking_limit
        return rank_nodes(nodes, order, limit)

    def band(self, node: HierarchyNode) -> PerformanceBand:
        return performance_band(node.stats.completion_percentage, self.settings.aggregation.band_thresholds)

    def totals(self, forest: Optional[List[HierarchyNode]] = None) -> NodeStats:
        return summarize_forest(self._forest if forest is None else forest)
