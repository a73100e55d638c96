"""Roll learner item states up the course → department → year → section forest.

Sections count their learners directly. Every ancestor sums the raw counts
of its children and derives its own completion percentage from those sums;
percentages of children are never averaged, since that would weigh a
five-learner section the same as a fifty-learner one.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, List, Literal, Optional, Sequence

from lms_progress.config.schema import BandThresholds
from lms_progress.data_models import (
    CourseGroup,
    HierarchyNode,
    LearnerActivity,
    LearnerEntry,
    LookupOutcome,
    NodeLevel,
    NodeStats,
    PerformanceBand,
    ResolvedItem,
    ResolvedLearner,
)
from lms_progress.data_models.status import is_done, is_engaged
from lms_progress.utils.numbers import percentage_of

from .flattener import FlattenedItems
from .resolver import resolve_items

RankOrder = Literal["top", "lowest"]


def learner_activity(items: Sequence[ResolvedItem]) -> LearnerActivity:
    """Active once at least one item has moved beyond pending, available or locked."""
    if any(is_engaged(item.status) for item in items):
        return LearnerActivity.ACTIVE
    return LearnerActivity.INACTIVE


def is_fully_participating(items: Sequence[ResolvedItem]) -> bool:
    """True when the learner holds items and every one of them is done."""
    return bool(items) and all(is_done(item.status) for item in items)


def resolve_learner(entry: LearnerEntry, *, now: Optional[datetime] = None) -> ResolvedLearner:
    """Resolve a hierarchy learner from the raw records embedded in their entry.

    Records are already present, so every lookup is settled: an item without
    a record gets its no-record default.
    """
    flattened = FlattenedItems(entry.subjects)
    submissions: Dict[str, LookupOutcome] = {}
    attempts: Dict[str, LookupOutcome] = {}
    for item in flattened.assignments():
        submissions[item.assessment_id] = LookupOutcome.settled()
    for item in flattened.examinations():
        attempts[item.assessment_id] = LookupOutcome.settled()
    for submission in entry.submissions:
        if submission.assessment_id in submissions:
            submissions[submission.assessment_id] = LookupOutcome.settled(submission)
    for attempt in entry.attempts:
        if attempt.assessment_id in attempts:
            attempts[attempt.assessment_id] = LookupOutcome.settled(attempt)

    items = list(resolve_items(flattened, submissions, attempts, now=now).items)
    return ResolvedLearner(
        id=entry.id,
        name=entry.name,
        email=entry.email,
        roll_number=entry.roll_number,
        items=items,
        activity=learner_activity(items),
        fully_participating=is_fully_participating(items),
    )


def section_stats(learners: Sequence[ResolvedLearner]) -> NodeStats:
    total = len(learners)
    active = sum(1 for learner in learners if learner.activity is LearnerActivity.ACTIVE)
    participating = sum(1 for learner in learners if learner.fully_participating)
    return NodeStats(
        total_learners=total,
        active_learners=active,
        participating_learners=participating,
        completion_percentage=percentage_of(participating, total),
    )


def combine_stats(children: Iterable[NodeStats]) -> NodeStats:
    total = active = participating = 0
    for stats in children:
        total += stats.total_learners
        active += stats.active_learners
        participating += stats.participating_learners
    return NodeStats(
        total_learners=total,
        active_learners=active,
        participating_learners=participating,
        completion_percentage=percentage_of(participating, total),
    )


def rollup(node: HierarchyNode) -> HierarchyNode:
    """Return a copy of ``node`` with statistics recomputed bottom-up."""
    if node.level is NodeLevel.SECTION:
        return node.model_copy(update={"stats": section_stats(node.learners)})
    children = [rollup(child) for child in node.children]
    return node.model_copy(
        update={"children": children, "stats": combine_stats(child.stats for child in children)}
    )


def build_forest(groups: Iterable[CourseGroup], *, now: Optional[datetime] = None) -> List[HierarchyNode]:
    """Resolve every learner and build the node forest, without statistics."""
    current = now or datetime.now(timezone.utc)
    forest: List[HierarchyNode] = []
    for course in groups:
        departments: List[HierarchyNode] = []
        for department in course.departments:
            years: List[HierarchyNode] = []
            for year in department.years:
                year_id = f"{department.id}/year-{year.year}"
                sections = [
                    HierarchyNode(
                        level=NodeLevel.SECTION,
                        id=f"{year_id}/{section.name}",
                        name=section.name,
                        year=year.year,
                        learners=[resolve_learner(entry, now=current) for entry in section.learners],
                    )
                    for section in year.sections
                ]
                years.append(
                    HierarchyNode(
                        level=NodeLevel.YEAR,
                        id=year_id,
                        name=f"Year {year.year}",
                        year=year.year,
                        children=sections,
                    )
                )
            departments.append(
                HierarchyNode(
                    level=NodeLevel.DEPARTMENT,
                    id=department.id,
                    name=department.name,
                    code=department.code,
                    children=years,
                )
            )
        forest.append(
            HierarchyNode(
                level=NodeLevel.COURSE,
                id=course.id,
                name=course.name,
                institution_id=course.institution_id,
                children=departments,
            )
        )
    return forest


def aggregate(groups: Iterable[CourseGroup], *, now: Optional[datetime] = None) -> List[HierarchyNode]:
    """Build the forest from raw hierarchy groups and compute statistics at every node."""
    return [rollup(node) for node in build_forest(groups, now=now)]


def iter_nodes(forest: Iterable[HierarchyNode], level: Optional[NodeLevel] = None) -> Iterator[HierarchyNode]:
    """Depth-first walk in fetch order, optionally restricted to one level."""
    for node in forest:
        if level is None or node.level is level:
            yield node
        yield from iter_nodes(node.children, level)


def departments(forest: Iterable[HierarchyNode]) -> List[HierarchyNode]:
    return list(iter_nodes(forest, NodeLevel.DEPARTMENT))


def rank_nodes(
    nodes: Iterable[HierarchyNode], order: RankOrder = "top", limit: Optional[int] = 3
) -> List[HierarchyNode]:
    """Order nodes by completion percentage for top/lowest performing lists.

    Sorting is stable, so nodes with equal percentages keep their fetch order.
    """
    if order == "top":
        ranked = sorted(nodes, key=lambda node: -node.stats.completion_percentage)
    elif order == "lowest":
        ranked = sorted(nodes, key=lambda node: node.stats.completion_percentage)
    else:
        raise ValueError(f"order must be 'top' or 'lowest', got {order!r}")
    return ranked if limit is None else ranked[:limit]


def performance_band(percentage: int, thresholds: Optional[BandThresholds] = None) -> PerformanceBand:
    bands = thresholds or BandThresholds()
    if percentage >= bands.excellent:
        return PerformanceBand.EXCELLENT
    if percentage >= bands.good:
        return PerformanceBand.GOOD
    if percentage >= bands.fair:
        return PerformanceBand.FAIR
    return PerformanceBand.POOR


def summarize_forest(forest: Sequence[HierarchyNode]) -> NodeStats:
    """Institution-wide totals across every course tree."""
    return combine_stats(node.stats for node in forest)
