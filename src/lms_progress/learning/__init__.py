from .aggregator import aggregate, departments, performance_band, rank_nodes, rollup, summarize_forest
from .filters import HierarchyFilter, ItemFilter, Viewer, apply_role_scope, clean_filters, filter_hierarchy, filter_items
from .flattener import FlatItem, FlattenedItems, flatten_subjects
from .resolver import Resolution, enrollment_stats, resolve_assignment, resolve_examination, resolve_items, status_counts

__all__ = [
    "FlatItem",
    "FlattenedItems",
    "HierarchyFilter",
    "ItemFilter",
    "Resolution",
    "Viewer",
    "aggregate",
    "apply_role_scope",
    "clean_filters",
    "departments",
    "enrollment_stats",
    "filter_hierarchy",
    "filter_items",
    "flatten_subjects",
    "performance_band",
    "rank_nodes",
    "resolve_assignment",
    "resolve_examination",
    "resolve_items",
    "rollup",
    "status_counts",
    "summarize_forest",
]
