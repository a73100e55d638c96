"""
LMS progress monitor.

Resolves the lifecycle state of a learner's assignments and examinations from
platform records and rolls learner progress up the institution hierarchy.
"""

from .config.loader import load_settings

__all__ = ["load_settings"]
