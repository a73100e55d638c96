from .adapter import SourceAdapter
from .fixture import FixtureSourceAdapter

__all__ = ["FixtureSourceAdapter", "SourceAdapter"]
