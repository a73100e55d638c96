from .cache import PassCache
from .fan_out import gather_lookups
from .runner import run_learner_pass

__all__ = ["PassCache", "gather_lookups", "run_learner_pass"]
