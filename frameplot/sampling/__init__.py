from .adaptive import AdaptiveSampler
from .cache import INVALID, MISS, EvaluationCache
from .density import DensityPlan, select_density
from .implicit import ImplicitSampler, PlaneCache

__all__ = [
    "AdaptiveSampler",
    "DensityPlan",
    "EvaluationCache",
    "INVALID",
    "ImplicitSampler",
    "MISS",
    "PlaneCache",
    "select_density",
]
