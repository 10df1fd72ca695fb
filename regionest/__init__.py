"""Resolve Japanese place names and estimate age-banded population subsets."""

__version__ = "0.1.0"

from .estimator import RegionEstimator, estimate, suggest_regions  # noqa: E402
from .models import EstimateResult, PopulationSnapshot  # noqa: E402

__all__ = [
    "__version__",
    "RegionEstimator",
    "EstimateResult",
    "PopulationSnapshot",
    "estimate",
    "suggest_regions",
]
