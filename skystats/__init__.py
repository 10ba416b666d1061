"""
SkyStats: blank-aware robust statistics for astronomical data.
"""

__version__ = "0.1.0"

from skystats.core.base.exceptions import SkyStatsError
from skystats.core.base import Dataset, DataType
from skystats.core.config import get_config, StatisticsConfig
from skystats.core.math import (
    median,
    mad,
    mode,
    quantile,
    histogram,
    cfp,
    clip_sigma,
    clip_mad,
)

__all__ = [
    "__version__",
    "SkyStatsError",
    "Dataset",
    "DataType",
    "get_config",
    "StatisticsConfig",
    "median",
    "mad",
    "mode",
    "quantile",
    "histogram",
    "cfp",
    "clip_sigma",
    "clip_mad",
]


def get_version():
    """Get the version string."""
    return __version__
