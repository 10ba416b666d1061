"""
Blank-aware statistics for SkyStats.

This module provides the estimators: sorting and compaction, order
statistics, moments, median and MAD, the mirror mode estimator,
histograms and cumulative frequency plots, sigma/MAD-clipping and
outlier detection. Only numpy is needed.
"""

from .sorting import (
    is_sorted,
    sort_increasing,
    sort_decreasing,
    blank_present,
    blank_remove,
    no_blank_sorted,
    sorted_values,
)
from .order import (
    minimum,
    maximum,
    quantile_index,
    quantile,
    QuantileCursor,
    quantile_function_index,
    quantile_function,
)
from .statistics import (
    BasicStatistics,
    RobustStatistics,
    number,
    sum,
    mean,
    std,
    mean_std,
    std_from_sums,
    has_negative,
    unique,
    concentration,
    median,
    mad,
    median_mad,
)
from .mode import (
    MirrorDiff,
    MirrorPlots,
    mode,
    mode_mirror_plots,
)
from .histogram import (
    regular_bins,
    histogram,
    cfp,
    histogram2d,
)
from .clipping import (
    ClipStats,
    clip_sigma,
    clip_mad,
)
from .outliers import (
    outlier_by_distance,
    outlier_flat_cfp,
)

__all__ = [
    # Sorting
    "is_sorted",
    "sort_increasing",
    "sort_decreasing",
    "blank_present",
    "blank_remove",
    "no_blank_sorted",
    "sorted_values",
    # Order statistics
    "minimum",
    "maximum",
    "quantile_index",
    "quantile",
    "QuantileCursor",
    "quantile_function_index",
    "quantile_function",
    # Statistics
    "BasicStatistics",
    "RobustStatistics",
    "number",
    "sum",
    "mean",
    "std",
    "mean_std",
    "std_from_sums",
    "has_negative",
    "unique",
    "concentration",
    "median",
    "mad",
    "median_mad",
    # Mode
    "MirrorDiff",
    "MirrorPlots",
    "mode",
    "mode_mirror_plots",
    # Histograms
    "regular_bins",
    "histogram",
    "cfp",
    "histogram2d",
    # Clipping
    "ClipStats",
    "clip_sigma",
    "clip_mad",
    # Outliers
    "outlier_by_distance",
    "outlier_flat_cfp",
]
