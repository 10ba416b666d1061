"""
Processing helpers for SkyStats.

This module provides the pieces that run the estimators over larger
inputs:

- threads: spread independent actions over a fixed thread pool
- pooling: reduce 2D datasets with square windows
- managers/: logging management

Usage:
    from skystats.core.processing import pool_median, setup_logging

    setup_logging(StatisticsConfig(log_level="DEBUG"))
    smaller = pool_median(image, pool_size=4, num_threads=8)
"""

from .threads import distribute, spin_off
from .pooling import pool_max, pool_min, pool_sum, pool_mean, pool_median
from .managers import (
    LogContext,
    JSONFormatter,
    PerformanceLogger,
    LogManager,
    setup_logging,
)

__all__ = [
    # Threads
    "distribute",
    "spin_off",
    # Pooling
    "pool_max",
    "pool_min",
    "pool_sum",
    "pool_mean",
    "pool_median",
    # Managers
    "LogContext",
    "JSONFormatter",
    "PerformanceLogger",
    "LogManager",
    "setup_logging",
]
