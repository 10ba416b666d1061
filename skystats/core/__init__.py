"""
Core functionality for SkyStats.

This module provides the foundational components (datasets, exceptions,
configuration) and re-exports the most used estimators.
"""

from skystats.core.base import (
    SkyStatsError,
    ValidationError,
    ConfigurationError,
    DataError,
    StatisticsError,
    ProcessingError,
    DataType,
    Dataset,
    DataStructure,
)
from skystats.core.config import (
    StatisticsConfig,
    get_config,
    set_config,
)

__all__ = [
    # Exceptions
    "SkyStatsError",
    "ValidationError",
    "ConfigurationError",
    "DataError",
    "StatisticsError",
    "ProcessingError",
    # Base classes
    "DataType",
    "Dataset",
    "DataStructure",
    # Configuration
    "StatisticsConfig",
    "get_config",
    "set_config",
]
