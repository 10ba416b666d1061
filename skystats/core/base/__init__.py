"""
Base classes and data structures with minimal dependencies.

This module provides the foundational components that the estimators build
upon: element types and blank sentinels, the dataset buffer, result
records, exceptions and parameter validation.
"""

from .exceptions import (
    SkyStatsError,
    ValidationError,
    ConfigurationError,
    ProcessingError,
    DataError,
    StatisticsError,
    reraise_with_context,
)
from .types import (
    DataType,
    blank_value,
    blank_mask,
    is_blank,
    to_python,
)
from .data_structures import (
    DataStructure,
    SortDirection,
    DatasetFlags,
    Dataset,
    as_dataset,
    ClipResult,
    BinSet,
    Histogram,
    CumulativeFrequency,
    Histogram2D,
    ModeResult,
)
from .validation import (
    Validator,
    StructureValidator,
    RangeValidator,
    require_quantile,
    require_positive,
    require_clip_parameters,
    require_same_size,
    require_regular_bins,
)

__all__ = [
    # Exceptions
    "SkyStatsError",
    "ValidationError",
    "ConfigurationError",
    "ProcessingError",
    "DataError",
    "StatisticsError",
    "reraise_with_context",
    # Types
    "DataType",
    "blank_value",
    "blank_mask",
    "is_blank",
    "to_python",
    # Data structures
    "DataStructure",
    "SortDirection",
    "DatasetFlags",
    "Dataset",
    "as_dataset",
    "ClipResult",
    "BinSet",
    "Histogram",
    "CumulativeFrequency",
    "Histogram2D",
    "ModeResult",
    # Validation
    "Validator",
    "StructureValidator",
    "RangeValidator",
    "require_quantile",
    "require_positive",
    "require_clip_parameters",
    "require_same_size",
    "require_regular_bins",
]
