"""
Managers for the processing layer.
"""

from .log_manager import (
    LogContext,
    JSONFormatter,
    PerformanceLogger,
    LogManager,
    setup_logging,
)

__all__ = [
    "LogContext",
    "JSONFormatter",
    "PerformanceLogger",
    "LogManager",
    "setup_logging",
]
