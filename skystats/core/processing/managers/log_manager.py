"""
Where SkyStats log records go.

Library modules only ever call ``logging.getLogger(__name__)``; they never
install handlers. An application, or a test, decides on the destination
by calling :func:`setup_logging` or by building a :class:`LogManager`,
which attaches console and/or rotating file handlers to the ``skystats``
logger (or any other logger name given).

Records emitted inside :meth:`LogManager.log_context` carry the
operation, step and any extra fields of the innermost context; the JSON
format writes them out as top-level keys.
"""

import logging
import logging.handlers
import json
import time
import threading
from typing import Dict, Any, Optional, Union, List
from pathlib import Path
from dataclasses import dataclass, field
from contextlib import contextmanager
import functools

from ...base.exceptions import ConfigurationError
from ...config.settings import StatisticsConfig, get_config

Level = Union[str, int]

_TEXT_FORMATS = {
    "standard": "%(asctime)s - %(levelname)s - %(message)s",
    "detailed": ("%(asctime)s - %(name)s - %(levelname)s - "
                 "%(module)s:%(funcName)s:%(lineno)d - %(message)s"),
}


@dataclass
class LogContext:
    """Labels attached to the records logged inside one `log_context` block."""

    operation: Optional[str] = None
    step: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def as_fields(self) -> Dict[str, Any]:
        labels = {key: value for key, value in
                  (("operation", self.operation), ("step", self.step)) if value}
        labels.update(self.extra)
        return labels


class ContextFilter(logging.Filter):
    """Stamp records with the innermost active :class:`LogContext`."""

    def __init__(self, stack: List[LogContext]):
        super().__init__()
        self._stack = stack

    def filter(self, record: logging.LogRecord) -> bool:
        if self._stack:
            record.context = self._stack[-1]
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record, context labels included."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = dict(
            timestamp=self.formatTime(record),
            level=record.levelname,
            logger=record.name,
            message=record.getMessage(),
            module=record.module,
            function=record.funcName,
            line=record.lineno,
        )
        context = getattr(record, "context", None)
        if context is not None:
            entry.update(context.as_fields())
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _make_formatter(format_type: str) -> logging.Formatter:
    if format_type == "json":
        return JSONFormatter()
    return logging.Formatter(_TEXT_FORMATS[format_type])


def _as_level(level: Level) -> int:
    if isinstance(level, int):
        return level
    number = logging.getLevelName(str(level).upper())
    if not isinstance(number, int):
        raise ConfigurationError(f"Unknown log level '{level}'", parameter="log_level")
    return number


class PerformanceLogger:
    """Wall-clock timers that report their duration to ``logger``.

    Timers are keyed by name and safe to start and stop from worker
    threads.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self._started: Dict[str, float] = {}
        self._lock = threading.Lock()

    def start_timer(self, name: str) -> None:
        with self._lock:
            self._started[name] = time.perf_counter()

    def end_timer(self, name: str, log_level: int = logging.INFO) -> float:
        """Stop timer ``name`` and log its duration in seconds.

        An unknown name logs a warning and returns 0.0.
        """
        now = time.perf_counter()
        with self._lock:
            start = self._started.pop(name, None)
        if start is None:
            self.logger.warning("Timer '%s' not found", name)
            return 0.0
        elapsed = now - start
        self.logger.log(log_level, "Operation '%s' completed in %.3fs", name, elapsed)
        return elapsed

    @contextmanager
    def time_operation(self, name: str, log_level: int = logging.INFO):
        """Time the body of a ``with`` block."""
        self.start_timer(name)
        try:
            yield
        finally:
            self.end_timer(name, log_level)

    def time_function(self, name: Optional[str] = None, log_level: int = logging.INFO):
        """Decorator timing every call; the timer defaults to the qualified function name."""
        def decorator(func):
            label = name or f"{func.__module__}.{func.__name__}"

            @functools.wraps(func)
            def timed(*args, **kwargs):
                with self.time_operation(label, log_level):
                    return func(*args, **kwargs)
            return timed
        return decorator


class LogManager:
    """Own the handlers attached to one logger.

    Parameters
    ----------
    level : str or int
        Threshold of the logger and of the handlers it installs.
    file_path : str or Path, optional
        Also log to this file, rotated at ``max_file_size`` megabytes
        with ``backup_count`` old copies kept.
    format_type : {"standard", "detailed", "json"}
    enable_console : bool
        Also log to standard error.
    enable_performance : bool
        Create a `PerformanceLogger` as ``self.performance``.
    logger_name : str
        The managed logger; the default covers the whole package.
    config : StatisticsConfig, optional
        When given, its ``log_level`` and ``log_format`` win over the
        arguments and its ``log_file`` is used if ``file_path`` is unset.
    """

    FORMAT_TYPES = ("standard", "detailed", "json")

    def __init__(self, level: Level = logging.INFO,
                 file_path: Optional[Union[str, Path]] = None,
                 max_file_size: int = 10, backup_count: int = 5,
                 format_type: str = "standard", enable_console: bool = True,
                 enable_performance: bool = True, logger_name: str = "skystats",
                 config: Optional[StatisticsConfig] = None):
        if config is not None:
            level, format_type = config.log_level, config.log_format
            file_path = file_path or config.log_file
        if format_type not in self.FORMAT_TYPES:
            raise ConfigurationError(f"Unknown log format '{format_type}'",
                                     parameter="log_format")

        self.level = _as_level(level)
        self.format_type = format_type
        self.file_path = Path(file_path) if file_path else None
        self.max_file_size = max_file_size * 1024 * 1024
        self.backup_count = backup_count
        self.enable_console = enable_console
        self.enable_performance = enable_performance

        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(self.level)
        self._handlers: List[logging.Handler] = []
        self._context_stack: List[LogContext] = []
        self._filter = ContextFilter(self._context_stack)

        if enable_console:
            self.add_console_handler()
        if self.file_path is not None:
            self.add_file_handler(self.file_path)
        if enable_performance:
            self.performance = PerformanceLogger(self.get_logger("performance"))
        self.logger.debug("Logging to %d handler(s) at %s", len(self._handlers),
                          logging.getLevelName(self.level))

    def get_logger(self, name: str) -> logging.Logger:
        """Child of the managed logger, e.g. ``get_logger("clipping")``."""
        return self.logger.getChild(name)

    def set_level(self, level: Level) -> None:
        """Move the logger and every installed handler to ``level``."""
        self.level = _as_level(level)
        self.logger.setLevel(self.level)
        for handler in self._handlers:
            handler.setLevel(self.level)

    def add_file_handler(self, file_path: Union[str, Path], level: Optional[Level] = None,
                         format_type: Optional[str] = None) -> logging.Handler:
        """Log to a rotating file, creating its directory if needed."""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=self.max_file_size, backupCount=self.backup_count,
            encoding="utf-8")
        return self._attach(handler, level, format_type)

    def add_console_handler(self, level: Optional[Level] = None,
                            format_type: Optional[str] = None) -> logging.Handler:
        return self._attach(logging.StreamHandler(), level, format_type)

    def _attach(self, handler: logging.Handler, level: Optional[Level],
                format_type: Optional[str]) -> logging.Handler:
        handler.setLevel(self.level if level is None else _as_level(level))
        handler.setFormatter(_make_formatter(format_type or self.format_type))
        handler.addFilter(self._filter)
        self.logger.addHandler(handler)
        self._handlers.append(handler)
        return handler

    @contextmanager
    def log_context(self, operation: Optional[str] = None, step: Optional[str] = None,
                    **extra):
        """Label the records logged inside the block; contexts nest."""
        self._context_stack.append(LogContext(operation, step, extra))
        try:
            yield
        finally:
            self._context_stack.pop()

    def log_error(self, message: str, exception: Optional[Exception] = None) -> None:
        """Log ``message`` at ERROR, followed by ``exception`` and its traceback."""
        errors = self.get_logger("errors")
        if exception is None:
            errors.error(message)
        else:
            errors.error("%s: %s", message, exception, exc_info=exception)

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of the current setup."""
        return dict(
            logger=self.logger.name,
            level=logging.getLevelName(self.level),
            file_path=None if self.file_path is None else str(self.file_path),
            format_type=self.format_type,
            console_enabled=self.enable_console,
            performance_enabled=self.enable_performance,
            handlers=len(self._handlers),
            context_depth=len(self._context_stack),
        )

    def close(self) -> None:
        """Detach and close the handlers this manager installed."""
        while self._handlers:
            handler = self._handlers.pop()
            self.logger.removeHandler(handler)
            handler.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


_active: Optional[LogManager] = None


def setup_logging(config: Optional[StatisticsConfig] = None, **kwargs) -> LogManager:
    """Route package logging as ``config`` (default: the shared one) says.

    Handlers installed by a previous call are closed first, so calling
    this repeatedly does not duplicate output. Extra keyword arguments go
    to :class:`LogManager`.
    """
    global _active
    if _active is not None:
        _active.close()
    _active = LogManager(config=config or get_config(), **kwargs)
    return _active
