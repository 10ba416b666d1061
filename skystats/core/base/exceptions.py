"""
Errors raised by SkyStats.

Two kinds of failure are kept apart. A request that cannot be answered
at all (a quantile outside [0, 1], a zero sigma-clip multiplier, an
element type the library does not know) raises one of the classes
below. A well-posed request whose *answer* happens to be undefined
(every element blank, everything clipped away, a mode that fails the
symmetricity test) returns NaN or a blank instead of raising.

Every class accepts a handful of keyword fields that are stored both as
attributes and in ``details``, so log records and messages carry them.
"""

from typing import Optional, Any, Dict, Tuple


class SkyStatsError(Exception):
    """Root of the SkyStats error hierarchy.

    Parameters
    ----------
    message : str
        Human readable description of what went wrong.
    details : dict, optional
        Extra key/value context, rendered after the message.
    cause : Exception, optional
        Lower level exception this error was raised from.
    """

    #: Keyword fields a subclass promotes into ``details``.
    detail_fields: Tuple[str, ...] = ()

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None, **fields):
        unknown = set(fields) - set(self.detail_fields)
        if unknown:
            raise TypeError(f"{type(self).__name__} got unexpected field(s): "
                            f"{', '.join(sorted(unknown))}")
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})
        self.cause = cause
        for name in self.detail_fields:
            value = fields.get(name)
            setattr(self, name, value)
            if value is not None:
                self.details[name] = value

    def __str__(self) -> str:
        text = self.message
        if self.details:
            text += " [" + ", ".join(f"{k}={v}" for k, v in self.details.items()) + "]"
        if self.cause is not None:
            text += f"; Caused by: {self.cause}"
        return text

    def add_detail(self, key: str, value: Any) -> "SkyStatsError":
        """Attach one more piece of context and return ``self``."""
        self.details[key] = value
        return self

    def get_detail(self, key: str, default: Any = None) -> Any:
        """Look up a context value, falling back to ``default``."""
        return self.details.get(key, default)


class ValidationError(SkyStatsError):
    """A parameter or record failed a consistency check."""

    detail_fields = ("field", "value")


class ConfigurationError(SkyStatsError):
    """Settings could not be read, parsed or applied."""

    detail_fields = ("config_file", "parameter")


class ProcessingError(SkyStatsError):
    """A worker of a partitioned operation failed.

    The worker's own exception is available as ``cause``.
    """

    detail_fields = ("step", "input_data")


class DataError(SkyStatsError):
    """A buffer has an element type or shape the operation cannot handle."""

    detail_fields = ("data_type", "expected_format")


class StatisticsError(SkyStatsError):
    """A statistic was requested with parameters that make it meaningless.

    Examples are quantile indexing on an empty input, non-positive
    clipping parameters and internal estimator invariants that no
    longer hold.
    """

    detail_fields = ("statistic", "sample_size")


def reraise_with_context(exception: Exception, context: str,
                         additional_details: Optional[Dict[str, Any]] = None) -> None:
    """Raise ``exception`` again with ``context`` prefixed to its message.

    SkyStats errors are re-raised as themselves so callers can still
    catch the specific class. Anything else is wrapped in a plain
    `SkyStatsError` that records the foreign type and keeps the
    original as ``cause``.

    Raises
    ------
    SkyStatsError
    """
    extra = dict(additional_details or {})
    if isinstance(exception, SkyStatsError):
        exception.details.update(extra)
        exception.message = f"{context}: {exception.message}"
        exception.args = (exception.message,)
        raise exception
    extra['original_exception_type'] = type(exception).__name__
    raise SkyStatsError(f"{context}: {exception}", details=extra, cause=exception) from exception
