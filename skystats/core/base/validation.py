"""
Parameter checks shared by the estimators.

Estimators call the ``require_*`` functions on entry, so inner loops can
assume their parameters are sane. The small validator classes underneath
collect human readable problems instead of raising, which is handy when
several records are checked in one go.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterator, List, Optional, Union

import numpy as np

from .exceptions import StatisticsError, ValidationError
from .data_structures import BinSet, DataStructure

Number = Union[int, float]


class Validator(ABC):
    """Run a check and keep the problems it found.

    Subclasses implement `_problems`, a generator of messages; an empty
    generator means the input is acceptable.
    """

    def __init__(self):
        self.errors: List[str] = []

    @abstractmethod
    def _problems(self, data: Any, **options) -> Iterator[str]:
        """Yield one message per problem found in ``data``."""

    def validate(self, data: Any, **options) -> bool:
        """True when ``data`` passes; the messages are kept otherwise."""
        self.errors = list(self._problems(data, **options))
        return not self.errors

    def get_errors(self) -> List[str]:
        return list(self.errors)

    def has_errors(self) -> bool:
        return bool(self.errors)


class StructureValidator(Validator):
    """Calls ``validate()`` on result records."""

    def _problems(self, data, **options):
        if not isinstance(data, DataStructure):
            yield f"Not a result record: {type(data).__name__}"
            return
        try:
            data.validate()
        except ValidationError as e:
            yield str(e)


class RangeValidator(Validator):
    """Checks that a real scalar lies within optional bounds."""

    def _problems(self, value, min_val: Optional[Number] = None,
                  max_val: Optional[Number] = None, inclusive: bool = True):
        if isinstance(value, (bool, np.bool_)) or \
                not isinstance(value, (int, float, np.integer, np.floating)):
            yield f"Expected a real number, got {type(value).__name__}"
            return
        if np.isnan(value):
            yield "Value is NaN"
            return
        if min_val is not None and (value < min_val or (not inclusive and value == min_val)):
            yield f"{value} is below the {'closed' if inclusive else 'open'} lower bound {min_val}"
        if max_val is not None and (value > max_val or (not inclusive and value == max_val)):
            yield f"{value} is above the {'closed' if inclusive else 'open'} upper bound {max_val}"

    def validate_range(self, value: Number, min_val: Optional[Number] = None,
                       max_val: Optional[Number] = None, inclusive: bool = True) -> bool:
        """Check ``min_val <= value <= max_val`` (strict when not ``inclusive``).

        A bound of ``None`` leaves that side open. NaN, booleans and
        non-numbers always fail.
        """
        return self.validate(value, min_val=min_val, max_val=max_val, inclusive=inclusive)

    def validate_positive(self, value: Number, strict: bool = True) -> bool:
        """Check ``value > 0``, or ``value >= 0`` when not ``strict``."""
        return self.validate_range(value, min_val=0, inclusive=not strict)


def require_quantile(q: float, name: str = "quantile") -> float:
    """Return ``q`` as a float, raising unless ``0 <= q <= 1``.

    Raises
    ------
    StatisticsError
        If ``q`` is outside [0, 1] or not a number.
    """
    check = RangeValidator()
    if not check.validate_range(q, 0.0, 1.0):
        raise StatisticsError(f"The {name} must lie in [0, 1]: {'; '.join(check.errors)}",
                              statistic=name)
    return float(q)


def require_positive(value: Number, name: str,
                     statistic: Optional[str] = None) -> Number:
    """Return ``value``, raising `StatisticsError` unless it is above zero."""
    check = RangeValidator()
    if not check.validate_positive(value):
        raise StatisticsError(f"'{name}' must be positive: {'; '.join(check.errors)}",
                              statistic=statistic)
    return value


def require_clip_parameters(multiplier: float, param: float) -> None:
    """Check the multiplier and termination parameter of a clip.

    ``param`` below one is a convergence tolerance; one or larger is a
    number of rounds and must then be a whole number.

    Raises
    ------
    StatisticsError
        If either value is non-positive, or ``param >= 1`` is not whole.
    """
    require_positive(multiplier, "multiplier", statistic="clip")
    require_positive(param, "param", statistic="clip")
    if param >= 1.0 and float(param) != np.ceil(param):
        raise StatisticsError(
            f"When the clipping parameter is larger than 1.0, it is interpreted "
            f"as the number of clips and must be a whole number, got {param}",
            statistic="clip",
        )


def require_same_size(first, second, what: str = "inputs") -> int:
    """Raise ``ValidationError`` unless two datasets hold the same number of elements."""
    n1, n2 = np.size(getattr(first, "array", first)), np.size(getattr(second, "array", second))
    if n1 != n2:
        raise ValidationError(f"The two {what} must have the same size, got {n1} and {n2}",
                              field="size", value=(n1, n2))
    return int(n1)


def require_regular_bins(bins: BinSet) -> BinSet:
    """Raise ``ValidationError`` unless ``bins`` is a usable regular bin set."""
    if bins is None or bins.size == 0:
        raise ValidationError("No bins were given", field="bins")
    if bins.size == 1:
        raise ValidationError("Only one bin was given; the width cannot be measured",
                              field="bins", value=1)
    if not bins.regular:
        raise ValidationError("Only regular bins are currently supported", field="bins")
    if not bins.width > 0:
        raise ValidationError("Regular bins must have a positive width", field="bins",
                              value=bins.width)
    return bins
