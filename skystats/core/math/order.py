"""
Order statistics: extremes, quantiles and the quantile function.
"""

import logging
import math
from typing import Optional

import numpy as np

from ..base.data_structures import Dataset, SortDirection, as_dataset
from ..base.exceptions import StatisticsError
from ..base.types import to_python
from ..base.validation import require_quantile
from .sorting import no_blank_sorted

logger = logging.getLogger(__name__)


def minimum(data):
    """Smallest non-blank element, in the element type.

    Returns the blank value of the type when there are no non-blank
    elements.
    """
    data = as_dataset(data)
    values = data.non_blank()
    if values.size == 0:
        return data.blank
    return values.min()


def maximum(data):
    """Largest non-blank element, in the element type.

    Returns the blank value of the type when there are no non-blank
    elements.
    """
    data = as_dataset(data)
    values = data.non_blank()
    if values.size == 0:
        return data.blank
    return values.max()


def quantile_index(size: int, quantile: float) -> int:
    """Index of a quantile in a sorted array of ``size`` elements.

    The float index ``(size-1)*quantile`` is rounded down unless its
    fractional part is strictly larger than 0.5 (so 4.5 becomes 4).

    Raises
    ------
    StatisticsError
        If ``size`` is zero or ``quantile`` is outside [0, 1].
    """
    if size == 0:
        raise StatisticsError("The quantile is not defined for a zero-sized array",
                              statistic="quantile_index", sample_size=0)
    require_quantile(quantile)

    floatindex = (size - 1) * quantile
    index = int(floatindex)
    if floatindex - index > 0.5:
        index += 1
    return index


def quantile(data, q: float, inplace: bool = False):
    """Element at quantile ``q`` of the non-blank elements.

    Parameters
    ----------
    data : Dataset or array_like
        Input values
    q : float
        Quantile in [0, 1]
    inplace : bool
        Allow ``data`` to be compacted and sorted in place

    Returns
    -------
    numpy scalar
        In the element type; the blank value if there are no non-blank
        elements.
    """
    require_quantile(q)
    nbs = no_blank_sorted(data, inplace)
    if nbs.size == 0:
        return nbs.blank
    if nbs.flags.sorted is SortDirection.DECREASING:
        q = 1.0 - q
    return nbs.array[quantile_index(nbs.size, q)]


class QuantileCursor:
    """Nearest-element search over a blank-free sorted dataset.

    Consecutive lookups resume from the previously found position, so a
    monotonic sequence of lookups costs O(n) in total however it is
    ordered. Both increasing and decreasing datasets are supported.

    Parameters
    ----------
    sorted_data : Dataset
        Output of :func:`no_blank_sorted`
    """

    def __init__(self, sorted_data: Dataset):
        if sorted_data.flags.sorted not in (SortDirection.INCREASING,
                                            SortDirection.DECREASING):
            raise StatisticsError("QuantileCursor needs a sorted dataset",
                                  statistic="quantile_function_index")
        self.data = sorted_data
        self.size = sorted_data.size
        self.decreasing = sorted_data.flags.sorted is SortDirection.DECREASING
        self._array = sorted_data.array
        self._ascending = self._array[::-1] if self.decreasing else self._array
        self._last_value = None
        self._last_pos = 0

    def _cast(self, value):
        value = to_python(value)
        if self.data.type.is_integer and isinstance(value, float):
            if math.isnan(value) or math.isinf(value):
                return None
            value = int(value)
        elif isinstance(value, float) and math.isnan(value):
            return None
        return value

    def _count(self, v, side: str) -> int:
        """``searchsorted`` on the ascending values, resumed from the last lookup."""
        a = self._ascending
        if self._last_value is None:
            pos = int(np.searchsorted(a, v, side=side))
        elif v >= self._last_value:
            lo = self._last_pos
            pos = lo + int(np.searchsorted(a[lo:], v, side=side))
        else:
            hi = self._last_pos
            pos = int(np.searchsorted(a[:hi], v, side=side))
        self._last_value, self._last_pos = v, pos
        return pos

    def in_range(self, value) -> bool:
        v = self._cast(value)
        if v is None or self.size == 0:
            return False
        low, high = to_python(self._ascending[0]), to_python(self._ascending[-1])
        return low <= v <= high

    def index(self, value) -> Optional[int]:
        """Index of the element nearest to ``value``.

        Returns ``None`` if ``value`` lies outside ``[min, max]`` of the
        data. On ties between two neighbours the later index along the
        array wins only when it is strictly nearer.
        """
        if not self.in_range(value):
            return None
        v = self._cast(value)
        a = self._array
        n = self.size

        if not self.decreasing:
            k = self._count(v, "right")
            if k == n:
                return n - 1
            if v - to_python(a[k - 1]) < to_python(a[k]) - v:
                k -= 1
            return k

        # First index along the decreasing array holding a value below v.
        k = n - self._count(v, "left")
        if k == n:
            return n - 1
        if to_python(a[k - 1]) - v < v - to_python(a[k]):
            k -= 1
        return k


def quantile_function_index(data, value, inplace: bool = False) -> Optional[int]:
    """Index of the element nearest to ``value`` in the blank-free sorted data.

    Returns ``None`` (no index) if ``value`` lies outside the data range or
    the data has no non-blank elements. Use :class:`QuantileCursor`
    directly for many monotonic lookups over the same data.
    """
    nbs = no_blank_sorted(data, inplace)
    if nbs.size == 0:
        logger.warning("No non-blank elements: the quantile function is not "
                       "defined for a zero-sized array")
        return None
    return QuantileCursor(nbs).index(value)


def quantile_function(data, value, inplace: bool = False) -> float:
    """Quantile of ``value`` in the data, as ``index/(n-1)``.

    Values below the data range give ``-inf`` and values above it ``+inf``
    whatever the sort direction. NaN when there are no non-blank elements
    or ``value`` is NaN; 0.0 for a single element equal to ``value``.
    """
    nbs = no_blank_sorted(data, inplace)
    if nbs.size == 0:
        return float("nan")

    cursor = QuantileCursor(nbs)
    index = cursor.index(value)
    if index is not None:
        return index / (nbs.size - 1) if nbs.size > 1 else 0.0

    v = cursor._cast(value)
    if v is None:
        return float("nan")
    first = to_python(nbs.array[0])
    if cursor.decreasing:
        return math.inf if v > first else -math.inf
    return -math.inf if v < first else math.inf
