"""
Central tendency and dispersion of blank-aware datasets.

Sums and moments are accumulated in float64 whatever the element type.
The median and MAD are returned in the element type of the input: for
integers the average of the two middle elements of an even-sized sample
is truncated, exactly like integer division.
"""

import logging
import math
from typing import Tuple

import numpy as np

from ..base.data_structures import Dataset, SortDirection, as_dataset
from ..base.types import DataType, to_python
from ..base.validation import require_quantile
from .order import quantile_index
from .sorting import no_blank_sorted

logger = logging.getLogger(__name__)


def _half_sum(x, y, dtype: DataType):
    """``(x+y)/2`` in the element type, without wrapping around."""
    if dtype.is_integer:
        total = to_python(x) + to_python(y)
        half = abs(total) // 2
        return dtype.dtype.type(half if total >= 0 else -half)
    return dtype.dtype.type((x + y) / dtype.dtype.type(2))


class BasicStatistics:
    """Single pass statistics ignoring blank elements."""

    @staticmethod
    def number(data) -> int:
        """Number of non-blank elements."""
        data = as_dataset(data)
        return int(data.non_blank().size)

    @staticmethod
    def sum(data) -> float:
        """Sum of the non-blank elements in float64 (NaN if there are none)."""
        values = as_dataset(data).non_blank()
        if values.size == 0:
            return float("nan")
        return float(np.sum(values, dtype=np.float64))

    @staticmethod
    def mean(data) -> float:
        """Mean of the non-blank elements in float64 (NaN if there are none)."""
        values = as_dataset(data).non_blank()
        if values.size == 0:
            return float("nan")
        return float(np.sum(values, dtype=np.float64) / values.size)

    @staticmethod
    def std_from_sums(total: float, total2: float, num: int) -> float:
        """Standard deviation from the sum and the sum of squares.

        Parameters
        ----------
        total : float
            Sum of the values
        total2 : float
            Sum of the squared values
        num : int
            Number of values

        Returns
        -------
        float
            NaN for no values and exactly 0 for a single value. When
            ``total**2/num`` exceeds ``total2`` (possible only through
            round-off on nearly identical values) the result is 0.
        """
        if num == 0:
            return float("nan")
        if num == 1:
            return 0.0
        ss = total * total / num
        if ss > total2:
            return 0.0
        return math.sqrt((total2 - ss) / num)

    @staticmethod
    def _sums(values: np.ndarray) -> Tuple[float, float]:
        v = values.astype(np.float64)
        return float(np.sum(v)), float(np.dot(v, v))

    @staticmethod
    def _constant(values: np.ndarray) -> bool:
        # Identical values have a spread of exactly zero, whatever the round-off.
        return bool(values.min() == values.max())

    @staticmethod
    def std(data) -> float:
        """Population standard deviation of the non-blank elements."""
        values = as_dataset(data).non_blank()
        if values.size <= 1:
            return float("nan") if values.size == 0 else 0.0
        if BasicStatistics._constant(values):
            return 0.0
        s, s2 = BasicStatistics._sums(values)
        return BasicStatistics.std_from_sums(s, s2, values.size)

    @staticmethod
    def mean_std(data) -> Tuple[float, float]:
        """Mean and standard deviation in one pass.

        Returns
        -------
        tuple
            ``(mean, std)``; both NaN without non-blank elements and
            ``(value, 0.0)`` for a single one.
        """
        values = as_dataset(data).non_blank()
        n = values.size
        if n == 0:
            return float("nan"), float("nan")
        if n == 1:
            return float(values[0]), 0.0
        s, s2 = BasicStatistics._sums(values)
        if BasicStatistics._constant(values):
            return s / n, 0.0
        return s / n, BasicStatistics.std_from_sums(s, s2, n)

    @staticmethod
    def has_negative(data) -> bool:
        """True if any non-blank element is negative."""
        data = as_dataset(data)
        if data.size == 0 or data.type.is_unsigned:
            return False
        return bool(np.any(data.non_blank() < 0))

    @staticmethod
    def unique(data, inplace: bool = False) -> Dataset:
        """Unique non-blank elements, in order of first appearance.

        The result is a new one dimensional dataset of the input type; with
        ``inplace`` the input dataset is replaced by it.
        """
        data = as_dataset(data)
        values = data.non_blank()
        _, first = np.unique(values, return_index=True)
        out = values[np.sort(first)]
        if inplace and not data.is_view:
            data.array = out
            data.flags = data.flags.with_blank(False).with_sorted(None)
            return data
        return Dataset(out, name=data.name, unit=data.unit, comment=data.comment)

    @staticmethod
    def concentration(data, q_width: float, inplace: bool = False) -> float:
        """Concentration of the distribution around its median.

        The sorted values are rescaled to [0, 1] between the second and the
        second-to-last element (the extremes scatter too much) and the
        result is ``q_width`` divided by the rescaled distance between the
        quantiles ``0.5 - q_width/2`` and ``0.5 + q_width/2``.

        Returns
        -------
        float
            NaN with fewer than two non-blank elements.
        """
        require_quantile(q_width, name="quantile width")
        nbs = no_blank_sorted(data, inplace)
        if nbs.size <= 1:
            return float("nan")

        a = nbs.array.astype(np.float32)
        if nbs.flags.sorted is SortDirection.DECREASING:
            a = a[::-1]
        low, high = a[1], a[a.size - 2]
        ilow = quantile_index(a.size, 0.5 - q_width / 2)
        ihigh = quantile_index(a.size, 0.5 + q_width / 2)
        with np.errstate(divide="ignore", invalid="ignore"):
            vlow = (a[ilow] - low) / (high - low)
            vhigh = (a[ihigh] - low) / (high - low)
            return float(np.float64(q_width) / (np.float64(vhigh) - np.float64(vlow)))


class RobustStatistics:
    """Order based statistics returned in the element type."""

    @staticmethod
    def median_in_sorted(sorted_values: np.ndarray, dtype: DataType):
        """Median of a blank-free sorted array (either direction)."""
        n = sorted_values.size
        if n == 0:
            return dtype.blank
        if n % 2:
            return sorted_values[n // 2]
        return _half_sum(sorted_values[n // 2], sorted_values[n // 2 - 1], dtype)

    @staticmethod
    def median(data, inplace: bool = False):
        """Median of the non-blank elements, in the element type.

        Returns the blank value of the type when there are no non-blank
        elements.
        """
        nbs = no_blank_sorted(data, inplace)
        return RobustStatistics.median_in_sorted(nbs.array, nbs.type)

    @staticmethod
    def mad_in_sorted(sorted_values: np.ndarray, dtype: DataType, median=None):
        """Median absolute deviation of a blank-free sorted array.

        Unsigned types are widened to the next signed type before the
        median is subtracted; the absolute differences fit in the original
        type again and the MAD is returned in it.
        """
        if sorted_values.size == 0:
            return dtype.blank
        if median is None:
            median = RobustStatistics.median_in_sorted(sorted_values, dtype)

        work = dtype.widened.dtype
        center = np.array([median], dtype=dtype.dtype).astype(work)[0]
        with np.errstate(over="ignore"):
            diff = np.abs(sorted_values.astype(work) - center).astype(dtype.dtype)
        diff.sort()
        return RobustStatistics.median_in_sorted(diff, dtype)

    @staticmethod
    def mad(data, inplace: bool = False):
        """Median absolute deviation of the non-blank elements."""
        nbs = no_blank_sorted(data, inplace)
        return RobustStatistics.mad_in_sorted(nbs.array, nbs.type)

    @staticmethod
    def median_mad(data, inplace: bool = False):
        """Median and MAD of the non-blank elements, both in the element type."""
        nbs = no_blank_sorted(data, inplace)
        med = RobustStatistics.median_in_sorted(nbs.array, nbs.type)
        return med, RobustStatistics.mad_in_sorted(nbs.array, nbs.type, med)


number = BasicStatistics.number
sum = BasicStatistics.sum
mean = BasicStatistics.mean
std = BasicStatistics.std
mean_std = BasicStatistics.mean_std
std_from_sums = BasicStatistics.std_from_sums
has_negative = BasicStatistics.has_negative
unique = BasicStatistics.unique
concentration = BasicStatistics.concentration
median = RobustStatistics.median
mad = RobustStatistics.mad
median_mad = RobustStatistics.median_mad
