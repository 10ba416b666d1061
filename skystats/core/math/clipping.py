"""
Iterative sigma- and MAD-clipping.

Both clips work on the blank-free sorted data: every round measures the
median and the spread (STD or MAD) of the current sub-range and moves
its two ends inward to the elements strictly within
``median -/+ multiplier * spread``. The data are never re-sorted.

The ``param`` argument selects how clipping stops. Below one it is a
tolerance on the relative change of the spread between two rounds
(at most ``clip_max_converge`` rounds are tried); one or larger it is
the exact number of rounds.
"""

import enum
import logging
from typing import Optional

import numpy as np

from ..base.data_structures import ClipResult, as_dataset
from ..base.validation import require_clip_parameters
from ..config import get_config
from .sorting import sorted_values
from .statistics import BasicStatistics, RobustStatistics

logger = logging.getLogger(__name__)


class ClipStats(enum.Flag):
    """Extra statistics measured on the elements that survive a clip."""

    NONE = 0
    MEAN = enum.auto()
    STD = enum.auto()
    MAD = enum.auto()


def _extra_statistics(result: ClipResult, window: np.ndarray, dtype,
                      extras: ClipStats) -> ClipResult:
    """Fill the requested statistics that the clip did not produce itself."""
    want_mean = bool(extras & ClipStats.MEAN) and np.isnan(result.mean)
    want_std = bool(extras & ClipStats.STD) and np.isnan(result.std)
    want_mad = bool(extras & ClipStats.MAD) and np.isnan(result.mad)

    if want_mean and want_std:
        result.mean, result.std = BasicStatistics.mean_std(window)
    elif want_mean:
        result.mean = BasicStatistics.mean(window)
    elif want_std:
        result.std = BasicStatistics.std(window)

    if want_mad:
        result.mad = float(np.float32(RobustStatistics.mad_in_sorted(window, dtype)))
    return result


def _clip(data, multiplier: Optional[float], param: Optional[float],
          extras: ClipStats, inplace: bool, method: str) -> ClipResult:
    config = get_config()
    multiplier = config.clip_multiplier if multiplier is None else multiplier
    param = config.clip_param if param is None else param
    require_clip_parameters(multiplier, param)

    data = as_dataset(data)
    dtype = data.type
    bytolerance = param < 1.0
    maxnum = config.clip_max_rounds(param)
    sigma = method == "sigma"

    a = sorted_values(data, inplace)
    if a.size == 0:
        logger.info("No %s-clipping: all input elements are blank or the "
                    "input's size is zero", method.upper())
        return ClipResult.failed(method)

    if a.size == 1:
        value = float(np.float32(a[0]))
        result = ClipResult(method=method, center=value, spread=0.0,
                            number_used=1, number_rounds=0)
        if sigma:
            result.std = 0.0
        else:
            result.mad = 0.0
        return _extra_statistics(result, a, dtype, extras)

    logger.debug("%s-clipping: %-5s %-10s %-12s %-12s", method, "round",
                 "number", "median", "STD" if sigma else "MAD")

    start, size = 0, a.size
    window = a
    num = 0
    center = spread = oldspread = np.nan
    while num < maxnum and size:
        window = a[start:start + size]
        median = RobustStatistics.median_in_sorted(window, dtype)
        if sigma:
            spread = BasicStatistics.std(window)
        else:
            spread = float(RobustStatistics.mad_in_sorted(window, dtype, median))
        center = float(median)

        logger.debug("%s-clipping: %-5d %-10d %-12.5e %-12.5e", method,
                     num + 1, size, center, spread)

        # A stop by tolerance is only possible once a previous round exists.
        if spread == 0 or (bytolerance and num > 0
                           and (oldspread - spread) / spread < param):
            break

        low = center - multiplier * spread
        high = center + multiplier * spread
        first = int(np.searchsorted(window, low, side="right"))
        last = int(np.searchsorted(window, high, side="left"))
        start, size = start + first, max(last - first, 0)

        oldspread = spread
        num += 1

    if size == 0 or (bytolerance and num == maxnum):
        logger.debug("%s-clipping did not converge after %d rounds (%d elements left)",
                     method, num, size)
        return ClipResult.failed(method)

    result = ClipResult(method=method, center=center, spread=spread,
                        number_used=size, number_rounds=num)
    if sigma:
        result.std = spread
    else:
        result.mad = spread
    return _extra_statistics(result, window, dtype, extras)


def clip_sigma(data, multiplier: Optional[float] = None, param: Optional[float] = None,
               extras: ClipStats = ClipStats.NONE, inplace: bool = False) -> ClipResult:
    """Sigma-clip the non-blank elements.

    Parameters
    ----------
    data : Dataset or array_like
        Input values
    multiplier : float, optional
        Multiple of the STD to keep around the median. Defaults to the
        configured ``clip_multiplier``.
    param : float, optional
        Tolerance (below one) or number of rounds (whole number, one or
        larger). Defaults to the configured ``clip_param``.
    extras : ClipStats
        Extra statistics to measure on the surviving elements.
    inplace : bool
        Allow ``data`` to be compacted and sorted in place.

    Returns
    -------
    ClipResult
        All NaN when nothing survives or the tolerance was never reached.

    Raises
    ------
    StatisticsError
        If ``multiplier`` or ``param`` is not positive, or ``param`` is
        one or larger but not a whole number.
    """
    return _clip(data, multiplier, param, extras, inplace, "sigma")


def clip_mad(data, multiplier: Optional[float] = None, param: Optional[float] = None,
             extras: ClipStats = ClipStats.NONE, inplace: bool = False) -> ClipResult:
    """MAD-clip the non-blank elements.

    Identical to :func:`clip_sigma` with the median absolute deviation as
    the spread.
    """
    return _clip(data, multiplier, param, extras, inplace, "mad")
