"""
Outlier detection on sorted distributions.

Both detectors use a MAD-clipped median and STD of recent differences
between sorted elements as the local scale, so a few earlier outliers do
not hide a later one.
"""

import logging
from collections import deque
from typing import Optional, Tuple

import numpy as np

from ...utils.constants import OUTLIER
from ..base.exceptions import StatisticsError
from ..config import get_config
from .clipping import ClipStats, clip_mad
from .sorting import sorted_values

logger = logging.getLogger(__name__)


def _clip_defaults(multiplier, param):
    config = get_config()
    return (config.clip_multiplier if multiplier is None else multiplier,
            config.clip_param if param is None else param)


def outlier_by_distance(pos1_neg0: bool, data, window_size: int, sigma: float,
                        sigclip_multip: Optional[float] = None,
                        sigclip_param: Optional[float] = None,
                        inplace: bool = False):
    """Last element before the first outlying gap.

    The sorted elements are walked from the low end (``pos1_neg0`` true)
    or from the high end. At every element the gaps between the previous
    ``window_size`` elements are MAD-clipped. The walk stops as soon as
    the gap leading to the element exceeds the clipped median gap by more
    than ``sigma`` clipped standard deviations; the element just before
    that gap, the last one still in the bulk of the data, is returned.

    Parameters
    ----------
    pos1_neg0 : bool
        Search towards larger values (True) or smaller values (False).
    data : Dataset or array_like
        Input values
    window_size : int
        Number of previous elements whose gaps set the local scale; an
        outlier is hard to define with fewer than three.
    sigma : float
        Multiple of the clipped STD a gap must exceed.
    sigclip_multip, sigclip_param : float, optional
        Clipping parameters, see :func:`clip_mad`.
    inplace : bool
        Allow ``data`` to be compacted and sorted in place.

    Returns
    -------
    numpy scalar or None
        The last element before the gap, in the element type, or None
        when no gap qualifies.
    """
    multip, param = _clip_defaults(sigclip_multip, sigclip_param)
    ascending = sorted_values(data, inplace)
    if ascending.size == 0 or window_size <= 2:
        return None

    ordered = ascending if pos1_neg0 else ascending[::-1]
    values = ordered.astype(np.float64)
    if not pos1_neg0:
        values = -values
    gaps = np.diff(values)

    for i in range(window_size, values.size):
        clipped = clip_mad(gaps[i - window_size:i - 1], multip, param,
                           extras=ClipStats.STD)
        excess = gaps[i - 1] - clipped.center
        logger.debug("outlier_by_distance: %d %g gap=%g (%g, %g)", i,
                     values[i], gaps[i - 1], clipped.center, clipped.std)
        if excess > sigma * clipped.std:
            return ordered[i - 1]
    return None


def outlier_flat_cfp(data, numprev: int, sigclip_multip: Optional[float] = None,
                     sigclip_param: Optional[float] = None, thresh: float = 1.0,
                     numcontig: int = 1,
                     inplace: bool = False) -> Optional[Tuple[object, int]]:
    """Where the cumulative frequency plot of the sorted data turns flat.

    At every sorted element ``p`` the difference ``a[p+2] - a[p-2]`` is
    compared with the MAD-clipped median and STD of the ``numprev``
    previous differences. The first run of ``numcontig`` consecutive
    elements whose normalized difference exceeds ``thresh`` marks the
    flat part; differences between nearly equal values (clipped STD
    below 1e-6) never count.

    Returns
    -------
    tuple or None
        ``(value, index)`` of the first element of the run, with the index
        in the increasing sorted data, or None when no such run exists.

    Raises
    ------
    StatisticsError
        If ``thresh`` is not positive or ``numprev``/``numcontig`` is zero.
    """
    if not thresh > 0:
        raise StatisticsError(f"The value of 'thresh' ({thresh}) must be positive",
                              statistic="outlier_flat_cfp")
    if numprev <= 0:
        raise StatisticsError(f"'numprev' ({numprev}) must be positive",
                              statistic="outlier_flat_cfp")
    if numcontig <= 0:
        raise StatisticsError(f"'numcontig' ({numcontig}) must be positive",
                              statistic="outlier_flat_cfp")

    multip, param = _clip_defaults(sigclip_multip, sigclip_param)
    ascending = sorted_values(data, inplace)
    a = ascending.astype(np.float64)
    d = OUTLIER.NEIGHBOR_DISTANCE

    previous = deque(maxlen=numprev)
    flatind, counter = None, 0
    for p in range(d, a.size - d):
        diff = a[p + d] - a[p - d]
        if len(previous) < numprev:
            previous.append(diff)
            continue

        clipped = clip_mad(np.array(previous), multip, param, extras=ClipStats.STD)
        check = (diff - clipped.center) / clipped.std if clipped.std > OUTLIER.MIN_STD else np.nan
        logger.debug("outlier_flat_cfp: %d %g diff=%g check=%g", p, a[p], diff, check)

        if check > thresh:
            if flatind is None:
                flatind = p
            counter += 1
            if counter == numcontig:
                return ascending[flatind], flatind
        else:
            flatind, counter = None, 0
        previous.append(diff)

    return None
