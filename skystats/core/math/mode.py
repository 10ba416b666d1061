"""
Mode estimation by mirroring the distribution.

The mode candidate ``m`` (an index in the sorted data) is used as a
mirror: every element below it is reflected to ``2*a[m] - a[m-i]`` and
the cumulative frequency of this mirrored distribution is compared with
that of the data above ``m``. Around the true mode of a distribution with
a symmetric core the two agree best, so the maximum index difference
between them is minimized with a golden-section search over the
``[0.01, 0.55]`` quantile range.

A found mode is only accepted when its symmetricity is good and the
data actually peak there, see :func:`mode`.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ...utils.constants import MODE
from ..base.data_structures import (
    BinSet,
    CumulativeFrequency,
    Dataset,
    DatasetFlags,
    Histogram,
    ModeResult,
    SortDirection,
)
from ..base.exceptions import StatisticsError
from ..config import get_config
from .histogram import cfp, histogram, regular_bins
from .order import QuantileCursor, quantile_index
from .sorting import no_blank_sorted, sorted_values

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MirrorDiff:
    """Maximum index difference between the data and its mirror.

    ``above`` marks a mirror whose cumulative frequency rises above that
    of the data by more than the noise allows; such a candidate is worse
    than any finite difference.
    """

    diff: int = 0
    above: bool = False

    @classmethod
    def mirror_above(cls) -> "MirrorDiff":
        return cls(above=True)

    @property
    def rank(self) -> float:
        return math.inf if self.above else float(self.diff)


def _nearest_in_tail(tail: np.ndarray, values: np.ndarray) -> np.ndarray:
    """Index in ``tail`` of the element nearest to each (increasing) value.

    Every value must be at least ``tail[0]``. When no element of ``tail``
    exceeds a value, the returned index is ``tail.size``.
    """
    k = np.searchsorted(tail, values, side="right")
    inner = k < tail.size
    kin = k[inner]
    closer_above = tail[kin] - values[inner] < values[inner] - tail[kin - 1]
    k[inner] = np.where(closer_above, kin, kin - 1)
    return k


class _ModeSearch:
    """Golden-section search of the mirror index on ascending float64 data."""

    MAX_ITERATIONS = 1000

    def __init__(self, ascending: np.ndarray, mirror_dist: float):
        self.a = ascending
        self.size = ascending.size
        self.mirror_dist = mirror_dist
        self.numcheck = self.size // 2
        self.interval = (self.numcheck // MODE.NUM_CHECK_POINTS
                         if self.numcheck > MODE.NUM_CHECK_POINTS else 1)

    def max_index_diff(self, m: int) -> MirrorDiff:
        """Largest ``|i - j|`` where ``a[m+j]`` is nearest to the mirror of ``a[m-i]``."""
        a = self.a
        top = min(self.numcheck, m + 1, self.size - m)
        i = np.arange(1, top, self.interval)
        if i.size == 0:
            return MirrorDiff(0)

        mirrored = 2 * a[m] - a[m - i]
        j = _nearest_in_tail(a[m:], mirrored)

        errordiff = int(self.mirror_dist * math.sqrt(m))
        if np.any(i > j + errordiff):
            return MirrorDiff.mirror_above()
        return MirrorDiff(int(np.max(np.abs(i - j))))

    def golden_section(self) -> int:
        """Index of the mode."""
        lowi = quantile_index(self.size, MODE.MIN_QUANTILE)
        highi = quantile_index(self.size, MODE.MAX_QUANTILE)
        midi = int((highi + MODE.GOLDEN_RATIO * lowi) / (1 + MODE.GOLDEN_RATIO))
        midd = self.max_index_diff(midi)

        for _ in range(self.MAX_ITERATIONS):
            upper = highi - midi > midi - lowi
            if upper:
                di = int(midi + MODE.TWO_TAKE_GOLDEN_RATIO * (highi - midi))
            else:
                di = int(midi - MODE.TWO_TAKE_GOLDEN_RATIO * (midi - lowi))

            if highi - lowi < MODE.TOLERANCE * (midi + di) or highi - lowi <= 3:
                return (highi + lowi) // 2

            dd = self.max_index_diff(di)

            # The mirror must stay within the data: search lower.
            if dd.above:
                if midi < di:
                    highi = di
                else:
                    highi, midi, midd = midi, di, dd
                continue

            if dd.rank < midd.rank:
                if upper:
                    lowi, midi, midd = midi, di, dd
                else:
                    highi, midi, midd = midi, di, dd
            elif upper:
                highi = di
            else:
                lowi = di

        raise StatisticsError(
            f"The golden-section search did not converge in "
            f"{self.MAX_ITERATIONS} iterations",
            statistic="mode", sample_size=self.size,
        )

    def symmetricity(self, m: int):
        """Symmetricity of the mode at index ``m`` and its boundary index.

        The boundary ``b`` is the first index above ``m`` where the data
        and mirror cumulative frequencies differ by more than the index
        noise, and ``a`` the 0.01 quantile of the ``2m+1`` lowest
        elements. The symmetricity is ``(b-m)/(m-a)`` in values.
        """
        a = self.a
        topi = min(2 * m, self.size - 1)
        errdiff = int(self.mirror_dist * math.sqrt(m))
        mf = a[m]
        af = a[quantile_index(2 * m + 1, MODE.SYM_LOW_QUANTILE)]
        if mf <= af:
            return 0.0, topi

        bi = topi
        i = np.arange(1, topi - m)
        if i.size:
            j = _nearest_in_tail(a[m:], 2 * mf - a[m - i])
            off = np.flatnonzero((i > j + errdiff) | (j > i + errdiff))
            if off.size:
                bi = m + int(i[off[0]])

        bf = a[bi]
        if bf == af:
            return 0.0, bi
        return float((bf - mf) / (mf - af)), bi

    def contrast(self, m: int) -> float:
        """How much denser the data are at index ``m`` than at the lower edge.

        Two windows of ``k`` elements are compared: one centred on ``m``
        and one starting at the 0.01 quantile of the ``2m+1`` lowest
        elements, ``k`` being half the distance between the two. The
        result is the value span of the edge window over that of the mode
        window, about 1 for flat data. A mode window of zero span (many
        equal values) is infinitely peaked.
        """
        a = self.a
        ai = quantile_index(2 * m + 1, MODE.SYM_LOW_QUANTILE)
        k = max(1, (m - ai) // 2)
        lo = max(m - k // 2, 0)
        hi = min(lo + k, self.size - 1)
        peak = a[hi] - a[lo]
        edge = a[min(ai + k, self.size - 1)] - a[ai]
        if peak == 0:
            return math.inf if edge > 0 else 0.0
        return float(edge / peak)


def mode(data, mirror_dist: Optional[float] = None, inplace: bool = False) -> ModeResult:
    """Estimate the mode of the non-blank elements.

    Parameters
    ----------
    data : Dataset or array_like
        Input values; need not be sorted and may hold blanks.
    mirror_dist : float, optional
        Distance beyond the mirror to check, as a multiple of the index
        noise ``sqrt(m)``. Defaults to the configured ``mirror_dist``.
    inplace : bool
        Allow ``data`` to be compacted and sorted in place.

    Returns
    -------
    ModeResult
        The mode value, its quantile, the symmetricity and the boundary
        value. All NaN when there are no non-blank elements, when the
        symmetricity is not above 0.2, or when the data are not at least
        1.5 times denser at the mode than at the lower edge of the
        mirrored region (flat distributions have no mode).

    Raises
    ------
    StatisticsError
        If ``mirror_dist`` is not positive.
    """
    if mirror_dist is None:
        mirror_dist = get_config().mirror_dist
    if not mirror_dist > 0:
        raise StatisticsError(
            f"{mirror_dist} not acceptable as a value to 'mirror_dist'. Only "
            f"positive values can be given to it",
            statistic="mode",
        )

    a = sorted_values(data, inplace).astype(np.float64)
    if a.size == 0:
        logger.debug("No non-blank elements, the mode is not defined")
        return ModeResult.rejected()

    search = _ModeSearch(a, float(mirror_dist))
    index = search.golden_section()
    sym, boundary = search.symmetricity(index)

    if sym > MODE.GOOD_SYMMETRICITY and search.contrast(index) > MODE.PEAK_CONTRAST:
        quantile = index / (a.size - 1) if a.size > 1 else 0.0
        return ModeResult(mode=float(a[index]), quantile=quantile,
                          symmetricity=sym, boundary=float(a[boundary]))

    logger.debug("Mode at index %d rejected: symmetricity %g, contrast %g",
                 index, sym, search.contrast(index))
    return ModeResult.rejected()


@dataclass
class MirrorPlots:
    """Histogram and CFP of the distribution mirrored at a value."""

    bins: BinSet
    histogram: Histogram
    cfp: CumulativeFrequency
    mirror_value: float


def mode_mirror_plots(data, value, num_bins: int, inplace: bool = False) -> Optional[MirrorPlots]:
    """Mirror the distribution at ``value`` and build its plots.

    The elements up to the one nearest to ``value`` are kept and reflected
    around it. One bin edge is placed exactly on the mirror value; the
    histogram has a maximum of one and the CFP is normalized.

    Returns
    -------
    MirrorPlots or None
        ``None`` if there are no non-blank elements, or the mirror would
        fall outside the data or on its first element.
    """
    nbs = no_blank_sorted(data, inplace)
    if nbs.size == 0:
        return None

    ascending = sorted_values(nbs, inplace=True)
    cursor = QuantileCursor(
        Dataset(ascending, flags=DatasetFlags(sorted=SortDirection.INCREASING,
                                              has_blank=False))
    )
    index = cursor.index(value)
    if index is None or index == 0:
        return None

    work = ascending if nbs.type.is_float else ascending.astype(np.float64)
    zf = work[index]
    mirror = np.concatenate([work[:index + 1], 2 * zf - work[index - 1::-1]])

    bins = regular_bins(mirror, None, num_bins, onebinstart=float(zf))
    return MirrorPlots(
        bins=bins,
        histogram=histogram(mirror, bins, maxone=True),
        cfp=cfp(mirror, bins, normalize=True),
        mirror_value=float(zf),
    )
