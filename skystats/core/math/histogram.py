"""
Histograms and cumulative frequency plots (CFP) over regular bins.

Bins are described by their centers (:class:`BinSet`). An element ``x``
falls in bin ``int((x - min) / width)`` where ``min`` is the lower edge of
the first bin; an element sitting exactly on the upper edge of the last
bin is counted in the last bin. Blank elements are never counted.
"""

import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from ..base.data_structures import (
    BinSet,
    CumulativeFrequency,
    Dataset,
    Histogram,
    Histogram2D,
    as_dataset,
)
from ..base.exceptions import DataError, ValidationError
from ..base.validation import require_quantile, require_regular_bins, require_same_size
from .order import maximum, minimum, quantile

logger = logging.getLogger(__name__)

# Fraction of a bin width by which a value may overshoot the outer edges.
_EDGE_SLACK = 1e-9


def _range_from_data(data: Dataset, bounds) -> Optional[tuple]:
    """Resolve the ``[min, max]`` range of :func:`regular_bins`."""
    if bounds is None:
        bounds = ()
    bounds = np.asarray(bounds, dtype=np.float64).reshape(-1)

    if bounds.size == 1:
        q = require_quantile(float(bounds[0]), name="range quantile")
        low, high = float(quantile(data, q)), float(quantile(data, 1.0 - q))
        if low > high:
            low, high = high, low
        return low, high

    if bounds.size not in (0, 2):
        raise ValidationError("A range must have one (quantile) or two (min, max) elements",
                              field="range", value=bounds.tolist())

    low = float(minimum(data)) if bounds.size == 0 or np.isnan(bounds[0]) else float(bounds[0])
    high = float(maximum(data)) if bounds.size == 0 or np.isnan(bounds[1]) else float(bounds[1])
    return low, high


def regular_bins(data, range: Optional[Union[Sequence[float], np.ndarray]] = None,
                 num_bins: int = 10, onebinstart: float = np.nan) -> Optional[BinSet]:
    """Equally spaced bins covering a range.

    Parameters
    ----------
    data : Dataset or array_like
        Input values; only used for the parts of the range that are not
        given explicitly.
    range : sequence of float, optional
        ``None`` or empty for the full data range. Two elements are the
        minimum and maximum; either may be NaN to take it from the data.
        A single element ``Q`` is a quantile and gives the range from the
        ``Q`` to the ``1-Q`` quantile of the data.
        A range of zero width (e.g. constant data) is widened by 0.5 on
        both sides.
    num_bins : int
        Number of bins, must be positive.
    onebinstart : float, optional
        Shift all bins so that one bin edge falls exactly on this value.
        Ignored if it is NaN or does not fall strictly inside the bins.

    Returns
    -------
    BinSet or None
        Regular bin centers in float64. ``None`` if the data have no
        non-blank elements.

    Raises
    ------
    ValidationError
        If ``num_bins`` is zero or the range is malformed.
    """
    if num_bins <= 0:
        raise ValidationError("'num_bins' must be positive", field="num_bins",
                              value=num_bins)

    data = as_dataset(data)
    if data.size == 0 or data.non_blank().size == 0:
        return None

    low, high = _range_from_data(data, range)
    if low == high:
        low, high = low - 0.5, high + 0.5

    binwidth = (high - low) / num_bins
    hbw = binwidth / 2
    centers = low + np.arange(num_bins, dtype=np.float64) * binwidth + hbw

    if not np.isnan(onebinstart):
        edges = centers - hbw
        for i in np.arange(num_bins - 1):
            if edges[i] < onebinstart and edges[i + 1] > onebinstart:
                centers += onebinstart - edges[i]
                break

    return BinSet(centers=centers, regular=True, unit=data.unit)


def _check_input(data: Dataset, operation: str) -> None:
    if data.size == 0:
        raise DataError(f"{operation}: input's size is 0", data_type=data.type.value)


def _locate(values: np.ndarray, bins: BinSet) -> Tuple[np.ndarray, np.ndarray]:
    """Inside-mask and bin index of every value.

    Values within round-off of the outer edges count as inside, so bins
    built over the full data range always hold the minimum and maximum.
    An index of ``size`` (a value on the upper edge) goes to the last bin.
    """
    low, high = bins.edges
    width = bins.width
    slack = _EDGE_SLACK * width
    values = values.astype(np.float64)
    inside = (values >= low - slack) & (values <= high + slack)
    index = np.clip(np.floor((values - low) / width), 0, bins.size - 1)
    return inside, index.astype(np.int64)


def histogram(data, bins: BinSet, normalize: bool = False,
              maxone: bool = False) -> Histogram:
    """Number of non-blank elements in each bin.

    Parameters
    ----------
    data : Dataset or array_like
        Input values
    bins : BinSet
        Regular bins with at least two elements
    normalize : bool
        Divide the counts by their sum (float32 result)
    maxone : bool
        Divide the counts by the largest count (float32 result)

    Returns
    -------
    Histogram
        Raw counts are ``uint64``.

    Raises
    ------
    ValidationError
        If the bins are unusable or both scalings are requested.
    DataError
        If the input has no elements.
    """
    require_regular_bins(bins)
    data = as_dataset(data)
    _check_input(data, "histogram")
    if normalize and maxone:
        raise ValidationError("Only one of 'normalize' and 'maxone' may be given")

    inside, index = _locate(data.non_blank(), bins)
    counts = np.bincount(index[inside], minlength=bins.size).astype(np.uint64)

    if not (normalize or maxone):
        return Histogram(counts=counts, bins=bins, kind="number")

    scaled = counts.astype(np.float32)
    ref = scaled.sum(dtype=np.float64) if normalize else scaled.max()
    with np.errstate(divide="ignore", invalid="ignore"):
        scaled = (scaled / np.float32(ref)).astype(np.float32)
    return Histogram(counts=scaled, bins=bins,
                     kind="normalized" if normalize else "maxone")


def cfp(data, bins: BinSet, normalize: bool = False,
        hist: Optional[Histogram] = None) -> CumulativeFrequency:
    """Cumulative frequency plot: inclusive running sum of the histogram.

    Parameters
    ----------
    data : Dataset or array_like
        Input values
    bins : BinSet
        Regular bins with at least two elements
    normalize : bool
        Divide the running sum by the total count (float32 result)
    hist : Histogram, optional
        Already computed histogram over ``bins``. A raw histogram is
        reused as is and so is a normalized one (its CFP is then
        normalized too); a max-one histogram cannot be used and the raw
        histogram is recomputed.

    Returns
    -------
    CumulativeFrequency
    """
    require_regular_bins(bins)
    data = as_dataset(data)
    _check_input(data, "cfp")

    if hist is not None and hist.counts.size != bins.size:
        raise ValidationError("The histogram and bins must have the same size",
                              field="hist", value=hist.counts.size)

    if hist is None:
        hist = histogram(data, bins)
    elif hist.counts.dtype == np.float32:
        total = hist.counts.sum(dtype=np.float64)
        if not np.isclose(total, 1.0, rtol=1e-5, atol=0.0):
            logger.debug("Supplied histogram is not normalized; recomputing it")
            hist = histogram(data, bins)

    if hist.counts.dtype == np.float32:
        running = np.cumsum(hist.counts, dtype=np.float64).astype(np.float32)
        return CumulativeFrequency(values=running, bins=bins, normalized=True)

    running = np.cumsum(hist.counts, dtype=np.uint64)
    if not normalize:
        return CumulativeFrequency(values=running, bins=bins, normalized=False)

    total = hist.counts.sum(dtype=np.uint64)
    with np.errstate(divide="ignore", invalid="ignore"):
        values = (running.astype(np.float32) / np.float32(total)).astype(np.float32)
    return CumulativeFrequency(values=values, bins=bins, normalized=True)


def histogram2d(first, second, bins_first: BinSet, bins_second: BinSet) -> Histogram2D:
    """Two dimensional histogram of two equally sized datasets.

    A pair is only counted when both elements are non-blank and inside
    their bins.

    Returns
    -------
    Histogram2D
        ``centers_a``/``centers_b`` hold the bin centers of each cell and
        ``counts`` the ``uint32`` number of pairs, the second axis running
        fastest.

    Raises
    ------
    ValidationError
        If the datasets differ in size or the bins are unusable.
    """
    first, second = as_dataset(first), as_dataset(second)
    require_same_size(first, second, "input datasets")
    require_regular_bins(bins_first)
    require_regular_bins(bins_second)

    na, nb = bins_first.size, bins_second.size
    a = first.values()
    b = second.values()
    keep = ~(first.blank_mask() | second.blank_mask())
    in_a, i = _locate(a[keep], bins_first)
    in_b, j = _locate(b[keep], bins_second)
    inside = in_a & in_b
    counts = np.bincount(i[inside] * nb + j[inside], minlength=na * nb).astype(np.uint32)

    return Histogram2D(
        centers_a=np.repeat(bins_first.centers, nb),
        centers_b=np.tile(bins_second.centers, na),
        counts=counts,
        shape=(na, nb),
    )
