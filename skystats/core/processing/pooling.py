"""
Pooling of 2D datasets.

Each output pixel reduces a square window of ``pool_size`` input pixels
(a stride of ``pool_size``). When an axis is not divisible by the pool
size the last windows along it are partial, so each output axis has
``ceil(dsize / pool_size)`` pixels. Blank pixels are ignored and a
window without any non-blank pixel gives a blank output pixel.
"""

import logging
import math
from typing import Callable, Optional

import numpy as np

from ..base.data_structures import Dataset, as_dataset
from ..base.exceptions import DataError, ValidationError
from ..math import order, statistics
from .threads import spin_off

logger = logging.getLogger(__name__)


def _pool(data, pool_size: int, reducer: Callable, out_dtype: Optional[np.dtype],
          num_threads: Optional[int], operation: str) -> Dataset:
    data = as_dataset(data)
    if data.ndim != 2:
        raise DataError(f"{operation}: only 2D datasets can be pooled, got "
                        f"{data.ndim} dimensions", data_type=data.type.value)
    if pool_size <= 0:
        raise ValidationError("The pool size must be positive", field="pool_size",
                              value=pool_size)
    h, w = data.shape
    if pool_size > h or pool_size > w:
        raise ValidationError(
            f"{operation}: the pool size ({pool_size}) must not be larger than "
            f"the input's height ({h}) or width ({w})",
            field="pool_size", value=pool_size,
        )

    if data.size == 1:
        return data

    oshape = (math.ceil(h / pool_size), math.ceil(w / pool_size))
    out = np.empty(oshape, dtype=out_dtype if out_dtype is not None else data.dtype)
    flat = out.reshape(-1)

    def worker(indices: range) -> None:
        for oind in indices:
            row, col = divmod(oind, oshape[1])
            window = data.array[row * pool_size:(row + 1) * pool_size,
                                col * pool_size:(col + 1) * pool_size]
            flat[oind] = reducer(Dataset(np.array(window)))

    spin_off(worker, flat.size, num_threads)
    logger.debug("%s: %s pooled to %s with windows of %d", operation, data.shape,
                 oshape, pool_size)
    return Dataset(out, name=data.name, unit=data.unit, comment=data.comment)


def _median(window: Dataset):
    return statistics.median(window, inplace=True)


def pool_max(data, pool_size: int, num_threads: Optional[int] = None) -> Dataset:
    """Maximum of every window, in the input type."""
    return _pool(data, pool_size, order.maximum, None, num_threads, "pool_max")


def pool_min(data, pool_size: int, num_threads: Optional[int] = None) -> Dataset:
    """Minimum of every window, in the input type."""
    return _pool(data, pool_size, order.minimum, None, num_threads, "pool_min")


def pool_sum(data, pool_size: int, num_threads: Optional[int] = None) -> Dataset:
    """Sum of every window, in float64."""
    return _pool(data, pool_size, statistics.sum, np.float64, num_threads, "pool_sum")


def pool_mean(data, pool_size: int, num_threads: Optional[int] = None) -> Dataset:
    """Mean of every window, in float64."""
    return _pool(data, pool_size, statistics.mean, np.float64, num_threads, "pool_mean")


def pool_median(data, pool_size: int, num_threads: Optional[int] = None) -> Dataset:
    """Median of every window, in the input type.

    Parameters
    ----------
    data : Dataset or array_like
        Two dimensional input
    pool_size : int
        Side of the square window, at most the smaller axis
    num_threads : int, optional
        Threads to spread the output pixels over

    Returns
    -------
    Dataset
        ``ceil(h/pool_size) x ceil(w/pool_size)`` pixels; the input itself
        when it has a single pixel.
    """
    return _pool(data, pool_size, _median, None, num_threads, "pool_median")
