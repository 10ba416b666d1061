"""
Blank-aware sorting and compaction.

Nearly every estimator starts from the blank-free sorted form of its input
returned by :func:`no_blank_sorted`. The functions here are the only ones
in the package that mutate a dataset, and only when they are explicitly
asked to (``inplace=True`` or the ``sort_*``/``blank_remove`` functions).
"""

import logging

import numpy as np

from ..base.data_structures import Dataset, DatasetFlags, SortDirection, as_dataset
from ..base.exceptions import DataError
from ..base.types import blank_mask

logger = logging.getLogger(__name__)


def _require_owned(data: Dataset, operation: str) -> None:
    if data.is_view:
        raise DataError(
            f"{operation}: a tile does not own its memory and cannot be "
            f"modified in place; copy it first",
            data_type=data.type.value,
        )


def is_sorted(data, update_flags: bool = True) -> SortDirection:
    """Check if a dataset is sorted.

    Blank elements are not treated specially (a NaN breaks any order).

    Parameters
    ----------
    data : Dataset or array_like
        Input values
    update_flags : bool
        Store the outcome in the dataset's flag snapshot

    Returns
    -------
    SortDirection
        ``INCREASING`` for zero or one element and for constant data.
    """
    data = as_dataset(data)
    if data.flags.sorted is not None:
        return data.flags.sorted

    a = data.values()
    if a.size <= 1:
        out = SortDirection.INCREASING
    elif a[1] >= a[0]:
        out = SortDirection.NOT if np.any(a[1:] < a[:-1]) else SortDirection.INCREASING
    else:
        out = SortDirection.NOT if np.any(a[1:] > a[:-1]) else SortDirection.DECREASING

    if update_flags:
        data.flags = data.flags.with_sorted(out)
    return out


def sort_increasing(data: Dataset) -> Dataset:
    """Sort a dataset in place, in increasing order.

    Blank values are not removed. The result is always one dimensional.
    """
    _require_owned(data, "sort_increasing")
    values = data.array.reshape(-1)
    values.sort()
    data.array = values
    data.flags = data.flags.with_sorted(SortDirection.INCREASING)
    return data


def sort_decreasing(data: Dataset) -> Dataset:
    """Sort a dataset in place, in decreasing order.

    Blank values are not removed. The result is always one dimensional.
    """
    _require_owned(data, "sort_decreasing")
    values = data.array.reshape(-1)
    values.sort()
    values[:] = values[::-1].copy()
    data.array = values
    data.flags = data.flags.with_sorted(SortDirection.DECREASING)
    return data


def blank_present(data, update_flags: bool = True) -> bool:
    """Return True if the dataset has at least one blank element."""
    data = as_dataset(data)
    if data.flags.has_blank is not None:
        return data.flags.has_blank

    present = bool(blank_mask(data.values()).any()) if data.size else False
    if update_flags:
        data.flags = data.flags.with_blank(present)
    return present


def blank_remove(data: Dataset) -> Dataset:
    """Remove the blank elements of a dataset in place.

    The relative order of the remaining elements is kept, so a known sort
    direction stays valid. The result is always one dimensional.
    """
    _require_owned(data, "blank_remove")
    values = data.values()
    mask = blank_mask(values)
    if mask.any():
        data.array = values[~mask]
    else:
        data.array = values
    data.flags = data.flags.with_blank(False)
    return data


def _owned_copy(data: Dataset) -> Dataset:
    return Dataset(np.array(data.values(), copy=True), flags=data.flags,
                   name=data.name, unit=data.unit, comment=data.comment)


def no_blank_sorted(data, inplace: bool = False) -> Dataset:
    """Return the blank-free, sorted form of a dataset.

    A known sort direction (increasing or decreasing) is kept; unsorted
    data is sorted in increasing order.

    Parameters
    ----------
    data : Dataset or array_like
        Input values
    inplace : bool
        Allow the input dataset itself to be compacted and sorted. A tile
        is always copied first (its parent block is never touched) and the
        request is then satisfied by that copy.

    Returns
    -------
    Dataset
        One dimensional, blank free and sorted. The input dataset itself
        when it could be reused.
    """
    data = as_dataset(data)

    if data.size == 0:
        out = data if inplace else Dataset(np.empty(0, dtype=data.dtype),
                                           name=data.name, unit=data.unit)
        out.array = out.array.reshape(-1)
        out.flags = DatasetFlags(sorted=SortDirection.INCREASING, has_blank=False)
        return out

    if data.is_view:
        contig = _owned_copy(data)
        inplace = True
    else:
        contig = data

    # Without 'inplace', the caller's dataset stays read-only, flags included.
    readonly = contig is data and not inplace

    if blank_present(contig, update_flags=not readonly):
        noblank = contig if inplace else _owned_copy(contig)
        blank_remove(noblank)
    else:
        noblank = contig
        if noblank.flags.has_blank is None and noblank is not data:
            noblank.flags = noblank.flags.with_blank(False)

    if noblank.size == 0:
        out = noblank
    else:
        direction = is_sorted(noblank, update_flags=not (readonly and noblank is data))
        fresh = noblank is not data
        if direction is not SortDirection.NOT:
            out = noblank if (inplace or fresh) else _owned_copy(noblank)
            out.flags = out.flags.with_sorted(direction)
        else:
            out = noblank if (inplace or fresh) else _owned_copy(noblank)
            sort_increasing(out)

    if out.ndim != 1:
        out.array = out.array.reshape(-1)
    out.flags = out.flags.with_blank(False)
    if out.size == 0:
        out.flags = DatasetFlags(sorted=SortDirection.INCREASING, has_blank=False)
    return out


def sorted_values(data, inplace: bool = False) -> np.ndarray:
    """Blank-free values in increasing order, as a plain array.

    Decreasing datasets are returned as a reversed view.
    """
    nbs = no_blank_sorted(data, inplace)
    if nbs.flags.sorted is SortDirection.DECREASING:
        return nbs.array[::-1]
    return nbs.array
