"""
Core data structures for SkyStats.

This module defines the typed buffer every statistic operates on
(:class:`Dataset`) together with the records returned by the estimators.
All records are created fresh by the operation producing them and are
owned by the caller.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum
from copy import deepcopy
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np

from .exceptions import DataError, ValidationError
from .types import DataType, blank_mask


class DataStructure(ABC):
    """Common protocol of the records built by the estimators.

    A record can check its own consistency, convert itself to and from a
    plain mapping, and summarize itself in its repr.
    """

    @abstractmethod
    def validate(self) -> bool:
        """Return True, or raise `ValidationError` naming the broken field."""

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Mapping of plain Python values."""

    @classmethod
    @abstractmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataStructure":
        """Inverse of `to_dict`."""

    def copy(self) -> "DataStructure":
        return deepcopy(self)

    def _repr_info(self) -> str:
        return ""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._repr_info()})"


class SortDirection(str, Enum):
    """Result of checking the order of a dataset."""

    NOT = "not"
    INCREASING = "increasing"
    DECREASING = "decreasing"


@dataclass(frozen=True)
class DatasetFlags:
    """Cached knowledge about a dataset's contents.

    ``None`` means "not checked yet". A snapshot is never modified; any
    operation that changes the contents of a dataset attaches a new one.
    """

    sorted: Optional[SortDirection] = None
    has_blank: Optional[bool] = None

    @property
    def sort_checked(self) -> bool:
        return self.sorted is not None

    @property
    def blank_checked(self) -> bool:
        return self.has_blank is not None

    def with_sorted(self, direction: Optional[SortDirection]) -> "DatasetFlags":
        return replace(self, sorted=direction)

    def with_blank(self, has_blank: Optional[bool]) -> "DatasetFlags":
        return replace(self, has_blank=has_blank)


class Dataset(DataStructure):
    """A typed numeric buffer with a blank sentinel and cached flags.

    Parameters
    ----------
    array : array_like
        The values. Any of the ten supported numeric types.
    flags : DatasetFlags, optional
        Already known sort/blank state. Only pass this when it is known
        to be true of ``array``.
    block : Dataset, optional
        Parent dataset when this dataset is a tile (view) into it.
    name, unit, comment : str, optional
        Descriptive metadata, used for histogram/CFP columns.
    """

    def __init__(self, array, flags: Optional[DatasetFlags] = None,
                 block: Optional["Dataset"] = None, name: Optional[str] = None,
                 unit: Optional[str] = None, comment: Optional[str] = None):
        array = np.asarray(array)
        self.type = DataType.from_dtype(array.dtype)
        self.array = array
        self.flags = flags if flags is not None else DatasetFlags()
        self.block = block
        self.name = name
        self.unit = unit
        self.comment = comment

    @classmethod
    def tile(cls, parent: "Dataset", index) -> "Dataset":
        """Create a non-owning view into ``parent``.

        Parameters
        ----------
        parent : Dataset
            The dataset owning the memory
        index : slice or tuple of slices
            Region of ``parent.array`` to view

        Returns
        -------
        Dataset
            A tile; it can never be sorted or compacted in place.
        """
        view = parent.array[index]
        if not np.shares_memory(view, parent.array):
            raise DataError("A tile must be a view (basic slicing) of its block")
        owner = parent.block if parent.block is not None else parent
        return cls(view, block=owner, name=parent.name, unit=parent.unit)

    @property
    def size(self) -> int:
        return int(self.array.size)

    @property
    def ndim(self) -> int:
        return self.array.ndim

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.array.shape

    @property
    def dtype(self) -> np.dtype:
        return self.array.dtype

    @property
    def blank(self) -> np.generic:
        return self.type.blank

    @property
    def is_view(self) -> bool:
        """True when the dataset does not own its (possibly strided) memory."""
        return self.block is not None

    def values(self) -> np.ndarray:
        """The elements as a 1D array (a view where numpy allows it)."""
        return self.array.reshape(-1)

    def blank_mask(self) -> np.ndarray:
        """Boolean mask of the blank elements, flattened."""
        return blank_mask(self.values())

    def non_blank(self) -> np.ndarray:
        """1D array of the non-blank elements, in their original order."""
        values = self.values()
        if self.flags.has_blank is False:
            return values
        return values[~blank_mask(values)]

    def copy(self) -> "Dataset":
        """Owned, contiguous copy with the same element type and flags."""
        return Dataset(np.array(self.array, copy=True, order="C"),
                       flags=self.flags, name=self.name, unit=self.unit,
                       comment=self.comment)

    def astype(self, dtype: Union[DataType, np.dtype, str]) -> "Dataset":
        """Copy converted to another element type.

        Blank elements are carried over as the blank of the new type.
        Flags are not carried over.
        """
        if isinstance(dtype, DataType):
            dtype = dtype.dtype
        target = DataType.from_dtype(dtype)
        values = self.array
        mask = blank_mask(values)
        with np.errstate(invalid="ignore", over="ignore"):
            out = values.astype(target.dtype)
        if mask.any():
            out[mask] = target.blank
        return Dataset(out, name=self.name, unit=self.unit, comment=self.comment)

    def validate(self) -> bool:
        """Check that cached flags agree with the contents.

        Raises
        ------
        ValidationError
            If a cached flag is wrong.
        """
        if self.flags.has_blank is not None:
            actual = bool(self.blank_mask().any())
            if actual != self.flags.has_blank:
                raise ValidationError("Cached blank flag does not match contents",
                                      field="has_blank", value=self.flags.has_blank)
        if self.flags.sorted in (SortDirection.INCREASING, SortDirection.DECREASING):
            values = self.values()
            if values.size > 1:
                steps = np.diff(values.astype(np.float64))
                ok = (steps >= 0).all() if self.flags.sorted is SortDirection.INCREASING \
                    else (steps <= 0).all()
                if not ok:
                    raise ValidationError("Cached sort flag does not match contents",
                                          field="sorted", value=self.flags.sorted.value)
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "array": self.array.tolist(),
            "dtype": self.type.value,
            "shape": list(self.shape),
            "name": self.name,
            "unit": self.unit,
            "comment": self.comment,
            "class": self.__class__.__name__,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dataset":
        array = np.array(data["array"], dtype=data["dtype"])
        if "shape" in data:
            array = array.reshape(data["shape"])
        return cls(array, name=data.get("name"), unit=data.get("unit"),
                   comment=data.get("comment"))

    def __len__(self) -> int:
        return self.size

    def _repr_info(self) -> str:
        view = ", view" if self.is_view else ""
        return f"type={self.type.value}, shape={self.shape}{view}"


def as_dataset(data) -> Dataset:
    """Wrap arrays and sequences in a :class:`Dataset`; pass datasets through."""
    if isinstance(data, Dataset):
        return data
    return Dataset(data)


@dataclass
class ClipResult(DataStructure):
    """Outcome of sigma- or MAD-clipping.

    ``center`` is the median of the surviving elements and ``spread`` the
    STD (sigma-clipping) or MAD (MAD-clipping). When clipping fails or the
    input is degenerate every field is NaN.
    """

    method: str
    center: float = np.nan
    spread: float = np.nan
    number_used: float = np.nan
    number_rounds: float = np.nan
    mean: float = np.nan
    std: float = np.nan
    mad: float = np.nan

    @classmethod
    def failed(cls, method: str) -> "ClipResult":
        return cls(method=method)

    @property
    def is_valid(self) -> bool:
        return not np.isnan(self.center)

    @property
    def median(self) -> float:
        return self.center

    def validate(self) -> bool:
        if self.method not in ("sigma", "mad"):
            raise ValidationError(f"Unknown clipping method '{self.method}'",
                                  field="method", value=self.method)
        if self.is_valid and not (self.spread >= 0):
            raise ValidationError("Clipped spread must be non-negative",
                                  field="spread", value=self.spread)
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "center": self.center,
            "spread": self.spread,
            "number_used": self.number_used,
            "number_rounds": self.number_rounds,
            "mean": self.mean,
            "std": self.std,
            "mad": self.mad,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClipResult":
        return cls(**data)

    def _repr_info(self) -> str:
        return (f"method={self.method}, center={self.center:g}, "
                f"spread={self.spread:g}, used={self.number_used:g}")


@dataclass
class BinSet(DataStructure):
    """Ordered bin centers, tagged regular (equal width) or irregular."""

    centers: np.ndarray
    regular: bool = True
    name: str = "bin_center"
    unit: Optional[str] = None

    def __post_init__(self):
        self.centers = np.asarray(self.centers, dtype=np.float64)
        if self.centers.ndim != 1:
            raise DataError("Bin centers must be one dimensional")

    @property
    def size(self) -> int:
        return int(self.centers.size)

    @property
    def width(self) -> float:
        """Width of a regular bin set."""
        if not self.regular:
            raise DataError("Bin width is only defined for regular bins")
        if self.size < 2:
            raise DataError("At least two bins are needed to measure the bin width")
        return float(self.centers[1] - self.centers[0])

    @property
    def edges(self) -> Tuple[float, float]:
        """Lower edge of the first bin and upper edge of the last bin."""
        half = self.width / 2
        return float(self.centers[0] - half), float(self.centers[-1] + half)

    def validate(self) -> bool:
        if self.size and not np.all(np.isfinite(self.centers)):
            raise ValidationError("Bin centers must be finite")
        if self.size > 1 and np.any(np.diff(self.centers) <= 0):
            raise ValidationError("Bin centers must be strictly increasing")
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"centers": self.centers.tolist(), "regular": self.regular,
                "name": self.name, "unit": self.unit}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BinSet":
        return cls(**data)

    def __len__(self) -> int:
        return self.size

    def _repr_info(self) -> str:
        kind = "regular" if self.regular else "irregular"
        return f"n={self.size}, {kind}"


@dataclass
class Histogram(DataStructure):
    """Per-bin counts.

    ``kind`` is ``"number"`` for raw counts (unsigned integers),
    ``"normalized"`` when the counts sum to one and ``"maxone"`` when the
    largest bin is one (both float32).
    """

    counts: np.ndarray
    bins: BinSet
    kind: str = "number"

    _NAMES = {
        "number": ("hist_number", "counts", "Number of data points within each bin."),
        "normalized": ("hist_normalized", "frac", "Normalized histogram value for this bin."),
        "maxone": ("hist_maxone", "frac",
                   "Fractional histogram value for this bin when maximum bin value is 1.0."),
    }

    @property
    def name(self) -> str:
        return self._NAMES[self.kind][0]

    @property
    def unit(self) -> str:
        return self._NAMES[self.kind][1]

    @property
    def comment(self) -> str:
        return self._NAMES[self.kind][2]

    @property
    def is_normalized(self) -> bool:
        return self.kind == "normalized"

    def validate(self) -> bool:
        if self.kind not in self._NAMES:
            raise ValidationError(f"Unknown histogram kind '{self.kind}'",
                                  field="kind", value=self.kind)
        if self.counts.shape != self.bins.centers.shape:
            raise ValidationError("Histogram and bins must have the same size")
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"counts": self.counts.tolist(), "bins": self.bins.to_dict(),
                "kind": self.kind, "dtype": self.counts.dtype.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Histogram":
        return cls(counts=np.array(data["counts"], dtype=data.get("dtype")),
                   bins=BinSet.from_dict(data["bins"]), kind=data.get("kind", "number"))

    def _repr_info(self) -> str:
        return f"kind={self.kind}, n={self.counts.size}"


@dataclass
class CumulativeFrequency(DataStructure):
    """Inclusive running sum of a histogram (cumulative frequency plot)."""

    values: np.ndarray
    bins: BinSet
    normalized: bool = False

    @property
    def name(self) -> str:
        return "cfp_normalized" if self.normalized else "cfp_number"

    @property
    def unit(self) -> str:
        return "frac" if self.normalized else "count"

    @property
    def comment(self) -> str:
        what = "Fraction" if self.normalized else "Number"
        return f"{what} of data elements from the start to this bin (inclusive)."

    def validate(self) -> bool:
        if self.values.size > 1 and np.any(np.diff(self.values.astype(np.float64)) < 0):
            raise ValidationError("A cumulative frequency plot cannot decrease")
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"values": self.values.tolist(), "bins": self.bins.to_dict(),
                "normalized": self.normalized, "dtype": self.values.dtype.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CumulativeFrequency":
        return cls(values=np.array(data["values"], dtype=data.get("dtype")),
                   bins=BinSet.from_dict(data["bins"]),
                   normalized=data.get("normalized", False))


@dataclass
class Histogram2D(DataStructure):
    """Two dimensional histogram as three equally sized columns.

    Row ``k`` describes the cell ``(centers_a[k], centers_b[k])``; cells
    run over the second axis fastest.
    """

    centers_a: np.ndarray
    centers_b: np.ndarray
    counts: np.ndarray
    shape: Tuple[int, int] = (0, 0)

    def as_image(self) -> np.ndarray:
        """Counts reshaped to ``(bins_a, bins_b)``."""
        return self.counts.reshape(self.shape)

    def validate(self) -> bool:
        n = self.shape[0] * self.shape[1]
        if not (self.centers_a.size == self.centers_b.size == self.counts.size == n):
            raise ValidationError("2D histogram columns must have bins_a*bins_b rows")
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"centers_a": self.centers_a.tolist(),
                "centers_b": self.centers_b.tolist(),
                "counts": self.counts.tolist(), "shape": list(self.shape)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Histogram2D":
        return cls(centers_a=np.asarray(data["centers_a"], dtype=np.float64),
                   centers_b=np.asarray(data["centers_b"], dtype=np.float64),
                   counts=np.asarray(data["counts"], dtype=np.uint32),
                   shape=tuple(data["shape"]))


@dataclass
class ModeResult(DataStructure):
    """Mode estimate with its quality measures.

    Either all four fields are finite or all four are NaN (rejected).
    """

    mode: float = np.nan
    quantile: float = np.nan
    symmetricity: float = np.nan
    boundary: float = np.nan

    @classmethod
    def rejected(cls) -> "ModeResult":
        return cls()

    @property
    def is_valid(self) -> bool:
        return not np.isnan(self.mode)

    def as_array(self) -> np.ndarray:
        return np.array([self.mode, self.quantile, self.symmetricity, self.boundary],
                        dtype=np.float64)

    def validate(self) -> bool:
        nans = np.isnan(self.as_array())
        if nans.any() and not nans.all():
            raise ValidationError("A mode result must be fully valid or fully NaN")
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {"mode": self.mode, "quantile": self.quantile,
                "symmetricity": self.symmetricity, "boundary": self.boundary}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModeResult":
        return cls(**data)
