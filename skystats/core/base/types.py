"""
Element types supported by the statistics engine.

Every dataset holds one of ten primitive numeric types. Each type has a
reserved *blank* value marking missing data: the maximum value for
unsigned integers, the minimum value for signed integers and NaN for
floating point types. The table below is consulted once at the entry of
each operation; the inner loops then run on plain numpy arrays of that
type.
"""

from enum import Enum
from typing import Union

import numpy as np

from .exceptions import DataError


class DataType(str, Enum):
    """The ten element types a dataset may hold."""

    UINT8 = "uint8"
    INT8 = "int8"
    UINT16 = "uint16"
    INT16 = "int16"
    UINT32 = "uint32"
    INT32 = "int32"
    UINT64 = "uint64"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"

    @property
    def dtype(self) -> np.dtype:
        """The numpy dtype of this element type."""
        return np.dtype(self.value)

    @property
    def is_integer(self) -> bool:
        return self.dtype.kind in "ui"

    @property
    def is_unsigned(self) -> bool:
        return self.dtype.kind == "u"

    @property
    def is_float(self) -> bool:
        return self.dtype.kind == "f"

    @property
    def blank(self) -> np.generic:
        """Blank (missing data) sentinel of this type."""
        return _BLANKS[self]

    @property
    def widened(self) -> "DataType":
        """Signed type able to hold differences between two values of this type.

        Unsigned types are promoted to the next wider signed type (64-bit
        unsigned has nowhere to go and maps to 64-bit signed). Signed and
        floating point types are returned unchanged.
        """
        return _WIDENED.get(self, self)

    @classmethod
    def from_dtype(cls, dtype: Union[np.dtype, type, str]) -> "DataType":
        """Look up the element type of a numpy dtype.

        Raises
        ------
        DataError
            If the dtype is not one of the ten supported numeric types.
        """
        try:
            name = np.dtype(dtype).name
        except TypeError as e:
            raise DataError(f"Type {dtype!r} not recognized", data_type=str(dtype)) from e
        try:
            return cls(name)
        except ValueError:
            raise DataError(
                f"Type code '{name}' not recognized",
                data_type=name,
                expected_format=", ".join(t.value for t in cls),
            )


_BLANKS = {
    DataType.UINT8: np.uint8(np.iinfo(np.uint8).max),
    DataType.INT8: np.int8(np.iinfo(np.int8).min),
    DataType.UINT16: np.uint16(np.iinfo(np.uint16).max),
    DataType.INT16: np.int16(np.iinfo(np.int16).min),
    DataType.UINT32: np.uint32(np.iinfo(np.uint32).max),
    DataType.INT32: np.int32(np.iinfo(np.int32).min),
    DataType.UINT64: np.uint64(np.iinfo(np.uint64).max),
    DataType.INT64: np.int64(np.iinfo(np.int64).min),
    DataType.FLOAT32: np.float32(np.nan),
    DataType.FLOAT64: np.float64(np.nan),
}

_WIDENED = {
    DataType.UINT8: DataType.INT16,
    DataType.UINT16: DataType.INT32,
    DataType.UINT32: DataType.INT64,
    DataType.UINT64: DataType.INT64,
}


def blank_value(dtype: Union[np.dtype, DataType, str]) -> np.generic:
    """Return the blank sentinel for a dtype or element type."""
    if not isinstance(dtype, DataType):
        dtype = DataType.from_dtype(dtype)
    return dtype.blank


def blank_mask(array: np.ndarray) -> np.ndarray:
    """Boolean mask that is True on the blank elements of ``array``."""
    dtype = DataType.from_dtype(array.dtype)
    if dtype.is_float:
        return np.isnan(array)
    return array == dtype.blank


def is_blank(value, dtype: Union[np.dtype, DataType, str]) -> bool:
    """Check whether a single value equals the blank sentinel of ``dtype``."""
    if not isinstance(dtype, DataType):
        dtype = DataType.from_dtype(dtype)
    if dtype.is_float:
        return bool(np.isnan(value))
    return value == dtype.blank


def to_python(value):
    """Convert a numpy scalar to the matching Python number.

    Integer scalars become ``int`` (exact for all 64-bit values) and
    floating scalars become ``float``; used wherever element arithmetic
    must not wrap around.
    """
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        return float(value)
    return value
