import numpy as np
import pytest

from skystats.core.base.exceptions import DataError
from skystats.core.base.types import (
    DataType,
    blank_value,
    blank_mask,
    is_blank,
    to_python,
)


class TestDataType:
    def test_blank_sentinels(self):
        assert DataType.UINT8.blank == 255
        assert DataType.UINT64.blank == np.iinfo(np.uint64).max
        assert DataType.INT8.blank == -128
        assert DataType.INT32.blank == np.iinfo(np.int32).min
        assert np.isnan(DataType.FLOAT32.blank)
        assert DataType.FLOAT32.blank.dtype == np.float32

    def test_kind_properties(self):
        assert DataType.UINT16.is_integer and DataType.UINT16.is_unsigned
        assert DataType.INT16.is_integer and not DataType.INT16.is_unsigned
        assert DataType.FLOAT64.is_float and not DataType.FLOAT64.is_integer

    def test_widened(self):
        assert DataType.UINT8.widened is DataType.INT16
        assert DataType.UINT32.widened is DataType.INT64
        assert DataType.UINT64.widened is DataType.INT64
        assert DataType.INT8.widened is DataType.INT8
        assert DataType.FLOAT32.widened is DataType.FLOAT32

    def test_from_dtype(self):
        assert DataType.from_dtype(np.int16) is DataType.INT16
        assert DataType.from_dtype("float32") is DataType.FLOAT32
        assert DataType.from_dtype(np.dtype(np.uint64)) is DataType.UINT64

    @pytest.mark.parametrize("dtype", [bool, np.complex64, object, "U3"])
    def test_unsupported_types(self, dtype):
        with pytest.raises(DataError):
            DataType.from_dtype(dtype)


class TestBlankHelpers:
    def test_blank_value(self):
        assert blank_value("uint16") == 65535
        assert blank_value(DataType.INT64) == np.iinfo(np.int64).min

    def test_blank_mask_integer(self):
        mask = blank_mask(np.array([1, 65535, 3], dtype=np.uint16))
        np.testing.assert_array_equal(mask, [False, True, False])

    def test_blank_mask_float(self):
        mask = blank_mask(np.array([np.nan, 1.0, np.inf], dtype=np.float32))
        np.testing.assert_array_equal(mask, [True, False, False])

    def test_is_blank(self):
        assert is_blank(np.nan, "float64")
        assert is_blank(-128, np.int8)
        assert not is_blank(0, "int8")

    def test_to_python_is_exact(self):
        value = to_python(np.uint64(2 ** 64 - 1))
        assert isinstance(value, int)
        assert value == 2 ** 64 - 1
        assert isinstance(to_python(np.float32(1.5)), float)
        assert to_python("text") == "text"
