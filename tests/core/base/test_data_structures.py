import numpy as np
import pytest

from skystats.core.base.data_structures import (
    BinSet,
    ClipResult,
    Dataset,
    DatasetFlags,
    Histogram,
    Histogram2D,
    ModeResult,
    SortDirection,
    as_dataset,
)
from skystats.core.base.exceptions import DataError, ValidationError
from skystats.core.base.types import DataType


@pytest.fixture
def block():
    return Dataset(np.arange(20, dtype=np.int32).reshape(4, 5), name="image", unit="adu")


class TestDatasetFlags:
    def test_defaults_are_unchecked(self):
        flags = DatasetFlags()
        assert not flags.sort_checked
        assert not flags.blank_checked

    def test_snapshots_are_immutable(self):
        flags = DatasetFlags()
        updated = flags.with_sorted(SortDirection.INCREASING).with_blank(False)
        assert flags.sorted is None
        assert updated.sorted is SortDirection.INCREASING
        assert updated.has_blank is False
        with pytest.raises(AttributeError):
            flags.sorted = SortDirection.NOT


class TestDataset:
    def test_basic_properties(self, block):
        assert block.type is DataType.INT32
        assert block.size == 20
        assert block.shape == (4, 5)
        assert block.ndim == 2
        assert len(block) == 20
        assert block.blank == np.iinfo(np.int32).min
        assert not block.is_view

    def test_tile_is_a_view(self, block):
        tile = Dataset.tile(block, (slice(1, 3), slice(0, 2)))
        assert tile.is_view
        assert tile.block is block
        assert tile.shape == (2, 2)
        np.testing.assert_array_equal(tile.values(), [5, 6, 10, 11])

    def test_tile_of_a_tile_keeps_the_block(self, block):
        tile = Dataset.tile(block, (slice(0, 3), slice(0, 3)))
        inner = Dataset.tile(tile, (slice(1, 2), slice(1, 2)))
        assert inner.block is block

    def test_tile_keeps_an_empty_owner(self, block):
        owner = Dataset(np.zeros(0, dtype=np.int32))
        parent = Dataset(block.array, block=owner)
        tile = Dataset.tile(parent, (slice(0, 2), slice(0, 2)))
        assert tile.block is owner

    def test_tile_needs_basic_slicing(self, block):
        with pytest.raises(DataError):
            Dataset.tile(block, [0, 2])

    def test_unsupported_dtype(self):
        with pytest.raises(DataError):
            Dataset(np.array([True, False]))

    def test_non_blank(self):
        data = Dataset(np.array([1.0, np.nan, 3.0]))
        np.testing.assert_array_equal(data.non_blank(), [1.0, 3.0])
        np.testing.assert_array_equal(data.blank_mask(), [False, True, False])

    def test_astype_maps_blanks(self):
        data = Dataset(np.array([1, 255, 3], dtype=np.uint8))
        out = data.astype("float32")
        assert out.type is DataType.FLOAT32
        assert out.values()[0] == 1.0
        assert np.isnan(out.values()[1])

    def test_copy_is_owned(self, block):
        tile = Dataset.tile(block, (slice(0, 2), slice(0, 2)))
        copy = tile.copy()
        assert not copy.is_view
        copy.array[0, 0] = 99
        assert block.array[0, 0] == 0

    def test_validate_detects_wrong_flags(self):
        wrong_sort = Dataset(np.array([3, 1, 2]),
                             flags=DatasetFlags(sorted=SortDirection.INCREASING))
        with pytest.raises(ValidationError):
            wrong_sort.validate()

        wrong_blank = Dataset(np.array([1.0, np.nan]), flags=DatasetFlags(has_blank=False))
        with pytest.raises(ValidationError):
            wrong_blank.validate()

        assert Dataset(np.array([1, 2, 3]),
                       flags=DatasetFlags(sorted=SortDirection.INCREASING)).validate()

    def test_dict_round_trip(self, block):
        restored = Dataset.from_dict(block.to_dict())
        assert restored.type is DataType.INT32
        assert restored.shape == (4, 5)
        assert restored.unit == "adu"
        np.testing.assert_array_equal(restored.array, block.array)

    def test_as_dataset(self, block):
        assert as_dataset(block) is block
        assert as_dataset([1.0, 2.0]).type is DataType.FLOAT64


class TestResultRecords:
    def test_failed_clip(self):
        result = ClipResult.failed("sigma")
        assert not result.is_valid
        assert np.isnan(result.median)
        assert result.validate()

    def test_clip_method_is_checked(self):
        with pytest.raises(ValidationError):
            ClipResult(method="biweight").validate()

    def test_bin_set(self):
        bins = BinSet(centers=[0.5, 1.5, 2.5])
        assert bins.centers.dtype == np.float64
        assert bins.width == pytest.approx(1.0)
        assert bins.edges == pytest.approx((0.0, 3.0))
        assert bins.name == "bin_center"

    def test_irregular_bins_have_no_width(self):
        with pytest.raises(DataError):
            BinSet(centers=[1.0, 2.0, 4.0], regular=False).width
        with pytest.raises(DataError):
            BinSet(centers=[1.0]).width

    def test_bins_must_increase(self):
        with pytest.raises(ValidationError):
            BinSet(centers=[2.0, 1.0]).validate()

    def test_histogram_metadata(self):
        bins = BinSet(centers=[0.5, 1.5])
        hist = Histogram(counts=np.array([0.25, 0.75], dtype=np.float32), bins=bins,
                         kind="normalized")
        assert hist.name == "hist_normalized"
        assert hist.unit == "frac"
        assert hist.is_normalized
        with pytest.raises(ValidationError):
            Histogram(counts=np.array([1], dtype=np.uint64), bins=bins).validate()

    def test_histogram2d_image(self):
        hist = Histogram2D(centers_a=np.array([0.5, 0.5, 1.5, 1.5]),
                           centers_b=np.array([0.5, 1.5, 0.5, 1.5]),
                           counts=np.array([1, 2, 3, 4], dtype=np.uint32), shape=(2, 2))
        np.testing.assert_array_equal(hist.as_image(), [[1, 2], [3, 4]])
        assert hist.validate()

    def test_mode_result(self):
        assert not ModeResult.rejected().is_valid
        good = ModeResult(mode=1.0, quantile=0.4, symmetricity=1.1, boundary=3.0)
        assert good.is_valid
        np.testing.assert_array_equal(good.as_array(), [1.0, 0.4, 1.1, 3.0])
        with pytest.raises(ValidationError):
            ModeResult(mode=1.0).validate()
