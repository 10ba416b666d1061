import numpy as np
import pytest

from skystats.core.base.data_structures import Dataset, SortDirection
from skystats.core.base.exceptions import DataError
from skystats.core.math.sorting import (
    blank_present,
    blank_remove,
    is_sorted,
    no_blank_sorted,
    sort_decreasing,
    sort_increasing,
    sorted_values,
)


@pytest.fixture
def with_blanks():
    return Dataset(np.array([3.0, np.nan, 1.0, 2.0, np.nan]))


class TestIsSorted:
    @pytest.mark.parametrize("values, expected", [
        ([], SortDirection.INCREASING),
        ([7], SortDirection.INCREASING),
        ([1, 2, 2, 3], SortDirection.INCREASING),
        ([4, 4, 4], SortDirection.INCREASING),
        ([3, 2, 2, 1], SortDirection.DECREASING),
        ([1, 3, 2], SortDirection.NOT),
        ([3, 1, 2], SortDirection.NOT),
    ])
    def test_directions(self, values, expected):
        assert is_sorted(np.array(values, dtype=np.int32)) is expected

    def test_flags_are_cached(self):
        data = Dataset(np.array([1, 2, 3]))
        assert is_sorted(data) is SortDirection.INCREASING
        assert data.flags.sorted is SortDirection.INCREASING

    def test_flags_left_alone(self):
        data = Dataset(np.array([1, 2, 3]))
        is_sorted(data, update_flags=False)
        assert data.flags.sorted is None


class TestInPlace:
    def test_sort_increasing(self):
        data = Dataset(np.array([[3, 1], [2, 0]], dtype=np.int16))
        sort_increasing(data)
        np.testing.assert_array_equal(data.array, [0, 1, 2, 3])
        assert data.flags.sorted is SortDirection.INCREASING

    def test_sort_decreasing(self):
        data = Dataset(np.array([3, 1, 2], dtype=np.uint8))
        sort_decreasing(data)
        np.testing.assert_array_equal(data.array, [3, 2, 1])
        assert data.flags.sorted is SortDirection.DECREASING

    def test_tiles_are_refused(self):
        block = Dataset(np.arange(9.0).reshape(3, 3))
        tile = Dataset.tile(block, (slice(0, 2), slice(0, 2)))
        with pytest.raises(DataError):
            sort_increasing(tile)
        with pytest.raises(DataError):
            blank_remove(tile)

    def test_blank_remove_keeps_order(self, with_blanks):
        blank_remove(with_blanks)
        np.testing.assert_array_equal(with_blanks.array, [3.0, 1.0, 2.0])
        assert with_blanks.flags.has_blank is False

    def test_blank_present(self, with_blanks):
        assert blank_present(with_blanks)
        assert with_blanks.flags.has_blank is True
        assert not blank_present(np.array([1, 2], dtype=np.uint16))
        assert blank_present(np.array([1, 65535], dtype=np.uint16))


class TestNoBlankSorted:
    def test_input_untouched(self, with_blanks):
        before = with_blanks.array.copy()
        out = no_blank_sorted(with_blanks)
        np.testing.assert_array_equal(out.array, [1.0, 2.0, 3.0])
        assert out is not with_blanks
        np.testing.assert_array_equal(with_blanks.array, before)
        assert with_blanks.flags.sorted is None
        assert with_blanks.flags.has_blank is None

    def test_inplace_reuses_the_dataset(self, with_blanks):
        out = no_blank_sorted(with_blanks, inplace=True)
        assert out is with_blanks
        np.testing.assert_array_equal(with_blanks.array, [1.0, 2.0, 3.0])
        assert out.flags.sorted is SortDirection.INCREASING
        assert out.flags.has_blank is False

    def test_decreasing_is_kept(self):
        out = no_blank_sorted(np.array([9, -2147483648, 5, 1], dtype=np.int32))
        np.testing.assert_array_equal(out.array, [9, 5, 1])
        assert out.flags.sorted is SortDirection.DECREASING

    def test_tile_never_modifies_its_block(self):
        block = Dataset(np.array([[4.0, 9.0, 3.0], [np.nan, 1.0, 8.0]]))
        before = block.array.copy()
        tile = Dataset.tile(block, (slice(0, 2), slice(0, 2)))
        out = no_blank_sorted(tile, inplace=True)
        np.testing.assert_array_equal(out.array, [1.0, 4.0, 9.0])
        np.testing.assert_array_equal(block.array, before)

    def test_empty_and_all_blank(self):
        empty = no_blank_sorted(np.array([], dtype=np.float32))
        assert empty.size == 0
        assert empty.flags.sorted is SortDirection.INCREASING
        blank = no_blank_sorted(np.array([255, 255], dtype=np.uint8))
        assert blank.size == 0
        assert blank.flags.has_blank is False

    def test_output_is_one_dimensional(self):
        out = no_blank_sorted(np.array([[2, 1], [4, 3]]))
        assert out.ndim == 1
        np.testing.assert_array_equal(out.array, [1, 2, 3, 4])

    def test_sorted_values_ascend(self):
        np.testing.assert_array_equal(sorted_values(np.array([5.0, 3.0, 1.0])),
                                      [1.0, 3.0, 5.0])


class TestShuffledInput:
    @pytest.fixture
    def sample(self, rng):
        data = rng.normal(0.0, 5.0, 501)
        data[rng.choice(data.size, 40, replace=False)] = np.nan
        return data

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_same_values_whatever_the_order(self, sample, seed):
        shuffled = np.random.default_rng(seed).permutation(sample)
        expected = np.sort(sample[~np.isnan(sample)])
        np.testing.assert_array_equal(no_blank_sorted(shuffled).array, expected)

    def test_integer_blanks(self, rng):
        data = rng.integers(-50, 50, 300, dtype=np.int16)
        data[::7] = np.iinfo(np.int16).min
        kept = np.sort(data[data != np.iinfo(np.int16).min])
        out = no_blank_sorted(rng.permutation(data))
        np.testing.assert_array_equal(out.array, kept)
