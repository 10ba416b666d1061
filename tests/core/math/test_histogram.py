import numpy as np
import pytest

from skystats.core.base.data_structures import BinSet
from skystats.core.base.exceptions import DataError, ValidationError
from skystats.core.math.histogram import cfp, histogram, histogram2d, regular_bins


@pytest.fixture
def eleven():
    return np.arange(11.0)


@pytest.fixture
def five_bins(eleven):
    return regular_bins(eleven, num_bins=5)


class TestRegularBins:
    def test_full_range(self, five_bins):
        np.testing.assert_allclose(five_bins.centers, [1, 3, 5, 7, 9])
        assert five_bins.regular
        assert five_bins.width == pytest.approx(2.0)

    def test_one_bin_start(self, eleven):
        bins = regular_bins(eleven, num_bins=5, onebinstart=2.5)
        np.testing.assert_allclose(bins.centers, [1.5, 3.5, 5.5, 7.5, 9.5])

    def test_one_bin_start_outside_is_ignored(self, eleven):
        bins = regular_bins(eleven, num_bins=5, onebinstart=50.0)
        np.testing.assert_allclose(bins.centers, [1, 3, 5, 7, 9])

    def test_partial_range(self, eleven):
        bins = regular_bins(eleven, range=[np.nan, 20.0], num_bins=4)
        np.testing.assert_allclose(bins.centers, [2.5, 7.5, 12.5, 17.5])

    def test_quantile_range(self):
        bins = regular_bins(np.arange(101.0), range=[0.1], num_bins=8)
        np.testing.assert_allclose(bins.centers, np.arange(15.0, 86.0, 10.0))

    def test_no_data(self):
        assert regular_bins(np.array([np.nan, np.nan])) is None
        assert regular_bins(np.array([], dtype=np.int16)) is None

    def test_bad_arguments(self, eleven):
        with pytest.raises(ValidationError):
            regular_bins(eleven, num_bins=0)
        with pytest.raises(ValidationError):
            regular_bins(eleven, range=[0.0, 1.0, 2.0])


class TestHistogram:
    def test_counts(self, eleven, five_bins):
        hist = histogram(eleven, five_bins)
        np.testing.assert_array_equal(hist.counts, [2, 2, 2, 2, 3])
        assert hist.counts.dtype == np.uint64
        assert hist.kind == "number"

    def test_normalized(self, eleven, five_bins):
        hist = histogram(eleven, five_bins, normalize=True)
        assert hist.counts.dtype == np.float32
        np.testing.assert_allclose(hist.counts, np.array([2, 2, 2, 2, 3]) / 11, rtol=1e-6)

    def test_maxone(self, eleven, five_bins):
        hist = histogram(eleven, five_bins, maxone=True)
        np.testing.assert_allclose(hist.counts, np.array([2, 2, 2, 2, 3]) / 3, rtol=1e-6)
        assert hist.name == "hist_maxone"

    def test_outside_values_are_dropped(self, eleven):
        hist = histogram(eleven, BinSet(centers=[3.0, 5.0]))
        np.testing.assert_array_equal(hist.counts, [2, 3])

    def test_blanks_are_not_counted(self):
        data = np.array([50, 100, 255], dtype=np.uint8)
        hist = histogram(data, BinSet(centers=[75.0, 225.0]))
        np.testing.assert_array_equal(hist.counts, [2, 0])

    def test_errors(self, eleven, five_bins):
        with pytest.raises(ValidationError):
            histogram(eleven, five_bins, normalize=True, maxone=True)
        with pytest.raises(ValidationError):
            histogram(eleven, BinSet(centers=[1.0]))
        with pytest.raises(DataError):
            histogram(np.array([], dtype=np.float64), five_bins)


class TestCumulativeFrequency:
    def test_raw(self, eleven, five_bins):
        out = cfp(eleven, five_bins)
        np.testing.assert_array_equal(out.values, [2, 4, 6, 8, 11])
        assert not out.normalized
        assert out.name == "cfp_number"

    def test_normalized(self, eleven, five_bins):
        out = cfp(eleven, five_bins, normalize=True)
        assert out.values.dtype == np.float32
        np.testing.assert_allclose(out.values, np.array([2, 4, 6, 8, 11]) / 11, rtol=1e-6)
        assert out.values[-1] == pytest.approx(1.0)

    def test_reuses_a_normalized_histogram(self, eleven, five_bins):
        hist = histogram(eleven, five_bins, normalize=True)
        out = cfp(eleven, five_bins, hist=hist)
        assert out.normalized
        np.testing.assert_allclose(out.values, np.array([2, 4, 6, 8, 11]) / 11, rtol=1e-6)

    def test_maxone_histogram_is_recomputed(self, eleven, five_bins):
        hist = histogram(eleven, five_bins, maxone=True)
        out = cfp(eleven, five_bins, hist=hist)
        np.testing.assert_array_equal(out.values, [2, 4, 6, 8, 11])

    def test_histogram_size_must_match(self, eleven, five_bins):
        other = histogram(eleven, BinSet(centers=[2.5, 7.5]))
        with pytest.raises(ValidationError):
            cfp(eleven, five_bins, hist=other)

    def test_never_decreases(self, gaussian):
        bins = regular_bins(gaussian, num_bins=50)
        assert cfp(gaussian, bins).validate()


class TestHistogram2D:
    def test_counts_row_major(self):
        a = np.array([0.5, 1.5, 1.5, 2.5])
        b = np.array([0.5, 0.5, 1.5, 1.5])
        hist = histogram2d(a, b, BinSet(centers=[0.5, 1.5, 2.5]), BinSet(centers=[0.5, 1.5]))
        np.testing.assert_array_equal(hist.counts, [1, 0, 1, 1, 0, 1])
        assert hist.counts.dtype == np.uint32
        np.testing.assert_array_equal(hist.centers_a, [0.5, 0.5, 1.5, 1.5, 2.5, 2.5])
        np.testing.assert_array_equal(hist.centers_b, [0.5, 1.5, 0.5, 1.5, 0.5, 1.5])
        assert hist.as_image().shape == (3, 2)

    def test_blank_pairs_are_skipped(self):
        a = np.array([0.5, np.nan, 1.5])
        b = np.array([0.5, 0.5, np.nan])
        hist = histogram2d(a, b, BinSet(centers=[0.5, 1.5]), BinSet(centers=[0.5, 1.5]))
        np.testing.assert_array_equal(hist.counts, [1, 0, 0, 0])

    def test_sizes_must_match(self):
        bins = BinSet(centers=[0.5, 1.5])
        with pytest.raises(ValidationError):
            histogram2d(np.zeros(3), np.zeros(4), bins, bins)


class TestConstantData:
    @pytest.fixture
    def constant(self):
        return np.full(10, 3.0)

    def test_bins_are_widened(self, constant):
        bins = regular_bins(constant, num_bins=5)
        assert bins.width == pytest.approx(0.2)
        assert bins.edges == pytest.approx((2.5, 3.5))

    def test_histogram(self, constant):
        hist = histogram(constant, regular_bins(constant, num_bins=5))
        np.testing.assert_array_equal(hist.counts, [0, 0, 10, 0, 0])

    def test_cfp(self, constant):
        out = cfp(constant, regular_bins(constant, num_bins=5))
        np.testing.assert_array_equal(out.values, [0, 0, 10, 10, 10])

    def test_histogram2d(self, constant):
        bins = regular_bins(constant, num_bins=2)
        hist = histogram2d(constant, constant, bins, bins)
        assert hist.counts.sum() == 10

    def test_zero_width_bins_are_rejected(self, constant):
        bins = BinSet(centers=[3.0, 3.0])
        with pytest.raises(ValidationError):
            histogram(constant, bins)
        with pytest.raises(ValidationError):
            histogram2d(constant, constant, bins, bins)


class TestCountsMatchInput:
    @pytest.fixture
    def noisy(self, rng):
        data = rng.normal(10.0, 3.0, 5000)
        data[rng.choice(data.size, 300, replace=False)] = np.nan
        return data

    @pytest.mark.parametrize("num_bins", [2, 7, 64])
    def test_full_range_counts_every_element(self, noisy, num_bins):
        bins = regular_bins(noisy, num_bins=num_bins)
        hist = histogram(noisy, bins)
        assert hist.counts.sum() == np.count_nonzero(~np.isnan(noisy))
        assert cfp(noisy, bins).values[-1] == hist.counts.sum()

    def test_explicit_range_counts_in_range_elements(self, noisy):
        bins = regular_bins(noisy, range=[8.0, 12.0], num_bins=16)
        inside = np.count_nonzero((noisy >= 8.0) & (noisy <= 12.0))
        assert histogram(noisy, bins).counts.sum() == inside

    def test_histogram2d_counts_non_blank_pairs(self, noisy, rng):
        other = rng.uniform(0.0, 1.0, noisy.size)
        hist = histogram2d(noisy, other, regular_bins(noisy, num_bins=9),
                           regular_bins(other, num_bins=4))
        assert hist.counts.sum() == np.count_nonzero(~np.isnan(noisy))
