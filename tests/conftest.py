import numpy as np
import pytest

from skystats.core.config import reset_config


@pytest.fixture(autouse=True)
def fresh_config():
    """Every test starts from (and leaves behind) the default configuration."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
def rng():
    return np.random.default_rng(20240611)


@pytest.fixture
def gaussian(rng):
    return rng.normal(0.0, 1.0, 20000)


@pytest.fixture
def with_outlier():
    # Ten well behaved values and one far outlier.
    return np.array([1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 1000], dtype=np.float64)
