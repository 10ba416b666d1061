from dataclasses import dataclass

import numpy as np


def _single(value: float) -> float:
    """``value`` rounded to single precision, as a Python float."""
    return float(np.float32(value))


@dataclass(frozen=True)
class ModeConstants:
    """
    Empirically tuned constants of the mode estimator.

    They were chosen for astronomical background distributions, where the
    mode sits in the lower quantiles. Changing any of them changes which
    mode estimates are accepted.

    The quantiles and golden ratios are single precision values: at an
    exact half index (e.g. 0.55 of 11 elements) the rounding of
    ``quantile_index`` depends on it.
    """
    MIN_QUANTILE: float = _single(0.01)
    MAX_QUANTILE: float = _single(0.55)
    SYM_LOW_QUANTILE: float = _single(0.01)
    GOLDEN_RATIO: float = _single(1.618034)
    TWO_TAKE_GOLDEN_RATIO: float = _single(0.38197)
    TOLERANCE: float = 0.01
    GOOD_SYMMETRICITY: float = 0.2
    PEAK_CONTRAST: float = 1.5
    NUM_CHECK_POINTS: int = 1000
    MIRROR_DIST: float = 1.5


@dataclass(frozen=True)
class ClipDefaults:
    """
    Default parameters of sigma- and MAD-clipping.
    """
    MULTIPLIER: float = 3.0
    PARAM: float = 0.2
    MAX_CONVERGE: int = 50


@dataclass(frozen=True)
class OutlierConstants:
    """
    Constants of the flat-CFP outlier detector.
    """
    NEIGHBOR_DISTANCE: int = 2
    MIN_STD: float = 1e-6


MODE = ModeConstants()
CLIP = ClipDefaults()
OUTLIER = OutlierConstants()
