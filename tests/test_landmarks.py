import numpy as np

from swallow_analyzer.landmarks import (
    curvature_flip, search_valley, side_minimum, slope_flip, standard_strategies,
    trend_reversal_minimum,
)


def test_slope_flip_backward() -> None:
    values = np.array([3.0, 1.0, 2.0, 5.0, 9.0, 5.0])
    assert slope_flip()(values, 4, -1) == 1


def test_slope_flip_forward() -> None:
    values = np.array([9.0, 5.0, 2.0, 4.0, 3.0])
    assert slope_flip()(values, 0, 1) == 2


def test_curvature_flip_returns_minimum_of_convex_run() -> None:
    values = np.array([0.0, 2.0, 3.0, 2.0, 0.2, -1.0, -1.2, -0.8, 0.5, 1.5])

    assert curvature_flip(0.1)(values, 2, 1) == 6


def test_curvature_flip_is_symmetric_between_directions() -> None:
    values = np.array([0.0, 2.0, 3.0, 2.0, 0.2, -1.0, -1.2, -0.8, 0.5, 1.5])[::-1]

    assert curvature_flip(0.1)(values, 7, -1) == 3


def test_curvature_flip_ignores_straight_segments() -> None:
    values = np.array([1.0, 0.0, 1.0, 2.0, 3.0, 2.0, 1.0, 0.0, 1.0])

    assert curvature_flip(0.1)(values, 4, 1) is None
    assert curvature_flip(0.1)(values, 4, -1) is None


def test_trend_reversal_on_flat_valley() -> None:
    values = np.array([2.0, 0.0, 0.0, 3.0, 8.0])

    assert slope_flip()(values, 4, -1) is None
    assert trend_reversal_minimum(0.05)(values, 4, -1) == 2
    assert search_valley(values, 4, -1, standard_strategies(0.05)) == (2, 'trend_reversal')


def test_monotonic_side_falls_back_to_local_minimum() -> None:
    values = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
    assert search_valley(values, 4, -1, standard_strategies(0.05)) == (0, 'local_minimum')


def test_side_minimum_prefers_frame_nearest_anchor() -> None:
    values = np.array([1.0, 5.0, 1.0, 9.0])
    assert side_minimum(values, 3, -1) == 2
