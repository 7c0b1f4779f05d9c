import pytest
from hypothesis import given
from hypothesis import strategies as st

from orbslam.rotation import (
    HISTO_LENGTH,
    RotationHistogram,
    compute_three_maxima,
    rotation_bin,
)


def test_same_angle_is_bin_zero():
    assert rotation_bin(123.0, 123.0) == 0


def test_negative_rotation_wraps_around():
    assert rotation_bin(0.0, 350.0) == rotation_bin(10.0, 0.0)


def test_half_rounds_up():
    assert rotation_bin(15.0, 0.0) == 1


def test_rotation_beyond_full_turn_raises():
    with pytest.raises(ValueError):
        rotation_bin(0.0, 400.0)


@given(
    st.floats(min_value=0.0, max_value=359.99),
    st.floats(min_value=0.0, max_value=359.99),
)
def test_bin_in_range(angle1, angle2):
    assert 0 <= rotation_bin(angle1, angle2) < HISTO_LENGTH


def test_three_maxima_empty_histogram():
    assert compute_three_maxima([[] for _ in range(HISTO_LENGTH)]) == (-1, -1, -1)


def test_three_maxima_single_bin():
    histogram = [[] for _ in range(HISTO_LENGTH)]
    histogram[4] = list(range(10))
    assert compute_three_maxima(histogram) == (4, -1, -1)


def test_three_maxima_ties_keep_first():
    histogram = [[] for _ in range(HISTO_LENGTH)]
    histogram[2] = list(range(10))
    histogram[5] = list(range(10))
    assert compute_three_maxima(histogram) == (2, 5, -1)


def test_three_maxima_drops_small_second():
    histogram = [[] for _ in range(HISTO_LENGTH)]
    histogram[0] = list(range(20))
    histogram[1] = [0]
    assert compute_three_maxima(histogram) == (0, -1, -1)


def test_three_maxima_drops_small_third():
    histogram = [[] for _ in range(HISTO_LENGTH)]
    histogram[0] = list(range(20))
    histogram[1] = list(range(10))
    histogram[2] = [0]
    assert compute_three_maxima(histogram) == (0, 1, -1)


def test_three_maxima_later_larger_bin_displaces():
    histogram = [[] for _ in range(HISTO_LENGTH)]
    histogram[1] = list(range(5))
    histogram[2] = list(range(3))
    histogram[3] = list(range(4))
    assert compute_three_maxima(histogram) == (1, 3, 2)


def test_histogram_add_returns_bin():
    histogram = RotationHistogram()
    bin_index = histogram.add(100.0, 40.0, 7)
    assert bin_index == rotation_bin(100.0, 40.0)
    assert histogram.bins[bin_index] == [7]


def test_histogram_flags_inconsistent_match():
    histogram = RotationHistogram()
    for index in range(10):
        histogram.add(50.0, 50.0, index)
    histogram.add(90.0, 0.0, 42)
    assert histogram.outliers() == [42]


def test_histogram_keeps_three_dominant_bins():
    histogram = RotationHistogram()
    for index in range(10):
        histogram.add(0.0, 0.0, index)
    for index in range(10, 15):
        histogram.add(90.0, 0.0, index)
    for index in range(15, 20):
        histogram.add(180.0, 0.0, index)
    for index in range(20, 24):
        histogram.add(270.0, 0.0, index)
    assert histogram.outliers() == [20, 21, 22, 23]


def test_empty_histogram_has_no_outliers():
    assert RotationHistogram().outliers() == []