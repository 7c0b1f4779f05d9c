import numpy as np
import pytest
from hypothesis import given
from hypothesis import strategies as st

from orbslam.distance import descriptor_distance, nearest_two

descriptors_st = st.binary(min_size=32, max_size=32)


def test_identical_descriptors_have_zero_distance():
    d = np.arange(32, dtype=np.uint8)
    assert descriptor_distance(d, d.copy()) == 0


def test_opposite_descriptors_differ_in_all_bits():
    assert descriptor_distance(bytes(32), b"\xff" * 32) == 256


def test_single_bit_difference():
    a = np.zeros(32, dtype=np.uint8)
    b = a.copy()
    b[17] = 0x10
    assert descriptor_distance(a, b) == 1


def test_length_mismatch_raises():
    with pytest.raises(ValueError):
        descriptor_distance(bytes(32), bytes(16))


@given(descriptors_st, descriptors_st)
def test_distance_is_symmetric_and_bounded(a, b):
    d = descriptor_distance(a, b)
    assert d == descriptor_distance(b, a)
    assert 0 <= d <= 256


@given(descriptors_st, descriptors_st, descriptors_st)
def test_triangle_inequality(a, b, c):
    assert descriptor_distance(a, c) <= descriptor_distance(a, b) + descriptor_distance(b, c)


def _rows():
    rows = np.zeros((4, 32), dtype=np.uint8)
    rows[1, :2] = 0xFF  # 16 bits away from zero
    rows[2, :1] = 0x01  # 1 bit away
    rows[3, :4] = 0xFF  # 32 bits away
    return rows


def test_nearest_two_finds_best_and_second():
    rows = _rows()
    query = np.zeros(32, dtype=np.uint8)
    result = nearest_two(query, rows, [1, 2, 3])
    assert result.best_index == 2
    assert result.best_distance == 1
    assert result.second_distance == 16


def test_nearest_two_respects_indices():
    rows = _rows()
    query = np.zeros(32, dtype=np.uint8)
    best, index, second = nearest_two(query, rows, [3, 1])
    assert (best, index, second) == (16, 1, 32)


def test_nearest_two_tie_keeps_first_and_fills_second():
    rows = _rows()
    query = np.zeros(32, dtype=np.uint8)
    assert nearest_two(query, rows, [0, 0]) == (0, 0, 0)


def test_nearest_two_without_candidates():
    assert nearest_two(bytes(32), _rows(), []) == (256, -1, 256)