import math

import numpy as np

from orbslam.pattern import (
    EDGE_THRESHOLD,
    HALF_PATCH_SIZE,
    PATCH_SIZE,
    compute_umax,
    orb_pattern,
)


def test_pattern_shape():
    pattern = orb_pattern()
    assert pattern.shape == (512, 2)
    assert np.issubdtype(pattern.dtype, np.integer)


def test_pattern_first_and_last_points():
    pattern = orb_pattern()
    assert tuple(pattern[0]) == (8, -3)
    assert tuple(pattern[1]) == (9, 5)
    assert tuple(pattern[-2]) == (-1, -6)
    assert tuple(pattern[-1]) == (0, -11)


def test_pattern_stays_inside_patch():
    pattern = orb_pattern()
    assert pattern.min() >= -HALF_PATCH_SIZE
    assert pattern.max() <= HALF_PATCH_SIZE


def test_pattern_fits_inside_edge_border():
    pattern = orb_pattern()
    radius = np.sqrt((pattern.astype(float) ** 2).sum(axis=1)).max()
    assert radius < EDGE_THRESHOLD


def test_pattern_returns_fresh_copy():
    first = orb_pattern()
    first[:] = 0
    assert tuple(orb_pattern()[0]) == (8, -3)


def test_umax_centre_row_spans_whole_patch():
    umax = compute_umax()
    assert 2 * umax[0] + 1 == PATCH_SIZE


def test_umax_length_and_centre():
    umax = compute_umax()
    assert len(umax) == HALF_PATCH_SIZE + 1
    assert umax[0] == HALF_PATCH_SIZE


def test_umax_known_table():
    assert compute_umax() == [15, 15, 15, 15, 14, 14, 14, 13, 13, 12, 11, 10, 9, 8, 6, 3]


def test_umax_non_increasing():
    umax = compute_umax()
    assert all(a >= b for a, b in zip(umax, umax[1:]))


def test_umax_within_circle():
    for v, u in enumerate(compute_umax()):
        assert math.hypot(u, v) <= HALF_PATCH_SIZE + 0.5


def test_umax_symmetric_under_transpose():
    umax = compute_umax()
    inside = {(u, v) for v, d in enumerate(umax) for u in range(d + 1)}
    assert inside == {(v, u) for u, v in inside}