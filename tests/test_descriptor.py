import numpy as np
import pytest

from orbslam.descriptor import (
    compute_descriptors,
    compute_orb_descriptor,
    compute_orientation,
    ic_angle,
)
from orbslam.keypoint import KeyPoint
from orbslam.pattern import compute_umax, orb_pattern

SIZE = 64


def _ramp_x():
    return np.tile(np.arange(SIZE, dtype=np.uint8) * 2, (SIZE, 1))


def _random_image(seed=0):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 200, size=(SIZE, SIZE), dtype=np.uint8)


def test_uniform_image_has_zero_angle():
    image = np.full((SIZE, SIZE), 100, dtype=np.uint8)
    assert ic_angle(image, 32, 32, compute_umax()) == 0.0


@pytest.mark.parametrize(
    "image, expected",
    [
        (_ramp_x(), 0.0),
        (_ramp_x().T.copy(), 90.0),
        (_ramp_x()[:, ::-1].copy(), 180.0),
        (_ramp_x().T[::-1, :].copy(), 270.0),
    ],
)
def test_angle_points_towards_brighter_side(image, expected):
    assert ic_angle(image, 32, 32, compute_umax()) == pytest.approx(expected, abs=1e-6)


def test_angle_near_border_raises():
    with pytest.raises(ValueError):
        ic_angle(_ramp_x(), 5, 32, compute_umax())


def test_compute_orientation_returns_copies():
    image = _ramp_x()
    keypoints = [KeyPoint(30, 30), KeyPoint(33, 34)]
    oriented = compute_orientation(image, keypoints, compute_umax())
    assert [kp.angle for kp in keypoints] == [-1.0, -1.0]
    assert [kp.angle for kp in oriented] == pytest.approx([0.0, 0.0], abs=1e-6)
    assert [(kp.x, kp.y) for kp in oriented] == [(30, 30), (33, 34)]


def test_uniform_image_descriptor_is_zero():
    image = np.full((SIZE, SIZE), 7, dtype=np.uint8)
    desc = compute_orb_descriptor(KeyPoint(32, 32, angle=0.0), image, orb_pattern())
    assert desc.dtype == np.uint8
    assert desc.shape == (32,)
    assert not desc.any()


def test_first_test_on_ramp_sets_lowest_bit():
    # The first test compares offsets x=8 and x=9 on an image brightening with x.
    desc = compute_orb_descriptor(KeyPoint(32, 32, angle=0.0), _ramp_x(), orb_pattern())
    assert desc[0] & 1 == 1


def test_brightness_shift_keeps_descriptor():
    image = _random_image()
    kp = KeyPoint(32, 32, angle=37.0)
    shifted = image + np.uint8(40)
    assert np.array_equal(
        compute_orb_descriptor(kp, image, orb_pattern()),
        compute_orb_descriptor(kp, shifted, orb_pattern()),
    )


def test_inverted_image_never_shares_bits():
    image = _random_image(3)
    kp = KeyPoint(31, 33, angle=120.0)
    desc = compute_orb_descriptor(kp, image, orb_pattern())
    inverted = compute_orb_descriptor(kp, 255 - image, orb_pattern())
    assert not np.any(desc & inverted)
    assert desc.any()


def test_bad_pattern_shape_raises():
    with pytest.raises(ValueError):
        compute_orb_descriptor(KeyPoint(32, 32, angle=0.0), _ramp_x(), orb_pattern()[:10])


def test_descriptor_outside_image_raises():
    with pytest.raises(ValueError):
        compute_orb_descriptor(KeyPoint(3, 3, angle=0.0), _ramp_x(), orb_pattern())


def test_compute_descriptors_rows_match_single_computation():
    image = _random_image(5)
    pattern = orb_pattern()
    keypoints = [KeyPoint(25, 25, angle=10.0), KeyPoint(38, 30, angle=250.0)]
    descriptors = compute_descriptors(image, keypoints, pattern)
    assert descriptors.shape == (2, 32)
    for row, kp in zip(descriptors, keypoints):
        assert np.array_equal(row, compute_orb_descriptor(kp, image, pattern))


def test_compute_descriptors_empty():
    descriptors = compute_descriptors(_ramp_x(), [], orb_pattern())
    assert descriptors.shape == (0, 32)