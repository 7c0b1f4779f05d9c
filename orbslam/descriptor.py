"""Keypoint orientation by intensity centroid and rotated BRIEF descriptors."""

from __future__ import annotations

import dataclasses
import math
from typing import Iterable, Sequence

import numpy as np

from orbslam.keypoint import KeyPoint
from orbslam.pattern import HALF_PATCH_SIZE

DESCRIPTOR_BYTES = 32
_PATTERN_POINTS = DESCRIPTOR_BYTES * 8 * 2
_DEG_TO_RAD = np.float32(math.pi / 180.0)


def _centre(image: np.ndarray, x: float, y: float) -> tuple[int, int]:
    if image.ndim != 2:
        raise ValueError("image must be a single-channel 2-D array")
    return round(float(x)), round(float(y))


def _check_window(image: np.ndarray, rows: np.ndarray, cols: np.ndarray) -> None:
    height, width = image.shape
    if rows.min() < 0 or rows.max() >= height or cols.min() < 0 or cols.max() >= width:
        raise ValueError("sampling window extends beyond the image")


def ic_angle(image: np.ndarray, x: float, y: float, umax: Sequence[int]) -> float:
    """Return the orientation in degrees, in ``[0, 360)``, of the patch at ``(x, y)``.

    The angle points from the patch centre to its intensity centroid over a
    circular patch whose row half widths are given by ``umax``.
    """
    cx, cy = _centre(image, x, y)
    r = HALF_PATCH_SIZE
    _check_window(image, np.array([cy - r, cy + r]), np.array([cx - r, cx + r]))

    us = np.arange(-r, r + 1, dtype=np.int64)
    m_10 = int(np.dot(us, image[cy, cx - r:cx + r + 1].astype(np.int64)))
    m_01 = 0
    for v in range(1, r + 1):
        d = int(umax[v])
        span = np.arange(-d, d + 1, dtype=np.int64)
        plus = image[cy + v, cx - d:cx + d + 1].astype(np.int64)
        minus = image[cy - v, cx - d:cx + d + 1].astype(np.int64)
        m_10 += int(np.dot(span, plus + minus))
        m_01 += v * int(np.sum(plus - minus))

    angle = math.degrees(math.atan2(float(m_01), float(m_10)))
    if angle < 0.0:
        angle += 360.0
    return 0.0 if angle >= 360.0 else angle


def compute_orientation(
    image: np.ndarray, keypoints: Iterable[KeyPoint], umax: Sequence[int]
) -> list[KeyPoint]:
    """Return copies of ``keypoints`` with their ``angle`` set from the image."""
    return [
        dataclasses.replace(kp, angle=ic_angle(image, kp.x, kp.y, umax))
        for kp in keypoints
    ]


def compute_orb_descriptor(
    keypoint: KeyPoint, image: np.ndarray, pattern: np.ndarray
) -> np.ndarray:
    """Return the 32-byte descriptor of ``keypoint`` as a ``uint8`` array.

    The sampling ``pattern`` (512 points) is rotated by the keypoint angle;
    bit ``j`` of byte ``i`` is set when the first point of test ``8*i + j`` is
    darker than the second.
    """
    points = np.asarray(pattern)
    if points.shape != (_PATTERN_POINTS, 2):
        raise ValueError(f"pattern must have shape ({_PATTERN_POINTS}, 2)")
    cx, cy = _centre(image, keypoint.x, keypoint.y)

    angle = np.float32(keypoint.angle) * _DEG_TO_RAD
    a = np.float32(math.cos(angle))
    b = np.float32(math.sin(angle))
    px = points[:, 0].astype(np.float32)
    py = points[:, 1].astype(np.float32)
    rows = cy + np.rint(px * b + py * a).astype(np.int64)
    cols = cx + np.rint(px * a - py * b).astype(np.int64)
    _check_window(image, rows, cols)

    values = image[rows, cols].astype(np.int32)
    bits = values[0::2] < values[1::2]
    return np.packbits(bits, bitorder="little")


def compute_descriptors(
    image: np.ndarray, keypoints: Sequence[KeyPoint], pattern: np.ndarray
) -> np.ndarray:
    """Return an ``(n, 32)`` ``uint8`` array with one descriptor per keypoint."""
    descriptors = np.zeros((len(keypoints), DESCRIPTOR_BYTES), dtype=np.uint8)
    for row, kp in zip(descriptors, keypoints):
        row[:] = compute_orb_descriptor(kp, image, pattern)
    return descriptors