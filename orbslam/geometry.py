"""Geometric checks used when matching features between views."""

from __future__ import annotations

import math
from typing import NamedTuple

import numpy as np

from orbslam.keypoint import KeyPoint

_CHI2_ONE_DOF = 3.84

# A point seen almost head-on gets a narrower search window.
_FRONTAL_VIEW_COS = 0.998
_NARROW_RADIUS = 2.5
_WIDE_RADIUS = 4.0


class Sim3Decomposition(NamedTuple):
    """A similarity transform split into rotation, translation, centre and scale.

    ``translation`` is already divided by ``scale`` and ``center`` is the
    camera centre in world coordinates.
    """

    rotation: np.ndarray
    translation: np.ndarray
    center: np.ndarray
    scale: float


class Projection(NamedTuple):
    """Pixel coordinates of a projected point and its inverse depth."""

    u: float
    v: float
    inv_depth: float


def radius_by_viewing_cos(view_cos: float) -> float:
    """Return the search window radius for a point seen at the given angle cosine."""
    cosine = float(view_cos)
    if cosine > _FRONTAL_VIEW_COS:
        return _NARROW_RADIUS
    return _WIDE_RADIUS


def check_dist_epipolar_line(kp1: KeyPoint, kp2: KeyPoint, f12, sigma2: float) -> bool:
    """Tell whether ``kp2`` lies close enough to the epipolar line of ``kp1``.

    ``f12`` is the 3x3 fundamental matrix from image 1 to image 2 and
    ``sigma2`` the squared scale sigma of ``kp2``'s pyramid level. A
    degenerate line never accepts.
    """
    f = np.asarray(f12, dtype=np.float64)
    if f.shape != (3, 3):
        raise ValueError("fundamental matrix must be 3x3")
    a, b, c = np.array([kp1.x, kp1.y, 1.0]) @ f
    num = a * kp2.x + b * kp2.y + c
    den = a * a + b * b
    if den == 0:
        return False
    return bool(num * num / den < _CHI2_ONE_DOF * sigma2)


def decompose_sim3(scw) -> Sim3Decomposition:
    """Split a 3x4 or 4x4 similarity matrix ``[sR t]`` into its parts."""
    matrix = np.asarray(scw, dtype=np.float64)
    if matrix.shape not in ((3, 4), (4, 4)):
        raise ValueError("similarity matrix must be 3x4 or 4x4")
    s_rotation = matrix[:3, :3]
    scale = math.sqrt(float(s_rotation[0] @ s_rotation[0]))
    if scale == 0.0:
        raise ValueError("similarity matrix has zero scale")
    rotation = s_rotation / scale
    translation = matrix[:3, 3] / scale
    center = -rotation.T @ translation
    return Sim3Decomposition(rotation, translation, center, scale)


def project(point, rotation, translation, fx: float, fy: float, cx: float, cy: float):
    """Project a world point into a pinhole camera.

    Returns a :class:`Projection`, or ``None`` when the point does not lie in
    front of the camera.
    """
    p_world = np.asarray(point, dtype=np.float64).reshape(3)
    r = np.asarray(rotation, dtype=np.float64).reshape(3, 3)
    t = np.asarray(translation, dtype=np.float64).reshape(3)
    x, y, z = r @ p_world + t
    if z <= 0.0:
        return None
    inv_z = 1.0 / z
    return Projection(float(fx * x * inv_z + cx), float(fy * y * inv_z + cy), float(inv_z))