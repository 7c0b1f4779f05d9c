"""Image operations used by the feature extractor.

FAST corner detection, bilinear resizing, reflective border padding and
Gaussian smoothing on single-channel images.
"""

from __future__ import annotations

import math

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from orbslam.keypoint import KeyPoint

FAST_KEYPOINT_SIZE = 7.0
_ARC_LENGTH = 9
# The 16 pixels of the Bresenham circle of radius 3, as (dx, dy).
_CIRCLE = (
    (0, 3), (1, 3), (2, 2), (3, 1), (3, 0), (3, -1), (2, -2), (1, -3),
    (0, -3), (-1, -3), (-2, -2), (-3, -1), (-3, 0), (-3, 1), (-2, 2), (-1, 3),
)
_RADIUS = 3


def _as_gray(image) -> np.ndarray:
    array = np.asarray(image)
    if array.ndim != 2:
        raise ValueError("image must be a single-channel 2-D array")
    return array


def _to_dtype(values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        rounded = np.floor(values + 0.5)
        return np.clip(rounded, info.min, info.max).astype(dtype)
    return values.astype(dtype)


def _corner_scores(image: np.ndarray, threshold: int) -> np.ndarray:
    """Return a full-size score map; zero where the pixel is no corner."""
    height, width = image.shape
    data = image.astype(np.int32)
    r = _RADIUS
    centre = data[r:height - r, r:width - r]
    ring = np.stack(
        [data[r + dy:height - r + dy, r + dx:width - r + dx] for dx, dy in _CIRCLE]
    )
    diff = ring - centre
    extended = np.concatenate([diff, diff[:_ARC_LENGTH - 1]])
    windows = sliding_window_view(extended, _ARC_LENGTH, axis=0)
    brighter = windows.min(axis=-1).max(axis=0)
    darker = (-windows.max(axis=-1)).max(axis=0)
    best = np.maximum(brighter, darker)

    scores = np.zeros((height, width), dtype=np.int32)
    scores[r:height - r, r:width - r] = np.where(best > threshold, best - 1, -1)
    scores[:r, :] = -1
    scores[height - r:, :] = -1
    scores[:, :r] = -1
    scores[:, width - r:] = -1
    return scores


def fast(image, threshold: int, nonmax_suppression: bool = True) -> list[KeyPoint]:
    """Detect FAST-9 corners on a 16-pixel circle.

    A pixel is a corner when nine contiguous circle pixels are all brighter
    than the centre plus ``threshold`` or all darker than the centre minus
    ``threshold``. The response is the largest threshold for which the pixel
    would still be a corner. With ``nonmax_suppression`` a corner is kept only
    when its response is strictly greater than that of all eight neighbours.
    Keypoints are returned in row-major order.
    """
    gray = _as_gray(image)
    height, width = gray.shape
    if height < 2 * _RADIUS + 1 or width < 2 * _RADIUS + 1:
        return []
    limit = int(min(max(int(threshold), 0), 255))

    scores = _corner_scores(gray, limit)
    corners = scores >= 0
    if nonmax_suppression:
        neighbour_scores = np.where(corners, scores, 0)
        padded = np.pad(neighbour_scores, 1, mode="constant")
        neighbours = np.full((height, width), np.iinfo(np.int32).min, dtype=np.int32)
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                shifted = padded[1 + dy:1 + dy + height, 1 + dx:1 + dx + width]
                neighbours = np.maximum(neighbours, shifted)
        corners &= scores > neighbours

    rows, cols = np.nonzero(corners)
    return [
        KeyPoint(
            x=float(col),
            y=float(row),
            size=FAST_KEYPOINT_SIZE,
            response=float(scores[row, col]),
        )
        for row, col in zip(rows.tolist(), cols.tolist())
    ]


def _sample_positions(dst_len: int, src_len: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    scale = src_len / dst_len
    pos = (np.arange(dst_len, dtype=np.float64) + 0.5) * scale - 0.5
    pos = np.maximum(pos, 0.0)
    lower = np.minimum(np.floor(pos).astype(np.int64), src_len - 1)
    frac = np.where(lower >= src_len - 1, 0.0, pos - lower)
    upper = np.minimum(lower + 1, src_len - 1)
    return lower, upper, frac


def resize_bilinear(image, width: int, height: int) -> np.ndarray:
    """Resize ``image`` to ``width`` x ``height`` by bilinear interpolation.

    Pixel centres are aligned (half-pixel convention) and samples outside the
    source are clamped to its edge. The result keeps the input's dtype.
    """
    gray = _as_gray(image)
    if width <= 0 or height <= 0:
        raise ValueError("target size must be positive")
    if gray.size == 0:
        raise ValueError("cannot resize an empty image")

    src_h, src_w = gray.shape
    y0, y1, fy = _sample_positions(height, src_h)
    x0, x1, fx = _sample_positions(width, src_w)

    data = gray.astype(np.float64)
    fx_row = fx[np.newaxis, :]
    top = data[y0][:, x0] * (1.0 - fx_row) + data[y0][:, x1] * fx_row
    bottom = data[y1][:, x0] * (1.0 - fx_row) + data[y1][:, x1] * fx_row
    fy_col = fy[:, np.newaxis]
    result = top * (1.0 - fy_col) + bottom * fy_col
    return _to_dtype(result, gray.dtype)


def pad_reflect101(image, border: int) -> np.ndarray:
    """Pad all four sides by ``border`` pixels, mirroring without the edge pixel."""
    gray = _as_gray(image)
    if border < 0:
        raise ValueError("border must not be negative")
    if border == 0:
        return gray.copy()
    if min(gray.shape) < 2:
        return np.pad(gray, border, mode="edge")
    return np.pad(gray, border, mode="reflect")


def _gaussian_kernel(ksize: int, sigma: float) -> np.ndarray:
    if sigma <= 0:
        sigma = 0.3 * ((ksize - 1) * 0.5 - 1) + 0.8
    offsets = np.arange(ksize, dtype=np.float64) - (ksize - 1) / 2.0
    kernel = np.exp(-(offsets ** 2) / (2.0 * sigma * sigma))
    return kernel / kernel.sum()


def gaussian_blur(image, ksize: int, sigma: float) -> np.ndarray:
    """Smooth ``image`` with a square Gaussian kernel of odd size ``ksize``.

    Borders are mirrored without repeating the edge pixel. A non-positive
    ``sigma`` is derived from the kernel size. The result keeps the input's
    dtype.
    """
    gray = _as_gray(image)
    if ksize <= 0 or ksize % 2 == 0:
        raise ValueError("kernel size must be a positive odd number")
    if gray.size == 0:
        raise ValueError("cannot blur an empty image")
    if not math.isfinite(sigma):
        raise ValueError("sigma must be finite")

    kernel = _gaussian_kernel(ksize, sigma)
    radius = ksize // 2
    height, width = gray.shape
    padded = pad_reflect101(gray.astype(np.float64), radius)

    horizontal = sum(
        weight * padded[:, offset:offset + width] for offset, weight in enumerate(kernel)
    )
    smoothed = sum(
        weight * horizontal[offset:offset + height, :] for offset, weight in enumerate(kernel)
    )
    return _to_dtype(np.asarray(smoothed), gray.dtype)