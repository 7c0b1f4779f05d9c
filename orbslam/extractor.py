"""Multi-scale ORB feature extraction with an even spatial distribution."""

from __future__ import annotations

import math

import numpy as np

from orbslam.descriptor import DESCRIPTOR_BYTES, compute_descriptors, compute_orientation
from orbslam.imageops import fast, gaussian_blur, pad_reflect101, resize_bilinear
from orbslam.keypoint import KeyPoint, retain_best
from orbslam.octree import distribute_oct_tree
from orbslam.pattern import EDGE_THRESHOLD, PATCH_SIZE, compute_umax, orb_pattern

_CELL_SIZE = np.float32(30.0)
_BLUR_KERNEL = 7
_BLUR_SIGMA = 2.0


def _empty_descriptors() -> np.ndarray:
    return np.zeros((0, DESCRIPTOR_BYTES), dtype=np.uint8)


class ORBExtractor:
    """Detects FAST corners on an image pyramid and describes them with ORB.

    The number of features wanted on each level follows a geometric series in
    the scale factor; the per-level counts are in ``features_per_level``.
    Scale information for every level is exposed as ``scale_factors``,
    ``inv_scale_factors``, ``level_sigma2`` and ``inv_level_sigma2``. After a
    call, ``image_pyramid`` holds the image at every level.
    """

    def __init__(
        self,
        n_features: int,
        scale_factor: float,
        n_levels: int,
        ini_th_fast: int,
        min_th_fast: int,
    ) -> None:
        if n_levels < 1:
            raise ValueError("at least one pyramid level is required")
        if scale_factor <= 0 or scale_factor == 1.0:
            raise ValueError("scale factor must be positive and different from 1")

        self.n_features = int(n_features)
        self.scale_factor = float(np.float32(scale_factor))
        self.n_levels = int(n_levels)
        self.ini_th_fast = int(ini_th_fast)
        self.min_th_fast = int(min_th_fast)

        factors = [np.float32(1.0)]
        for _ in range(1, self.n_levels):
            factors.append(np.float32(float(factors[-1]) * self.scale_factor))
        self.scale_factors = [float(s) for s in factors]
        self.level_sigma2 = [float(np.float32(s * s)) for s in factors]
        self.inv_scale_factors = [float(np.float32(1.0) / s) for s in factors]
        self.inv_level_sigma2 = [
            float(np.float32(1.0) / np.float32(s2)) for s2 in self.level_sigma2
        ]

        factor = np.float32(1.0) / np.float32(self.scale_factor)
        desired = np.float32(
            np.float32(self.n_features) * (np.float32(1.0) - factor)
            / (np.float32(1.0) - np.float32(float(factor) ** self.n_levels))
        )
        per_level = []
        for _ in range(self.n_levels - 1):
            per_level.append(round(float(desired)))
            desired = np.float32(desired * factor)
        per_level.append(max(self.n_features - sum(per_level), 0))
        self.features_per_level = per_level

        self._pattern = orb_pattern()
        self._umax = compute_umax()
        self.image_pyramid: list[np.ndarray] = []
        self._padded: list[np.ndarray] = []

    def __call__(self, image, mask=None) -> tuple[list[KeyPoint], np.ndarray]:
        """Return the keypoints of ``image`` and their ``(n, 32)`` descriptors.

        Keypoint coordinates are given at level-0 resolution. ``mask`` is
        accepted but ignored. An empty image yields no keypoints.
        """
        gray = np.asarray(image)
        if gray.size == 0:
            return [], _empty_descriptors()
        if gray.ndim != 2 or gray.dtype != np.uint8:
            raise ValueError("image must be a single-channel 8-bit array")

        self.compute_pyramid(gray)
        all_keypoints = self.compute_keypoints_oct_tree()

        keypoints: list[KeyPoint] = []
        blocks: list[np.ndarray] = []
        for level, level_keys in enumerate(all_keypoints):
            if not level_keys:
                continue
            working = gaussian_blur(self._padded[level], _BLUR_KERNEL, _BLUR_SIGMA)
            shifted = [kp.shifted(EDGE_THRESHOLD, EDGE_THRESHOLD) for kp in level_keys]
            blocks.append(compute_descriptors(working, shifted, self._pattern))
            if level != 0:
                scale = float(np.float32(self.scale_factors[level]))
                level_keys = [kp.scaled(scale) for kp in level_keys]
            keypoints.extend(level_keys)

        descriptors = np.vstack(blocks) if blocks else _empty_descriptors()
        return keypoints, descriptors

    def compute_pyramid(self, image) -> list[np.ndarray]:
        """Build and return the scale pyramid of ``image``."""
        gray = np.asarray(image)
        if gray.ndim != 2:
            raise ValueError("image must be a single-channel 2-D array")
        rows, cols = gray.shape
        pyramid: list[np.ndarray] = []
        for level in range(self.n_levels):
            if level == 0:
                current = gray.copy()
            else:
                scale = np.float32(self.inv_scale_factors[level])
                width = round(float(np.float32(cols) * scale))
                height = round(float(np.float32(rows) * scale))
                current = resize_bilinear(pyramid[-1], width, height)
            pyramid.append(current)
        self.image_pyramid = pyramid
        self._padded = [pad_reflect101(level, EDGE_THRESHOLD) for level in pyramid]
        return pyramid

    def _require_pyramid(self) -> None:
        if len(self.image_pyramid) != self.n_levels:
            raise RuntimeError("compute_pyramid must be called first")

    def _oriented(self, level: int, keypoints: list[KeyPoint]) -> list[KeyPoint]:
        shifted = [kp.shifted(EDGE_THRESHOLD, EDGE_THRESHOLD) for kp in keypoints]
        oriented = compute_orientation(self._padded[level], shifted, self._umax)
        return [kp.shifted(-EDGE_THRESHOLD, -EDGE_THRESHOLD) for kp in oriented]

    def _patch_size(self, level: int) -> float:
        return float(int(np.float32(PATCH_SIZE) * np.float32(self.scale_factors[level])))

    def _detect(self, cell: np.ndarray, retry_below: int) -> list[KeyPoint]:
        keys = fast(cell, self.ini_th_fast, True)
        if len(keys) <= retry_below:
            keys = fast(cell, self.min_th_fast, True)
        return keys

    def compute_keypoints_oct_tree(self) -> list[list[KeyPoint]]:
        """Detect keypoints per level, spread with a quadtree, and orient them."""
        self._require_pyramid()
        all_keypoints: list[list[KeyPoint]] = []
        for level, image in enumerate(self.image_pyramid):
            rows, cols = image.shape
            min_border = EDGE_THRESHOLD - 3
            max_border_x = cols - EDGE_THRESHOLD + 3
            max_border_y = rows - EDGE_THRESHOLD + 3

            width = np.float32(max_border_x - min_border)
            height = np.float32(max_border_y - min_border)
            n_cols = int(width / _CELL_SIZE)
            n_rows = int(height / _CELL_SIZE)

            to_distribute: list[KeyPoint] = []
            if n_cols > 0 and n_rows > 0:
                w_cell = math.ceil(float(width / np.float32(n_cols)))
                h_cell = math.ceil(float(height / np.float32(n_rows)))
                for i in range(n_rows):
                    ini_y = min_border + i * h_cell
                    if ini_y >= max_border_y - 3:
                        continue
                    max_y = min(ini_y + h_cell + 6, max_border_y)
                    for j in range(n_cols):
                        ini_x = min_border + j * w_cell
                        if ini_x >= max_border_x - 6:
                            continue
                        max_x = min(ini_x + w_cell + 6, max_border_x)
                        cell = image[ini_y:max_y, ini_x:max_x]
                        keys = self._detect(cell, 0)
                        to_distribute.extend(
                            kp.shifted(j * w_cell, i * h_cell) for kp in keys
                        )

            selected: list[KeyPoint] = []
            if to_distribute:
                selected = distribute_oct_tree(
                    to_distribute,
                    min_border,
                    max_border_x,
                    min_border,
                    max_border_y,
                    self.features_per_level[level],
                )
            size = self._patch_size(level)
            placed = [
                KeyPoint(
                    x=kp.x + min_border,
                    y=kp.y + min_border,
                    size=size,
                    angle=kp.angle,
                    response=kp.response,
                    octave=level,
                )
                for kp in selected
            ]
            all_keypoints.append(placed)

        return [self._oriented(level, keys) for level, keys in enumerate(all_keypoints)]

    def compute_keypoints_old(self) -> list[list[KeyPoint]]:
        """Detect keypoints per level on a fixed grid, retaining the best by score."""
        self._require_pyramid()
        first_rows, first_cols = self.image_pyramid[0].shape
        image_ratio = np.float32(first_cols) / np.float32(first_rows)

        all_keypoints: list[list[KeyPoint]] = []
        for level, image in enumerate(self.image_pyramid):
            n_desired = self.features_per_level[level]
            level_cols = int(math.sqrt(float(np.float32(n_desired) / (5 * image_ratio))))
            level_rows = int(image_ratio * np.float32(level_cols))
            n_cells = level_rows * level_cols
            if n_cells <= 0:
                all_keypoints.append([])
                continue

            rows, cols = image.shape
            min_border = EDGE_THRESHOLD
            max_border_x = cols - EDGE_THRESHOLD
            max_border_y = rows - EDGE_THRESHOLD
            cell_w = math.ceil((max_border_x - min_border) / level_cols)
            cell_h = math.ceil((max_border_y - min_border) / level_rows)
            per_cell = math.ceil(n_desired / n_cells)

            cell_keys = [[[] for _ in range(level_cols)] for _ in range(level_rows)]
            to_retain = [[0] * level_cols for _ in range(level_rows)]
            totals = [[0] * level_cols for _ in range(level_rows)]
            no_more = [[False] * level_cols for _ in range(level_rows)]
            ini_x_col = [0] * level_cols
            ini_y_row = [0] * level_rows
            n_no_more = 0
            n_to_distribute = 0

            h_y = cell_h + 6
            for i in range(level_rows):
                ini_y = min_border + i * cell_h - 3
                ini_y_row[i] = ini_y
                if i == level_rows - 1:
                    h_y = max_border_y + 3 - ini_y
                    if h_y <= 0:
                        continue
                h_x = cell_w + 6
                for j in range(level_cols):
                    if i == 0:
                        ini_x_col[j] = min_border + j * cell_w - 3
                    ini_x = ini_x_col[j]
                    if j == level_cols - 1:
                        h_x = max_border_x + 3 - ini_x
                        if h_x <= 0:
                            continue
                    cell = image[ini_y:ini_y + h_y, ini_x:ini_x + h_x]
                    keys = self._detect(cell, 3)
                    cell_keys[i][j] = keys
                    totals[i][j] = len(keys)
                    if len(keys) > per_cell:
                        to_retain[i][j] = per_cell
                        no_more[i][j] = False
                    else:
                        to_retain[i][j] = len(keys)
                        n_to_distribute += per_cell - len(keys)
                        no_more[i][j] = True
                        n_no_more += 1

            while n_to_distribute > 0 and n_no_more < n_cells:
                new_per_cell = per_cell + math.ceil(n_to_distribute / (n_cells - n_no_more))
                n_to_distribute = 0
                for i in range(level_rows):
                    for j in range(level_cols):
                        if no_more[i][j]:
                            continue
                        if totals[i][j] > new_per_cell:
                            to_retain[i][j] = new_per_cell
                        else:
                            to_retain[i][j] = totals[i][j]
                            n_to_distribute += new_per_cell - totals[i][j]
                            no_more[i][j] = True
                            n_no_more += 1

            size = self._patch_size(level)
            keypoints: list[KeyPoint] = []
            for i in range(level_rows):
                for j in range(level_cols):
                    kept = retain_best(cell_keys[i][j], to_retain[i][j])[:to_retain[i][j]]
                    keypoints.extend(
                        KeyPoint(
                            x=kp.x + ini_x_col[j],
                            y=kp.y + ini_y_row[i],
                            size=size,
                            angle=kp.angle,
                            response=kp.response,
                            octave=level,
                        )
                        for kp in kept
                    )
            if len(keypoints) > n_desired:
                keypoints = retain_best(keypoints, n_desired)[:n_desired]
            all_keypoints.append(keypoints)

        return [self._oriented(level, keys) for level, keys in enumerate(all_keypoints)]