"""Rotation-consistency check for descriptor matches."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence, Sized

import numpy as np

HISTO_LENGTH = 30
_FACTOR = np.float32(1.0 / HISTO_LENGTH)
_FULL_TURN = np.float32(360.0)


def rotation_bin(angle1: float, angle2: float) -> int:
    """Return the histogram bin of the rotation ``angle1 - angle2`` in degrees.

    A negative difference is shifted by a full turn; the bin is the rounded
    product of the rotation with ``1 / HISTO_LENGTH``.
    """
    rot = np.float32(angle1) - np.float32(angle2)
    if rot < 0.0:
        rot = rot + _FULL_TURN
    index = math.floor(float(np.float32(rot * _FACTOR)) + 0.5)
    if index == HISTO_LENGTH:
        index = 0
    if not 0 <= index < HISTO_LENGTH:
        raise ValueError(f"rotation {float(rot)} falls outside the histogram")
    return index


def compute_three_maxima(histogram: Sequence[Sized]) -> tuple[int, int, int]:
    """Return the indices of the three most populated bins, ``-1`` when absent.

    Only strictly larger bins displace earlier ones. The second and third are
    dropped when they hold less than a tenth of the first.
    """
    max1 = max2 = max3 = 0
    ind1 = ind2 = ind3 = -1
    for index, members in enumerate(histogram):
        size = len(members)
        if size > max1:
            max3, max2, max1 = max2, max1, size
            ind3, ind2, ind1 = ind2, ind1, index
        elif size > max2:
            max3, max2 = max2, size
            ind3, ind2 = ind2, index
        elif size > max3:
            max3 = size
            ind3 = index

    if max2 < 0.1 * max1:
        ind2 = ind3 = -1
    elif max3 < 0.1 * max1:
        ind3 = -1
    return ind1, ind2, ind3


@dataclass
class RotationHistogram:
    """Collects match indices by their relative keypoint rotation."""

    bins: list[list[int]] = field(
        default_factory=lambda: [[] for _ in range(HISTO_LENGTH)]
    )

    def add(self, angle1: float, angle2: float, index: int) -> int:
        """Record match ``index`` under its rotation bin and return that bin."""
        bin_index = rotation_bin(angle1, angle2)
        self.bins[bin_index].append(index)
        return bin_index

    def outliers(self) -> list[int]:
        """Return the indices outside the three dominant bins, in bin order."""
        kept = set(compute_three_maxima(self.bins))
        return [
            index
            for bin_index, members in enumerate(self.bins)
            if bin_index not in kept
            for index in members
        ]