"""Keypoints detected in an image and helpers to filter them."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Iterable


@dataclass(slots=True)
class KeyPoint:
    """A detected image feature.

    ``x`` and ``y`` are pixel coordinates, ``size`` the diameter of the
    meaningful neighbourhood, ``angle`` the orientation in degrees (-1 when
    not computed), ``response`` the detector strength and ``octave`` the
    pyramid level the point was found on.
    """

    x: float
    y: float
    size: float = 0.0
    angle: float = -1.0
    response: float = 0.0
    octave: int = 0

    @property
    def pt(self) -> tuple[float, float]:
        """The point's coordinates as an ``(x, y)`` pair."""
        return (self.x, self.y)

    def scaled(self, factor: float) -> KeyPoint:
        """Return a copy whose coordinates are multiplied by ``factor``."""
        return dataclasses.replace(self, x=self.x * factor, y=self.y * factor)

    def shifted(self, dx: float, dy: float) -> KeyPoint:
        """Return a copy moved by ``(dx, dy)``."""
        return dataclasses.replace(self, x=self.x + dx, y=self.y + dy)


def retain_best(keypoints: Iterable[KeyPoint], n: int) -> list[KeyPoint]:
    """Keep the ``n`` keypoints with the strongest response.

    When there are no more than ``n`` keypoints, or ``n`` is negative, all of
    them are returned in their original order. Otherwise the result is ordered
    by decreasing response; ties keep their original relative order.
    """
    points = list(keypoints)
    if n < 0 or len(points) <= n:
        return points
    if n == 0:
        return []
    return sorted(points, key=lambda kp: kp.response, reverse=True)[:n]