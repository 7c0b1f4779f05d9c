"""Hamming distance between binary descriptors and nearest-neighbour search."""

from __future__ import annotations

from typing import Iterable, NamedTuple

import numpy as np

NO_MATCH_DISTANCE = 256


class NearestTwo(NamedTuple):
    """The best and second-best distances found and the best row's index."""

    best_distance: int
    best_index: int
    second_distance: int


def _as_bytes(descriptor) -> np.ndarray:
    if isinstance(descriptor, (bytes, bytearray, memoryview)):
        return np.frombuffer(bytes(descriptor), dtype=np.uint8)
    return np.asarray(descriptor, dtype=np.uint8).ravel()


def descriptor_distance(a, b) -> int:
    """Return the number of differing bits between two descriptors."""
    first = _as_bytes(a)
    second = _as_bytes(b)
    if first.shape != second.shape:
        raise ValueError("descriptors must have the same length")
    return int(np.unpackbits(np.bitwise_xor(first, second)).sum())


def nearest_two(query, descriptors, indices: Iterable[int]) -> NearestTwo:
    """Find the closest and second-closest rows of ``descriptors`` to ``query``.

    Only the rows named by ``indices`` are considered, in the given order. A
    row replaces the best only when strictly closer; with no candidates the
    result is ``(256, -1, 256)``.
    """
    best, best_index, second = NO_MATCH_DISTANCE, -1, NO_MATCH_DISTANCE
    for index in indices:
        dist = descriptor_distance(query, descriptors[index])
        if dist < best:
            second = best
            best = dist
            best_index = index
        elif dist < second:
            second = dist
    return NearestTwo(best, best_index, second)