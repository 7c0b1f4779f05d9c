"""Matching features between the two frames used to initialise a map."""

from __future__ import annotations

from typing import NamedTuple, Sequence

from orbslam.distance import descriptor_distance
from orbslam.keypoint import KeyPoint
from orbslam.rotation import RotationHistogram

TH_LOW = 50
_NO_DISTANCE = 2**31 - 1


class InitializationMatches(NamedTuple):
    """Result of an initialisation search.

    ``matches`` gives, for every keypoint of the first frame, the index of its
    match in the second frame or ``-1``. ``prev_matched`` holds the updated
    positions to search around in the next frame.
    """

    count: int
    matches: list[int]
    prev_matched: list[tuple[float, float]]


def features_in_area(
    keypoints: Sequence[KeyPoint],
    x: float,
    y: float,
    radius: float,
    min_level: int = -1,
    max_level: int = -1,
) -> list[int]:
    """Return the indices of keypoints inside the square window around ``(x, y)``.

    A keypoint qualifies when both coordinate offsets are strictly below
    ``radius``. Levels are checked when ``min_level > 0`` or ``max_level >= 0``:
    octaves below ``min_level`` and, with ``max_level >= 0``, above it are
    skipped.
    """
    check_levels = min_level > 0 or max_level >= 0
    found = []
    for index, kp in enumerate(keypoints):
        if check_levels:
            if kp.octave < min_level:
                continue
            if max_level >= 0 and kp.octave > max_level:
                continue
        if abs(kp.x - x) < radius and abs(kp.y - y) < radius:
            found.append(index)
    return found


def search_for_initialization(
    keys1: Sequence[KeyPoint],
    descriptors1,
    keys2: Sequence[KeyPoint],
    descriptors2,
    prev_matched: Sequence[tuple[float, float]],
    window_size: float = 10,
    nn_ratio: float = 0.6,
    check_orientation: bool = True,
) -> InitializationMatches:
    """Match level-0 keypoints of frame 1 to frame 2 near their previous positions.

    A match needs a distance of at most ``TH_LOW`` and must beat the second
    best by ``nn_ratio``. A second-frame keypoint already taken is stolen by a
    strictly closer match. With ``check_orientation`` matches outside the
    three dominant rotation bins are dropped.
    """
    if len(prev_matched) != len(keys1):
        raise ValueError("prev_matched must hold one position per keypoint of frame 1")

    matches12 = [-1] * len(keys1)
    matches21 = [-1] * len(keys2)
    matched_distance = [_NO_DISTANCE] * len(keys2)
    histogram = RotationHistogram()
    count = 0

    for i1, kp1 in enumerate(keys1):
        level = kp1.octave
        if level > 0:
            continue
        px, py = prev_matched[i1]
        candidates = features_in_area(keys2, px, py, window_size, level, level)
        if not candidates:
            continue

        d1 = descriptors1[i1]
        best = second = _NO_DISTANCE
        best_index = -1
        for i2 in candidates:
            dist = descriptor_distance(d1, descriptors2[i2])
            if matched_distance[i2] <= dist:
                continue
            if dist < best:
                second = best
                best = dist
                best_index = i2
            elif dist < second:
                second = dist

        if best <= TH_LOW and best < float(second) * nn_ratio:
            previous = matches21[best_index]
            if previous >= 0:
                matches12[previous] = -1
                count -= 1
            matches12[i1] = best_index
            matches21[best_index] = i1
            matched_distance[best_index] = best
            count += 1
            if check_orientation:
                histogram.add(kp1.angle, keys2[best_index].angle, i1)

    if check_orientation:
        for i1 in histogram.outliers():
            if matches12[i1] >= 0:
                matches12[i1] = -1
                count -= 1

    updated = [
        keys2[m].pt if m >= 0 else tuple(prev)
        for m, prev in zip(matches12, prev_matched)
    ]
    return InitializationMatches(count, matches12, updated)