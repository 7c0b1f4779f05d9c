"""Spread keypoints evenly over an image region with a quadtree."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from orbslam.keypoint import KeyPoint

Point = tuple[int, int]


@dataclass
class ExtractorNode:
    """A rectangular cell of the quadtree and the keypoints inside it.

    ``ul``, ``ur``, ``bl`` and ``br`` are the integer corners (upper-left,
    upper-right, bottom-left, bottom-right). ``no_more`` is set once the node
    holds a single keypoint and should not be divided again.
    """

    keys: list[KeyPoint] = field(default_factory=list)
    ul: Point = (0, 0)
    ur: Point = (0, 0)
    bl: Point = (0, 0)
    br: Point = (0, 0)
    no_more: bool = False

    def divide(self) -> tuple[ExtractorNode, ExtractorNode, ExtractorNode, ExtractorNode]:
        """Split the node into four quadrants and share its keypoints out.

        Returns the upper-left, upper-right, bottom-left and bottom-right
        children, in that order. A child with exactly one keypoint is marked
        ``no_more``.
        """
        half_x = math.ceil((self.ur[0] - self.ul[0]) / 2)
        half_y = math.ceil((self.br[1] - self.ul[1]) / 2)
        ul_x, ul_y = self.ul

        n1 = ExtractorNode(
            ul=self.ul,
            ur=(ul_x + half_x, ul_y),
            bl=(ul_x, ul_y + half_y),
            br=(ul_x + half_x, ul_y + half_y),
        )
        n2 = ExtractorNode(
            ul=n1.ur,
            ur=self.ur,
            bl=n1.br,
            br=(self.ur[0], ul_y + half_y),
        )
        n3 = ExtractorNode(
            ul=n1.bl,
            ur=n1.br,
            bl=self.bl,
            br=(n1.br[0], self.bl[1]),
        )
        n4 = ExtractorNode(
            ul=n3.ur,
            ur=n2.br,
            bl=n3.br,
            br=self.br,
        )

        split_x = n1.ur[0]
        split_y = n1.br[1]
        for kp in self.keys:
            if kp.x < split_x:
                (n1 if kp.y < split_y else n3).keys.append(kp)
            elif kp.y < split_y:
                n2.keys.append(kp)
            else:
                n4.keys.append(kp)

        children = (n1, n2, n3, n4)
        for child in children:
            if len(child.keys) == 1:
                child.no_more = True
        return children


def _strongest(node: ExtractorNode) -> KeyPoint:
    best = node.keys[0]
    for kp in node.keys[1:]:
        if kp.response > best.response:
            best = kp
    return best


def _remove_node(nodes: list[ExtractorNode], target: ExtractorNode) -> None:
    for position, node in enumerate(nodes):
        if node is target:
            del nodes[position]
            return


def _initial_nodes(
    keypoints: Sequence[KeyPoint], width: int, height: int
) -> list[ExtractorNode]:
    if width <= 0 or height <= 0:
        raise ValueError("the region must have a positive width and height")
    n_ini = round(width / height)
    if n_ini < 1:
        raise ValueError("the region must be at least half as wide as it is high")
    h_x = np.float32(width) / np.float32(n_ini)

    nodes = []
    for i in range(n_ini):
        left = int(h_x * np.float32(i))
        right = int(h_x * np.float32(i + 1))
        nodes.append(
            ExtractorNode(ul=(left, 0), ur=(right, 0), bl=(left, height), br=(right, height))
        )

    for kp in keypoints:
        index = int(np.float32(kp.x) / h_x)
        nodes[min(max(index, 0), n_ini - 1)].keys.append(kp)

    kept = []
    for node in nodes:
        if not node.keys:
            continue
        if len(node.keys) == 1:
            node.no_more = True
        kept.append(node)
    return kept


def distribute_oct_tree(
    keypoints: Sequence[KeyPoint],
    min_x: int,
    max_x: int,
    min_y: int,
    max_y: int,
    n_features: int,
) -> list[KeyPoint]:
    """Select keypoints spread over the region, keeping the strongest per cell.

    Keypoint coordinates are relative to ``(min_x, min_y)``. Cells are split
    until there are at least ``n_features`` of them or no cell can be split
    further; the keypoint with the highest response of each cell is kept.
    The result may hold a few more than ``n_features`` keypoints.
    """
    nodes = _initial_nodes(keypoints, max_x - min_x, max_y - min_y)

    finished = False
    while not finished:
        prev_size = len(nodes)
        created: list[ExtractorNode] = []
        kept: list[ExtractorNode] = []
        to_expand: list[ExtractorNode] = []

        for node in nodes:
            if node.no_more:
                kept.append(node)
                continue
            for child in node.divide():
                if child.keys:
                    created.append(child)
                    if len(child.keys) > 1:
                        to_expand.append(child)
        nodes = created[::-1] + kept

        if len(nodes) >= n_features or len(nodes) == prev_size:
            finished = True
        elif len(nodes) + len(to_expand) * 3 > n_features:
            while not finished:
                prev_size = len(nodes)
                previous = sorted(to_expand, key=lambda n: len(n.keys))
                to_expand = []
                for node in reversed(previous):
                    for child in node.divide():
                        if child.keys:
                            nodes.insert(0, child)
                            if len(child.keys) > 1:
                                to_expand.append(child)
                    _remove_node(nodes, node)
                    if len(nodes) >= n_features:
                        break
                if len(nodes) >= n_features or len(nodes) == prev_size:
                    finished = True

    return [_strongest(node) for node in nodes]