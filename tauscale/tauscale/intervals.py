"""Coalescent-interval partition of a time tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .trees import TimeTree

logger = logging.getLogger(__name__)

# Leaf 0 sits at height 0 and marks the present.
PRESENT_NODE = 0


@dataclass(frozen=True)
class IntervalPartition:
    """Interval boundaries and the node set that moves with each interval.

    `boundary_nodes[i]` is the node whose live height is boundary ``i``, so
    interval ``i`` spans ``boundary_nodes[i]`` to ``boundary_nodes[i + 1]``.
    `node_sets[i]` holds every internal node shifted when interval ``i`` is
    rescaled.
    """

    boundary_nodes: Tuple[int, ...]
    node_sets: Tuple[frozenset[int], ...]

    @property
    def interval_count(self) -> int:
        return len(self.node_sets)

    def boundary_times(self, tree: TimeTree) -> np.ndarray:
        return np.array([tree.node(idx).height for idx in self.boundary_nodes], dtype=float)

    def duration(self, tree: TimeTree, interval: int) -> float:
        lower = tree.node(self.boundary_nodes[interval]).height
        upper = tree.node(self.boundary_nodes[interval + 1]).height
        return upper - lower


def _sorted_boundaries(tree: TimeTree) -> list[int]:
    internal = [(node.height, node.index) for node in tree.internal_nodes()]
    internal.sort()
    boundaries = [PRESENT_NODE]
    last_height = tree.node(PRESENT_NODE).height
    for height, idx in internal:
        # Exact ties collapse onto the lowest-index node of the tie.
        if height == last_height:
            continue
        boundaries.append(idx)
        last_height = height
    return boundaries


def partition_intervals(tree: TimeTree) -> IntervalPartition:
    """Partition `tree` into coalescent intervals and their moving node sets."""
    if tree.internal_node_count() < 2:
        raise ValueError("interval scaling needs a tree with at least 2 internal nodes")

    boundaries = _sorted_boundaries(tree)
    if len(boundaries) < 2:
        raise ValueError("tree has no interval of positive duration")

    heights = tree.heights()
    times = heights[boundaries]
    starts = times[:-1]
    ends = times[1:]

    internal = np.array([node.index for node in tree.internal_nodes()], dtype=int)
    children = np.array([tree.children_of(int(i)) for i in internal], dtype=int)
    min_child = np.minimum(heights[children[:, 0]], heights[children[:, 1]])
    node_heights = heights[internal]

    # rows: internal nodes, columns: intervals
    spans = (node_heights[:, None] >= ends[None, :]) & (starts[None, :] >= min_child[:, None])
    # Every interval inherits the nodes of the intervals above it.
    spans = np.logical_or.accumulate(spans[:, ::-1], axis=1)[:, ::-1]

    node_sets = tuple(frozenset(int(i) for i in internal[spans[:, col]]) for col in range(spans.shape[1]))
    logger.debug(
        "partitioned %d internal nodes into %d intervals",
        len(internal),
        len(node_sets),
    )
    return IntervalPartition(boundary_nodes=tuple(boundaries), node_sets=node_sets)
