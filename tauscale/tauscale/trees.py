"""Time-tree arena, Newick I/O, and height bookkeeping."""

from __future__ import annotations

import io
import logging
from typing import List, Sequence

import networkx as nx
import numpy as np
import treeswift

logger = logging.getLogger(__name__)

_ULTRAMETRIC_TOL = 1e-8


class NodeRef:
    """Handle on one node of a `TimeTree`.

    Reads and writes go straight to the owning tree, so every handle on the
    same index sees a height change immediately.
    """

    __slots__ = ("_tree", "index")

    def __init__(self, tree: "TimeTree", index: int) -> None:
        self._tree = tree
        self.index = int(index)

    @property
    def height(self) -> float:
        return float(self._tree._heights[self.index])

    @height.setter
    def height(self, value: float) -> None:
        self._tree._heights[self.index] = float(value)

    @property
    def left(self) -> "NodeRef | None":
        child = int(self._tree._left[self.index])
        return None if child < 0 else NodeRef(self._tree, child)

    @property
    def right(self) -> "NodeRef | None":
        child = int(self._tree._right[self.index])
        return None if child < 0 else NodeRef(self._tree, child)

    @property
    def parent(self) -> "NodeRef | None":
        p = int(self._tree._parent[self.index])
        return None if p < 0 else NodeRef(self._tree, p)

    @property
    def label(self) -> str | None:
        return self._tree.labels[self.index]

    def is_leaf(self) -> bool:
        return self.index < self._tree.leaf_node_count()

    def is_root(self) -> bool:
        return int(self._tree._parent[self.index]) < 0

    def __eq__(self, other: object) -> bool:
        return isinstance(other, NodeRef) and other._tree is self._tree and other.index == self.index

    def __hash__(self) -> int:
        return hash((id(self._tree), self.index))

    def __repr__(self) -> str:
        return f"NodeRef(index={self.index}, height={self.height:.6g})"


class TimeTree:
    """Rooted binary time tree stored as index-addressed node records.

    Leaves occupy indices ``0..n-1`` and internal nodes ``n..2n-2`` in
    postorder, so the root is always the last index. Heights run from the
    leaves (0) toward the root.
    """

    def __init__(
        self,
        left: Sequence[int],
        right: Sequence[int],
        heights: Sequence[float],
        labels: Sequence[str | None] | None = None,
    ) -> None:
        self._left = np.asarray(left, dtype=int).copy()
        self._right = np.asarray(right, dtype=int).copy()
        self._heights = np.asarray(heights, dtype=float).copy()
        n_nodes = len(self._heights)
        if len(self._left) != n_nodes or len(self._right) != n_nodes:
            raise ValueError("left, right and heights must have the same length")
        if n_nodes < 3 or n_nodes % 2 == 0:
            raise ValueError("a rooted binary tree needs 2n-1 nodes with n >= 2 leaves")
        self._leaf_count = (n_nodes + 1) // 2
        self.labels: List[str | None] = list(labels) if labels is not None else [None] * n_nodes
        if len(self.labels) != n_nodes:
            raise ValueError("labels must have one entry per node")

        self._parent = np.full(n_nodes, -1, dtype=int)
        for idx in range(n_nodes):
            kids = (int(self._left[idx]), int(self._right[idx]))
            is_leaf = idx < self._leaf_count
            if is_leaf and kids != (-1, -1):
                raise ValueError(f"leaf {idx} must not have children")
            if not is_leaf and min(kids) < 0:
                raise ValueError(f"internal node {idx} must have exactly two children")
            for child in kids:
                if child >= 0:
                    self._parent[child] = idx
        self._validate_topology()
        if np.any(self._heights[: self._leaf_count] != 0.0):
            raise ValueError("leaves must all sit at height 0")
        violations = self.height_order_violations()
        if violations:
            raise ValueError(f"internal nodes sit below a child: {violations}")
        self._stored_heights = self._heights.copy()

    def _validate_topology(self) -> None:
        graph = nx.DiGraph()
        graph.add_nodes_from(range(self.node_count()))
        for idx in range(self._leaf_count, self.node_count()):
            graph.add_edge(idx, int(self._left[idx]))
            graph.add_edge(idx, int(self._right[idx]))
        if not nx.is_arborescence(graph):
            raise ValueError("node records do not form a single rooted tree")
        if int(self._parent[-1]) != -1:
            raise ValueError("the root must be the last node index")

    # Counts and access

    def leaf_node_count(self) -> int:
        return self._leaf_count

    def internal_node_count(self) -> int:
        return self._leaf_count - 1

    def node_count(self) -> int:
        return len(self._heights)

    def node(self, index: int) -> NodeRef:
        if index < 0 or index >= self.node_count():
            raise IndexError(f"node index out of range: {index}")
        return NodeRef(self, index)

    @property
    def root(self) -> NodeRef:
        return NodeRef(self, self.node_count() - 1)

    def internal_nodes(self) -> List[NodeRef]:
        return [NodeRef(self, i) for i in range(self._leaf_count, self.node_count())]

    def leaves(self) -> List[NodeRef]:
        return [NodeRef(self, i) for i in range(self._leaf_count)]

    def heights(self) -> np.ndarray:
        return self._heights.copy()

    def children_of(self, index: int) -> tuple[int, int]:
        return int(self._left[index]), int(self._right[index])

    # Host-side rollback

    def store(self) -> None:
        self._stored_heights = self._heights.copy()

    def restore(self) -> None:
        self._heights[:] = self._stored_heights

    # Validity

    def height_order_violations(self) -> List[int]:
        """Internal node indices sitting below one of their children."""
        internal = np.arange(self._leaf_count, self.node_count())
        child_max = np.maximum(self._heights[self._left[internal]], self._heights[self._right[internal]])
        bad = internal[self._heights[internal] < child_max]
        return [int(i) for i in bad]

    def is_height_ordered(self) -> bool:
        return not self.height_order_violations()

    # Conversion

    def to_treeswift(self) -> treeswift.Tree:
        nodes = [treeswift.Node(label=self.labels[i]) for i in range(self.node_count())]
        for idx in range(self._leaf_count, self.node_count()):
            for child in self.children_of(idx):
                nodes[child].edge_length = float(self._heights[idx] - self._heights[child])
                nodes[idx].add_child(nodes[child])
        tree = treeswift.Tree()
        tree.root = nodes[-1]
        return tree

    def newick(self) -> str:
        return self.to_treeswift().newick()

    @classmethod
    def from_treeswift(cls, tree: treeswift.Tree) -> "TimeTree":
        """Build an arena from an ultrametric, binary treeswift tree."""
        tree.suppress_unifurcations()
        depth: dict[treeswift.Node, float] = {}
        for node in tree.root.traverse_preorder():
            if node is tree.root:
                depth[node] = 0.0
            else:
                depth[node] = depth[node.parent] + float(node.edge_length or 0.0)
            if not node.is_leaf() and len(node.children) != 2:
                raise ValueError(f"tree must be binary, found a node with {len(node.children)} children")

        leaves = list(tree.root.traverse_leaves())
        root_height = max(depth[leaf] for leaf in leaves)
        tol = _ULTRAMETRIC_TOL * max(1.0, root_height)
        for leaf in leaves:
            if abs(root_height - depth[leaf]) > tol:
                raise ValueError("tree is not ultrametric: leaves must all sit at height 0")

        index: dict[treeswift.Node, int] = {leaf: i for i, leaf in enumerate(leaves)}
        next_idx = len(leaves)
        for node in tree.root.traverse_postorder():
            if not node.is_leaf():
                index[node] = next_idx
                next_idx += 1

        n_nodes = next_idx
        left = [-1] * n_nodes
        right = [-1] * n_nodes
        heights = [0.0] * n_nodes
        labels: List[str | None] = [None] * n_nodes
        for node, idx in index.items():
            labels[idx] = None if node.label is None else str(node.label)
            if node.is_leaf():
                continue
            heights[idx] = max(0.0, root_height - depth[node])
            left[idx] = index[node.children[0]]
            right[idx] = index[node.children[1]]
        out = cls(left, right, heights, labels)
        logger.debug(
            "built time tree with %d leaves, root height %.6g",
            out.leaf_node_count(),
            root_height,
        )
        return out


def read_time_tree(newick: str) -> TimeTree:
    """Parse one Newick string with branch lengths into a `TimeTree`."""
    if hasattr(treeswift, "read_tree_newick"):
        tree = treeswift.read_tree_newick(newick)
    else:
        tree = treeswift.read_tree(io.StringIO(newick), "newick")
    return TimeTree.from_treeswift(tree)


def read_time_trees(path: str) -> List[TimeTree]:
    """Read Newick time trees from a file (one per line)."""
    trees: List[TimeTree] = []
    with open(path, "r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if not line:
                continue
            trees.append(read_time_tree(line))
    return trees

