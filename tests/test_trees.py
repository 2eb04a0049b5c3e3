"""Tests for the time-tree arena and Newick handling."""

from __future__ import annotations

import numpy as np
import pytest
import treeswift

from tauscale.trees import TimeTree, read_time_tree, read_time_trees

CATERPILLAR = "(((A:1,B:1):1,C:2):1,D:3);"


def _read_tree(newick: str) -> treeswift.Tree:
    if hasattr(treeswift, "read_tree_newick"):
        return treeswift.read_tree_newick(newick)
    import io

    return treeswift.read_tree(io.StringIO(newick), "newick")


def test_read_time_tree_indices_and_heights():
    tree = read_time_tree(CATERPILLAR)
    assert tree.leaf_node_count() == 4
    assert tree.internal_node_count() == 3
    assert tree.node_count() == 7
    assert [tree.node(i).label for i in range(4)] == ["A", "B", "C", "D"]
    assert all(tree.node(i).height == 0.0 for i in range(4))
    # Internal nodes are numbered in postorder, root last.
    assert tree.heights()[4:].tolist() == pytest.approx([1.0, 2.0, 3.0])
    assert tree.root.index == 6
    assert tree.root.is_root()
    assert sorted(c.index for c in (tree.root.left, tree.root.right)) == [3, 5]


def test_node_refs_share_live_heights():
    tree = read_time_tree(CATERPILLAR)
    a = tree.node(5)
    b = tree.node(5)
    a.height = 2.5
    assert b.height == 2.5
    assert a == b
    assert len({a, b}) == 1
    assert tree.node(4).parent == a


def test_store_and_restore_heights():
    tree = read_time_tree(CATERPILLAR)
    tree.store()
    tree.node(6).height = 10.0
    tree.node(5).height = 7.0
    tree.restore()
    assert tree.heights()[4:].tolist() == pytest.approx([1.0, 2.0, 3.0])


def test_height_order_violations():
    tree = read_time_tree(CATERPILLAR)
    assert tree.is_height_ordered()
    tree.node(5).height = 0.5
    assert tree.height_order_violations() == [5]
    assert not tree.is_height_ordered()


def test_rejects_non_ultrametric_tree():
    with pytest.raises(ValueError, match="ultrametric"):
        read_time_tree("((A:1,B:2):1,C:3);")


def test_rejects_polytomy():
    with pytest.raises(ValueError, match="binary"):
        read_time_tree("((A:1,B:1,C:1):1,D:2);")


def test_suppresses_unifurcations():
    tree = read_time_tree("(((A:1,B:1):1):1,C:3);")
    assert tree.internal_node_count() == 2
    assert tree.heights()[3:].tolist() == pytest.approx([1.0, 3.0])


def test_arena_constructor_validates_topology():
    # Node 3 claims leaf 0 twice.
    with pytest.raises(ValueError):
        TimeTree(left=[-1, -1, -1, 0, 3], right=[-1, -1, -1, 0, 2], heights=[0, 0, 0, 1, 2])
    with pytest.raises(ValueError, match="2n-1"):
        TimeTree(left=[-1, -1], right=[-1, -1], heights=[0, 0])


def test_rejects_node_above_its_parent():
    # A negative branch puts the cherry at height 3 under a root at height 2.
    with pytest.raises(ValueError, match="below a child"):
        read_time_tree("((A:3,B:3):-1,C:2);")
    with pytest.raises(ValueError, match="below a child"):
        TimeTree(left=[-1, -1, -1, 0, 3], right=[-1, -1, -1, 1, 2], heights=[0, 0, 0, 3, 2])


def test_rejects_leaf_off_the_present():
    with pytest.raises(ValueError, match="height 0"):
        TimeTree(left=[-1, -1, -1, 0, 3], right=[-1, -1, -1, 1, 2], heights=[0.5, 0, 0, 1, 2])


def test_newick_round_trip_keeps_branch_lengths():
    tree = read_time_tree(CATERPILLAR)
    again = read_time_tree(tree.newick())
    assert np.allclose(again.heights(), tree.heights())
    reparsed = _read_tree(tree.newick())
    assert sorted(str(n.label) for n in reparsed.traverse_leaves()) == ["A", "B", "C", "D"]


def test_read_time_trees_skips_blank_lines(tmp_path):
    src = tmp_path / "trees.nwk"
    src.write_text(CATERPILLAR + "\n\n((A:1,B:1):1,C:2);\n", encoding="utf-8")
    trees = read_time_trees(str(src))
    assert [t.leaf_node_count() for t in trees] == [4, 3]
