import pytest

from bitmast.core.errors import EmptyTree, IndexOutOfRange
from bitmast.core.hashing import hash_branch
from bitmast.core.tree import build_tree, tree_depth

A = b'\xaa' * 32
B = b'\xbb' * 32
C = b'\xcc' * 32
D = b'\xdd' * 32


def test_single_leaf_is_root():
    tree = build_tree([A])
    assert tree.root == A
    assert tree.depth == 0
    assert tree.leaf_count == 1


def test_two_leaves():
    assert build_tree([A, B]).root == hash_branch(A, B)


def test_odd_level_duplicates_last_node():
    tree = build_tree([A, B, C])
    assert tree.root == hash_branch(hash_branch(A, B), hash_branch(C, C))
    assert tree.depth == 2
    assert tree.node_count == 3 + 2 + 1


def test_four_leaves():
    tree = build_tree([A, B, C, D])
    assert tree.root == hash_branch(hash_branch(A, B), hash_branch(C, D))


def test_root_is_order_sensitive():
    assert build_tree([A, B, C]).root != build_tree([B, A, C]).root


def test_empty_tree():
    with pytest.raises(EmptyTree):
        build_tree([])


def test_leaf_length_is_checked():
    with pytest.raises(ValueError):
        build_tree([A, b'\x00' * 31])


@pytest.mark.parametrize("leaf_count,depth", [(1, 0), (2, 1), (3, 2), (4, 2), (5, 3), (8, 3), (9, 4), (252, 8)])
def test_tree_depth(leaf_count, depth):
    assert tree_depth(leaf_count) == depth
    leaves = [i.to_bytes(32, 'big') for i in range(leaf_count)]
    assert build_tree(leaves).depth == depth


def test_nodes_and_children():
    tree = build_tree([A, B, C])
    root = tree.node(tree.depth, 0)
    left, right = tree.children(root)
    assert (left.level, left.index) == (1, 0)
    assert (right.level, right.index) == (1, 1)

    # the lone node on level 0 is its own sibling
    only_child_left, only_child_right = tree.children(right)
    assert only_child_left == only_child_right
    assert only_child_left.hash == C
    assert tree.children(only_child_left) is None


def test_node_out_of_range():
    tree = build_tree([A, B, C])
    with pytest.raises(IndexOutOfRange):
        tree.node(0, 3)
    with pytest.raises(IndexOutOfRange):
        tree.node(3, 0)
    with pytest.raises(IndexError):
        tree.leaf(-1)
