from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable

from .errors import EmptyTree, IndexOutOfRange
from .hashing import hash_branch, HASH_SIZE
from .types import Hash256


def tree_depth(leaf_count: int) -> int:
    """ceil(log2(leaf_count)); a single leaf has depth 0"""
    if leaf_count < 1:
        raise EmptyTree("A tree needs at least one leaf")
    return (leaf_count - 1).bit_length()


@dataclass(frozen=True)
class MerkleNode:
    level: int
    index: int
    hash: Hash256

    @property
    def is_leaf(self) -> bool:
        return self.level == 0


@dataclass(frozen=True, repr=False)
class MastTree:
    """
    Immutable binary Merkle tree stored as an arena of levels.

    levels[0] holds the leaves, levels[-1] holds only the root. The node at
    (level, i) owns the children (level - 1, 2i) and (level - 1, 2i + 1); when
    the level below has an odd width, the last node is its own right child.
    """
    levels: tuple[tuple[Hash256, ...], ...]

    def __repr__(self):
        return f"<MastTree(leaves={self.leaf_count}, depth={self.depth}, root={self.root.hex()})>"

    @property
    def root(self) -> Hash256:
        return self.levels[-1][0]

    @property
    def leaves(self) -> tuple[Hash256, ...]:
        return self.levels[0]

    @property
    def leaf_count(self) -> int:
        return len(self.levels[0])

    @property
    def depth(self) -> int:
        return len(self.levels) - 1

    @property
    def node_count(self) -> int:
        return sum(len(level) for level in self.levels)

    def leaf(self, index: int) -> Hash256:
        return self.node(0, index).hash

    def node(self, level: int, index: int) -> MerkleNode:
        if not 0 <= level < len(self.levels):
            raise IndexOutOfRange(f"Level {level} out of range for a tree of depth {self.depth}")
        width = len(self.levels[level])
        if not 0 <= index < width:
            raise IndexOutOfRange(f"Index {index} out of range for level {level} of width {width}")
        return MerkleNode(level=level, index=index, hash=self.levels[level][index])

    def children(self, node: MerkleNode) -> tuple[MerkleNode, MerkleNode] | None:
        if node.is_leaf:
            return None
        below = len(self.levels[node.level - 1])
        left = 2 * node.index
        right = left + 1 if left + 1 < below else left
        return self.node(node.level - 1, left), self.node(node.level - 1, right)


def build_tree(leaves: Iterable[bytes]) -> MastTree:
    """
    Bottom-up pairwise construction. An odd node at the end of a level is
    paired with itself, so [A, B, C] gives hb(hb(A, B), hb(C, C)).
    """
    level = tuple(Hash256(bytes(leaf)) for leaf in leaves)
    if not level:
        raise EmptyTree("Cannot build a MAST from zero leaves")
    for index, leaf in enumerate(level):
        if len(leaf) != HASH_SIZE:
            raise ValueError(f"Leaf {index} is {len(leaf)} bytes, expected {HASH_SIZE}")

    levels = [level]
    while len(level) > 1:
        level = tuple(
            hash_branch(level[i], level[i + 1] if i + 1 < len(level) else level[i])
            for i in range(0, len(level), 2)
        )
        levels.append(level)
    return MastTree(levels=tuple(levels))
