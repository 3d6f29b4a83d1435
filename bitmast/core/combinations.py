"""
Enumeration of minimal signing quorums.

Every eligible subset has exactly m members: a larger signer set can always
spend through any m of its members, so the tree holds C(n, m) leaves instead
of the sum over all sizes >= m. Combinations come out in lexicographic order
of their index tuples, and that order is the leaf order of the tree.
"""
import itertools
import logging
import math
from typing import Iterable, Iterator

from .. import conf
from .errors import CombinatorialOverflow
from .types import Combination, Threshold

logger = logging.getLogger(__name__)


def count_combinations(n: int, m: int) -> int:
    Threshold(m=m, n=n)
    return math.comb(n, m)


def check_ceiling(n: int, m: int, ceiling: int | None = None) -> int:
    """Return C(n, m), or raise CombinatorialOverflow if it exceeds the ceiling"""
    if ceiling is None:
        ceiling = conf.MAST_MAX_COMBINATIONS
    count = count_combinations(n, m)
    if count > ceiling:
        raise CombinatorialOverflow(n=n, m=m, count=count, ceiling=ceiling)
    return count


def iter_combinations(n: int, m: int) -> Iterator[Combination]:
    Threshold(m=m, n=n)
    return itertools.combinations(range(n), m)


def enumerate_combinations(n: int, m: int, *, ceiling: int | None = None) -> list[Combination]:
    count = check_ceiling(n, m, ceiling)
    logger.debug("Enumerating %s combinations of %s-of-%s", count, m, n)
    return list(iter_combinations(n, m))


def validate_combination(combination: Iterable[int], n: int, m: int) -> Combination:
    combination = tuple(combination)
    if len(combination) != m:
        raise ValueError(f"Expected {m} indices, got {len(combination)}")
    for index in combination:
        if not isinstance(index, int) or isinstance(index, bool):
            raise TypeError(f"Combination indices must be integers, got {type(index)}")
        if not 0 <= index < n:
            raise ValueError(f"Index {index} out of range for {n} participants")
    if any(b <= a for a, b in zip(combination, combination[1:])):
        raise ValueError(f"Combination indices must be strictly increasing: {combination}")
    return combination


def combination_rank(combination: Iterable[int], n: int) -> int:
    """Position of the combination in the lexicographic enumeration of its size"""
    combination = tuple(combination)
    m = len(combination)
    validate_combination(combination, n, m)
    rank = 0
    previous = -1
    for position, index in enumerate(combination):
        remaining = m - position - 1
        # every combination that has a smaller index at this position comes first
        for skipped in range(previous + 1, index):
            rank += math.comb(n - skipped - 1, remaining)
        previous = index
    return rank


def combination_at(rank: int, n: int, m: int) -> Combination:
    """Inverse of combination_rank"""
    total = count_combinations(n, m)
    if not 0 <= rank < total:
        raise ValueError(f"Rank {rank} out of range for C({n}, {m}) = {total}")
    combination = []
    candidate = 0
    for position in range(m):
        remaining = m - position - 1
        while True:
            block = math.comb(n - candidate - 1, remaining)
            if rank < block:
                break
            rank -= block
            candidate += 1
        combination.append(candidate)
        candidate += 1
    return tuple(combination)


def compute_min_threshold(n: int, max_leaves: int) -> int:
    """
    Smallest threshold whose tree, and the tree of every larger threshold,
    stays within max_leaves. Only thresholds from n // 2 upwards are considered.
    """
    if n > max_leaves:
        return n
    for m in range(n, n // 2 - 1, -1):
        if math.comb(n, m) > max_leaves:
            return m + 1
    return 1
