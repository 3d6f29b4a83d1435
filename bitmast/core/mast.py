"""
Threshold MAST construction and spending.

A Mast commits to one aggregate key per minimal signer quorum. The output key
is the internal key tweaked by the tree root with the taproot tweak, and each
leaf hashes an `<aggregate key> OP_CHECKSIG` tapscript.

Branches are hashed in tree order, not sorted as BIP-341 does, so the root is
not a BIP-341 script tree: a leaf proof never rebuilds it on chain. Spending a
funded witness v1 output only works by key path with the internal key, which
defaults to the N-of-N aggregate. Membership proofs are checked off chain with
verify_spend and verify_subset.
"""
from __future__ import annotations
import functools
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from .aggregation import AggregatedKey, AggregationCache, KeyAggregator
from .combinations import check_ceiling, combination_rank, count_combinations, iter_combinations
from .errors import AggregationFailure, MastError, SubsetNotCommitted
from .hashing import hash_leaf, hash_tweak
from .keys import PublicKey, CURVE_ORDER
from .proofs import InclusionProof, prove, verify
from .pruning import prune
from .tree import MastTree, build_tree
from .types import Combination, Hash256, Threshold

logger = logging.getLogger(__name__)

OP_1 = 0x51


@dataclass(frozen=True)
class OutputCommitment:
    internal_key: PublicKey
    merkle_root: Hash256
    output_key: PublicKey

    @property
    def parity(self) -> int:
        return 0 if self.output_key.has_even_y else 1

    @property
    def output_key_x(self) -> bytes:
        return self.output_key.x_only

    @property
    def script_pubkey(self) -> bytes:
        """
        Witness v1 output script: OP_1 <32-byte output key>

        Only the key path is spendable on chain. Script-path spends of the
        leaves are not BIP-341 valid because the tree is not sorted.
        """
        return bytes([OP_1, 32]) + self.output_key_x


def tweak_pubkey(internal_key: PublicKey, merkle_root: bytes) -> PublicKey:
    """Q = lift_x(P) + hash_tweak(x(P) || root) * G"""
    internal_key = internal_key.with_even_y()
    tweak = hash_tweak(internal_key.x_only, merkle_root)
    if int.from_bytes(tweak, 'big') >= CURVE_ORDER:
        raise AggregationFailure("Tweak hash is not a valid scalar")
    try:
        point = internal_key.to_point().add(tweak)
    except ValueError as e:
        raise AggregationFailure(f"Tweaking the internal key failed: {e}") from e
    return PublicKey.from_point(point)


def sort_participants(pubkeys: Iterable[PublicKey | bytes | str]) -> tuple[PublicKey, ...]:
    participants = tuple(sorted(_as_pubkey(p) for p in pubkeys))
    if not participants:
        raise MastError("At least one participant public key is required")
    for a, b in zip(participants, participants[1:]):
        if a == b:
            raise AggregationFailure(f"Duplicate participant public key {a.hex()}")
    return participants


def _as_pubkey(value: PublicKey | bytes | str) -> PublicKey:
    if isinstance(value, PublicKey):
        return value
    if isinstance(value, str):
        return PublicKey.fromhex(value)
    return PublicKey.from_bytes(value)


def resolve_combination(
    participants: Sequence[PublicKey],
    m: int,
    signer_subset: Iterable[PublicKey | bytes | str | int],
) -> Combination:
    """
    Map a signer subset to its canonical combination. Members are either all
    participant indices or all public keys; order does not matter.
    """
    members = list(signer_subset)
    if members and all(isinstance(member, int) and not isinstance(member, bool) for member in members):
        indices = members
        for index in indices:
            if not 0 <= index < len(participants):
                raise SubsetNotCommitted(f"Participant index {index} out of range")
    else:
        positions = {key: i for i, key in enumerate(participants)}
        indices = []
        for member in members:
            try:
                key = _as_pubkey(member)
            except ValueError as e:
                raise SubsetNotCommitted(f"Invalid signer {member!r}: {e}") from e
            if key not in positions:
                raise SubsetNotCommitted(f"{key.hex()} is not a participant")
            indices.append(positions[key])

    if len(set(indices)) != len(indices):
        raise SubsetNotCommitted("Signer subset contains the same participant more than once")
    if len(indices) != m:
        raise SubsetNotCommitted(f"Signer subset has {len(indices)} members, leaves commit to exactly {m}")
    return tuple(sorted(indices))


@dataclass(frozen=True, repr=False)
class Mast:
    participants: tuple[PublicKey, ...]
    threshold: Threshold
    aggregated_keys: tuple[AggregatedKey, ...]
    tree: MastTree
    total_combinations: int
    internal_key: PublicKey
    prune_budget: int | None = None

    def __repr__(self):
        return (
            f"<Mast({self.threshold}, leaves={self.tree.leaf_count}, "
            f"dropped={self.dropped_count}, root={self.root.hex()})>"
        )

    @property
    def root(self) -> Hash256:
        return self.tree.root

    @property
    def combinations(self) -> tuple[Combination, ...]:
        return tuple(agg.combination for agg in self.aggregated_keys)

    @property
    def dropped_count(self) -> int:
        return self.total_combinations - len(self.aggregated_keys)

    @functools.cached_property
    def output_commitment(self) -> OutputCommitment:
        return OutputCommitment(
            internal_key=self.internal_key,
            merkle_root=self.root,
            output_key=tweak_pubkey(self.internal_key, self.root),
        )

    def agg_pubkeys_to_personal(self) -> list[tuple[PublicKey, list[PublicKey]]]:
        """Each aggregate key with the participant keys it was built from"""
        return [
            (agg.public_key, [self.participants[i] for i in agg.combination])
            for agg in self.aggregated_keys
        ]

    def leaf_index(self, signer_subset: Iterable[PublicKey | bytes | str | int]) -> int:
        combination = resolve_combination(self.participants, self.threshold.m, signer_subset)
        rank = combination_rank(combination, self.threshold.n)
        if rank >= self.tree.leaf_count:
            raise SubsetNotCommitted(
                f"Combination {combination} has rank {rank}, only the first "
                f"{self.tree.leaf_count} combinations are committed"
            )
        return rank

    def aggregated_key_for(self, signer_subset: Iterable[PublicKey | bytes | str | int]) -> AggregatedKey:
        return self.aggregated_keys[self.leaf_index(signer_subset)]

    def leaf_for(self, signer_subset: Iterable[PublicKey | bytes | str | int]) -> Hash256:
        return self.tree.leaf(self.leaf_index(signer_subset))


class MastController:
    def __init__(
        self,
        aggregator: KeyAggregator | None = None,
        *,
        ceiling: int | None = None,
        max_workers: int | None = None,
    ):
        if aggregator is None:
            aggregator = KeyAggregator(cache=AggregationCache(), max_workers=max_workers)
        self.aggregator = aggregator
        self.ceiling = ceiling

    def commit(
        self,
        pubkeys: Iterable[PublicKey | bytes | str],
        threshold: int | Threshold,
        prune_budget: int | None = None,
        *,
        internal_key: PublicKey | None = None,
        ceiling: int | None = None,
    ) -> tuple[Mast, int]:
        """
        Build the MAST for an M-of-N policy. Returns the Mast and how many
        combinations were pruned away. `ceiling` overrides the controller's
        ceiling for this call.
        """
        participants = sort_participants(pubkeys)
        if isinstance(threshold, Threshold):
            if threshold.n != len(participants):
                raise MastError(f"Threshold {threshold} does not match {len(participants)} participants")
        else:
            threshold = Threshold(m=threshold, n=len(participants))

        total = check_ceiling(threshold.n, threshold.m, ceiling if ceiling is not None else self.ceiling)
        pruned = prune(iter_combinations(threshold.n, threshold.m), total, prune_budget)
        aggregated_keys = self.aggregator.aggregate_combinations(participants, pruned.retained)
        tree = build_tree(agg.leaf_hash for agg in aggregated_keys)

        if internal_key is None:
            internal_key = self.aggregator.aggregate(participants).public_key

        mast = Mast(
            participants=participants,
            threshold=threshold,
            aggregated_keys=tuple(aggregated_keys),
            tree=tree,
            total_combinations=total,
            internal_key=internal_key,
            prune_budget=prune_budget,
        )
        logger.info(
            "Committed %s MAST: %s leaves, depth %s, root %s",
            threshold,
            tree.leaf_count,
            tree.depth,
            tree.root.hex(),
        )
        return mast, pruned.dropped_count

    def spend_proof(self, mast: Mast, signer_subset: Iterable[PublicKey | bytes | str | int]) -> InclusionProof:
        leaf_index = mast.leaf_index(signer_subset)
        logger.debug("Proving leaf %s of %s", leaf_index, mast.tree.leaf_count)
        return prove(mast.tree, leaf_index)

    @staticmethod
    def verify_spend(
        merkle_root: bytes,
        aggregated_key: PublicKey,
        proof: InclusionProof | bytes,
        *,
        leaf_count: int | None = None,
    ) -> bool:
        if not isinstance(aggregated_key, PublicKey):
            return False
        return verify(hash_leaf(aggregated_key.x_only), proof, merkle_root, leaf_count=leaf_count)

    def verify_subset(
        self,
        pubkeys: Iterable[PublicKey | bytes | str],
        threshold: int,
        signer_subset: Iterable[PublicKey | bytes | str | int],
        proof: InclusionProof | bytes,
        merkle_root: bytes,
        *,
        prune_budget: int | None = None,
    ) -> bool:
        """
        Verify a spend from public data alone: re-derive the subset's aggregate
        key from the participant list and check its leaf against the root.

        The leaf count follows from the policy, C(n, m) or the prune budget if
        smaller, so the proof must also be exactly as deep as that tree.
        """
        try:
            participants = sort_participants(pubkeys)
            threshold = Threshold(m=threshold, n=len(participants))
            combination = resolve_combination(participants, threshold.m, signer_subset)
            aggregated = self.aggregator.aggregate([participants[i] for i in combination], combination)
            leaf_count = count_combinations(threshold.n, threshold.m)
            if prune_budget is not None:
                leaf_count = min(leaf_count, prune_budget)
        except (MastError, ValueError) as e:
            logger.debug("Rejecting spend for subset: %s", e)
            return False
        return self.verify_spend(merkle_root, aggregated.public_key, proof, leaf_count=leaf_count)
