"""
Inclusion proofs for MAST leaves.

A proof is the list of siblings from a leaf up to the root, each tagged with
the side the sibling sits on. Proofs travel over the wire, so verify() treats
them as untrusted: malformed input makes it return False, never raise.

Serialized form:
 - compact size  number of steps
 - uint256[]     sibling hashes, leaf level first
 - byte[]        side bits, packed per 8 in a byte, least significant bit first
                 (1 = sibling is on the left); padding bits must be zero
"""
from __future__ import annotations
import hmac
import logging
from dataclasses import dataclass

from .errors import IndexOutOfRange, ProofDecodeError
from .hashing import hash_branch, HASH_SIZE
from .serialization import ser_compact_size, deser_compact_size
from .tree import MastTree, tree_depth
from .types import Hash256, Side

logger = logging.getLogger(__name__)

# Same bound as the taproot control block: no tree is deeper than this
MAX_PROOF_DEPTH = 128

SIDES: tuple[Side, ...] = ('left', 'right')


@dataclass(frozen=True)
class ProofStep:
    sibling: Hash256
    side: Side


@dataclass(frozen=True)
class InclusionProof:
    steps: tuple[ProofStep, ...] = ()

    def __len__(self):
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def serialize(self) -> bytes:
        bits = bytearray((len(self.steps) + 7) // 8)
        for i, step in enumerate(self.steps):
            if step.side == 'left':
                bits[i // 8] |= 1 << (i % 8)
        return (
            ser_compact_size(len(self.steps))
            + b''.join(step.sibling for step in self.steps)
            + bytes(bits)
        )

    @classmethod
    def deserialize(cls, data: bytes) -> InclusionProof:
        try:
            num_steps, offset = deser_compact_size(data)
        except ValueError as e:
            raise ProofDecodeError(str(e)) from e
        if num_steps > MAX_PROOF_DEPTH:
            raise ProofDecodeError(f"Proof has {num_steps} steps, at most {MAX_PROOF_DEPTH} allowed")

        hashes_end = offset + num_steps * HASH_SIZE
        bits_end = hashes_end + (num_steps + 7) // 8
        if len(data) != bits_end:
            raise ProofDecodeError(f"Expected {bits_end} bytes for a {num_steps}-step proof, got {len(data)}")

        bits = data[hashes_end:bits_end]
        steps = []
        for i in range(num_steps):
            sibling = Hash256(bytes(data[offset + i * HASH_SIZE:offset + (i + 1) * HASH_SIZE]))
            side = 'left' if bits[i // 8] >> (i % 8) & 1 else 'right'
            steps.append(ProofStep(sibling=sibling, side=side))
        if num_steps % 8 and bits[-1] >> (num_steps % 8):
            raise ProofDecodeError("Non-zero padding bits in proof")
        return cls(steps=tuple(steps))

    def hex(self) -> str:
        return self.serialize().hex()

    @classmethod
    def fromhex(cls, s: str) -> InclusionProof:
        try:
            data = bytes.fromhex(s)
        except ValueError as e:
            raise ProofDecodeError(f"Invalid hex for proof: {e}") from e
        return cls.deserialize(data)


def prove(tree: MastTree, leaf_index: int) -> InclusionProof:
    if not isinstance(leaf_index, int) or not 0 <= leaf_index < tree.leaf_count:
        raise IndexOutOfRange(f"Leaf index {leaf_index} out of range for a tree of {tree.leaf_count} leaves")

    steps = []
    index = leaf_index
    for level in tree.levels[:-1]:
        if index % 2 == 0:
            # the last node of an odd level is its own sibling
            sibling_index = index + 1 if index + 1 < len(level) else index
            steps.append(ProofStep(sibling=level[sibling_index], side='right'))
        else:
            steps.append(ProofStep(sibling=level[index - 1], side='left'))
        index //= 2
    return InclusionProof(steps=tuple(steps))


def compute_root(leaf_hash: bytes, proof: InclusionProof) -> Hash256:
    current = Hash256(bytes(leaf_hash))
    for step in proof.steps:
        if step.side == 'left':
            current = hash_branch(step.sibling, current)
        elif step.side == 'right':
            current = hash_branch(current, step.sibling)
        else:
            raise ValueError(f"Invalid proof step side {step.side!r}")
    return current


def _is_hash(value) -> bool:
    return isinstance(value, (bytes, bytearray)) and len(value) == HASH_SIZE


def _is_well_formed(proof: InclusionProof) -> bool:
    if not isinstance(proof.steps, tuple) or len(proof.steps) > MAX_PROOF_DEPTH:
        return False
    return all(
        isinstance(step, ProofStep) and _is_hash(step.sibling) and step.side in SIDES
        for step in proof.steps
    )


def verify(
    leaf_hash: bytes,
    proof: InclusionProof | bytes,
    expected_root: bytes,
    *,
    leaf_count: int | None = None,
) -> bool:
    """
    Check that leaf_hash is committed under expected_root.

    If leaf_count is given, the proof must also be exactly as long as the
    depth of a tree with that many leaves.
    """
    if isinstance(proof, (bytes, bytearray)):
        try:
            proof = InclusionProof.deserialize(bytes(proof))
        except ProofDecodeError as e:
            logger.debug("Rejecting undecodable proof: %s", e)
            return False
    if not isinstance(proof, InclusionProof) or not _is_well_formed(proof):
        return False
    if not _is_hash(leaf_hash) or not _is_hash(expected_root):
        return False
    if leaf_count is not None:
        if not isinstance(leaf_count, int) or leaf_count < 1:
            return False
        if len(proof) != tree_depth(leaf_count):
            return False

    root = compute_root(leaf_hash, proof)
    return hmac.compare_digest(root, bytes(expected_root))
