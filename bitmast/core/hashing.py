"""
Domain-separated hashing for MAST leaves, branches and the output tweak.

All hashes are BIP-340 tagged SHA-256 hashes. Leaves and branches use
different tags, so a leaf hash can never be passed off as a branch hash.
"""
import functools
import hashlib

from .serialization import ser_compact_size
from .types import Hash256

HASH_SIZE = 32
XONLY_KEY_SIZE = 32

TAG_LEAF = b'TapLeaf'
TAG_BRANCH = b'TapBranch'
TAG_TWEAK = b'TapTweak'

# Leaf version of key-path tapscripts (<key> OP_CHECKSIG)
DEFAULT_TAPSCRIPT_VER = 0xc0

OP_CHECKSIG = 0xac


@functools.lru_cache(maxsize=None)
def _tag_prefix(tag: bytes) -> bytes:
    tag_hash = hashlib.sha256(tag).digest()
    return tag_hash + tag_hash


def tagged_hash(tag: bytes, data: bytes) -> Hash256:
    return Hash256(hashlib.sha256(_tag_prefix(tag) + data).digest())


def key_path_script(key_bytes: bytes) -> bytes:
    """The single-key tapscript a leaf commits to: <x-only key> OP_CHECKSIG"""
    return bytes([len(key_bytes)]) + key_bytes + bytes([OP_CHECKSIG])


def hash_leaf(key_bytes: bytes) -> Hash256:
    """
    Leaf hash of an aggregate key.

    tagged_hash("TapLeaf", bytes([leaf_version]) + ser_size(script))
    where script is the key-path script of the 32-byte x-only key.
    """
    if len(key_bytes) != XONLY_KEY_SIZE:
        raise ValueError(f"Expected a {XONLY_KEY_SIZE}-byte x-only key, got {len(key_bytes)} bytes")
    script = key_path_script(key_bytes)
    version = DEFAULT_TAPSCRIPT_VER & 0xfe
    return tagged_hash(TAG_LEAF, bytes([version]) + ser_compact_size(len(script)) + script)


def hash_branch(left: bytes, right: bytes) -> Hash256:
    """
    Parent hash of two child nodes, in the given order.

    Children are not sorted: the side of each sibling is carried by the proof.
    """
    if len(left) != HASH_SIZE or len(right) != HASH_SIZE:
        raise ValueError(f"Branch children must be {HASH_SIZE}-byte hashes")
    return tagged_hash(TAG_BRANCH, left + right)


def hash_tweak(internal_key_x: bytes, root: bytes) -> Hash256:
    if len(internal_key_x) != XONLY_KEY_SIZE:
        raise ValueError(f"Expected a {XONLY_KEY_SIZE}-byte x-only internal key, got {len(internal_key_x)} bytes")
    if len(root) != HASH_SIZE:
        raise ValueError(f"Expected a {HASH_SIZE}-byte root, got {len(root)} bytes")
    return tagged_hash(TAG_TWEAK, internal_key_x + root)
