import hashlib

import pytest

from bitmast.core.hashing import (
    TAG_BRANCH,
    TAG_LEAF,
    hash_branch,
    hash_leaf,
    hash_tweak,
    key_path_script,
    tagged_hash,
)


def _reference_tagged_hash(tag: bytes, data: bytes) -> bytes:
    tag_hash = hashlib.sha256(tag).digest()
    return hashlib.sha256(tag_hash + tag_hash + data).digest()


def test_tagged_hash_matches_bip340_construction():
    assert tagged_hash(b'TapBranch', b'\x01' * 64) == _reference_tagged_hash(b'TapBranch', b'\x01' * 64)
    assert len(tagged_hash(b'anything', b'')) == 32


def test_key_path_script():
    key = bytes(range(32))
    assert key_path_script(key) == b'\x20' + key + b'\xac'


def test_hash_leaf_commits_to_key_path_script():
    key = bytes(range(32))
    expected = _reference_tagged_hash(TAG_LEAF, b'\xc0' + b'\x22' + b'\x20' + key + b'\xac')
    assert hash_leaf(key) == expected


def test_hash_leaf_requires_xonly_key():
    with pytest.raises(ValueError):
        hash_leaf(b'\x02' + bytes(32))
    with pytest.raises(ValueError):
        hash_leaf(b'')


def test_leaf_and_branch_are_domain_separated():
    data = bytes(32)
    assert hash_leaf(data) != hash_branch(data, data)
    assert hash_branch(data, data) == _reference_tagged_hash(TAG_BRANCH, data + data)


def test_hash_branch_is_order_sensitive():
    a = b'\xaa' * 32
    b = b'\xbb' * 32
    assert hash_branch(a, b) != hash_branch(b, a)


def test_hash_branch_rejects_wrong_length():
    with pytest.raises(ValueError):
        hash_branch(b'\x00' * 31, b'\x00' * 32)


def test_hash_tweak():
    internal = b'\x11' * 32
    root = b'\x22' * 32
    assert hash_tweak(internal, root) == _reference_tagged_hash(b'TapTweak', internal + root)
    with pytest.raises(ValueError):
        hash_tweak(internal, b'\x22' * 31)
