"""
Hex parsing utilities for CLI arguments and stored JSON
"""
from typing import Iterable

from .hashing import HASH_SIZE
from .keys import PublicKey
from .types import Hash256

HEX_DIGITS = frozenset("0123456789abcdef")


def parse_hex_str(s: str) -> str:
    if not isinstance(s, str):
        raise TypeError(f"Expected string, got {type(s)}")
    ret = s.strip().lower().removeprefix("0x")
    if len(ret) % 2:
        raise ValueError(f"Odd-length hex string {s!r}")
    if not all(c in HEX_DIGITS for c in ret):
        raise ValueError(f"Invalid hex string {s!r}")
    return ret


def parse_hex_bytes(s: str) -> bytes:
    return bytes.fromhex(parse_hex_str(s))


def parse_hash256(s: str) -> Hash256:
    ret = parse_hex_bytes(s)
    if len(ret) != HASH_SIZE:
        raise ValueError(f"Expected a {HASH_SIZE}-byte hash, got {len(ret)} bytes: {s!r}")
    return Hash256(ret)


def parse_pubkey_list(raw: str | Iterable[str]) -> list[PublicKey]:
    """Parse public keys given either as a list of hex strings or a single comma-separated string"""
    if isinstance(raw, str):
        raw = [part for part in raw.split(",") if part.strip()]
    return [PublicKey.from_bytes(parse_hex_bytes(s)) for s in raw]


def serialize_hex(b: bytes | str) -> str:
    if isinstance(b, str):
        return parse_hex_str(b)
    assert isinstance(b, (bytes, bytearray))
    return bytes(b).hex()
