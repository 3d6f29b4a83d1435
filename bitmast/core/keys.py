from __future__ import annotations
from dataclasses import dataclass

from coincurve import PublicKey as _CurvePoint

from .errors import InvalidPublicKey

CURVE_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

XONLY_KEY_SIZE = 32
COMPRESSED_KEY_SIZE = 33
UNCOMPRESSED_KEY_SIZE = 65

TAG_PUBKEY_EVEN = 0x02
TAG_PUBKEY_ODD = 0x03


@dataclass(frozen=True, order=True)
class PublicKey:
    """
    A secp256k1 public key in 33-byte compressed SEC encoding.

    Keys compare byte-lexicographically on their compressed encoding, which
    is the canonical participant order.
    """
    data: bytes

    def __post_init__(self):
        if not isinstance(self.data, bytes):
            raise InvalidPublicKey(f"Expected bytes, got {type(self.data)}")
        if len(self.data) != COMPRESSED_KEY_SIZE or self.data[0] not in (TAG_PUBKEY_EVEN, TAG_PUBKEY_ODD):
            raise InvalidPublicKey(f"Not a compressed public key: {self.data.hex()}")
        try:
            _CurvePoint(self.data)
        except ValueError as e:
            raise InvalidPublicKey(f"Not a point on the curve: {self.data.hex()}") from e

    def __repr__(self):
        return f"PublicKey({self.data.hex()})"

    def __bytes__(self):
        return self.data

    @classmethod
    def from_bytes(cls, data: bytes) -> PublicKey:
        """Parse a compressed (33), uncompressed (65) or x-only (32, even y) key"""
        data = bytes(data)
        if len(data) == XONLY_KEY_SIZE:
            return cls(bytes([TAG_PUBKEY_EVEN]) + data)
        if len(data) == COMPRESSED_KEY_SIZE:
            return cls(data)
        if len(data) == UNCOMPRESSED_KEY_SIZE:
            try:
                point = _CurvePoint(data)
            except ValueError as e:
                raise InvalidPublicKey(f"Not a point on the curve: {data.hex()}") from e
            return cls.from_point(point)
        raise InvalidPublicKey(f"Invalid public key length {len(data)}")

    @classmethod
    def fromhex(cls, s: str) -> PublicKey:
        try:
            data = bytes.fromhex(s)
        except ValueError as e:
            raise InvalidPublicKey(f"Invalid hex for public key: {s!r}") from e
        return cls.from_bytes(data)

    @classmethod
    def from_point(cls, point: _CurvePoint) -> PublicKey:
        return cls(point.format(compressed=True))

    @classmethod
    def from_secret(cls, secret: bytes) -> PublicKey:
        return cls.from_point(_CurvePoint.from_secret(secret))

    def to_point(self) -> _CurvePoint:
        return _CurvePoint(self.data)

    def hex(self) -> str:
        return self.data.hex()

    @property
    def x_only(self) -> bytes:
        return self.data[1:]

    @property
    def has_even_y(self) -> bool:
        return self.data[0] == TAG_PUBKEY_EVEN

    def with_even_y(self) -> PublicKey:
        if self.has_even_y:
            return self
        return PublicKey(bytes([TAG_PUBKEY_EVEN]) + self.x_only)
