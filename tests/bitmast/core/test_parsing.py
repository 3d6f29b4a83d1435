import pytest

from bitmast.core.parsing import parse_hash256, parse_hex_bytes, parse_hex_str, parse_pubkey_list, serialize_hex
from ...constants import UNCOMPRESSED_PUBKEY_A, PUBKEY_A_COMPRESSED


def test_parse_hex_str():
    assert parse_hex_str("0xABcd") == "abcd"
    assert parse_hex_str("  51201c5b  ") == "51201c5b"


@pytest.mark.parametrize("raw,exc", [
    (b"abcd", TypeError),
    (1234, TypeError),
    ("abc", ValueError),
    ("xyzw", ValueError),
])
def test_parse_hex_str_rejects(raw, exc):
    with pytest.raises(exc):
        parse_hex_str(raw)


def test_parse_hex_bytes():
    assert parse_hex_bytes("51201c5b") == bytes.fromhex("51201c5b")


def test_parse_hash256():
    assert parse_hash256("00" * 32) == bytes(32)
    with pytest.raises(ValueError):
        parse_hash256("00" * 31)


def test_parse_pubkey_list():
    keys = parse_pubkey_list(f"{UNCOMPRESSED_PUBKEY_A}, {PUBKEY_A_COMPRESSED},")
    assert [key.hex() for key in keys] == [PUBKEY_A_COMPRESSED, PUBKEY_A_COMPRESSED]
    assert parse_pubkey_list([PUBKEY_A_COMPRESSED])[0].hex() == PUBKEY_A_COMPRESSED


def test_serialize_hex():
    assert serialize_hex(b'\x01\xab') == "01ab"
    assert serialize_hex("01AB") == "01ab"
