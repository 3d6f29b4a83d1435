"""Bitcoin-style compact size integers, used for length prefixes"""


def ser_compact_size(length: int) -> bytes:
    if length < 0:
        raise ValueError(f"Length must not be negative, got {length}")
    if length < 0xfd:
        return bytes([length])
    if length <= 0xffff:
        return b'\xfd' + length.to_bytes(2, 'little')
    if length <= 0xffffffff:
        return b'\xfe' + length.to_bytes(4, 'little')
    return b'\xff' + length.to_bytes(8, 'little')


def deser_compact_size(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Read a compact size at offset, returning (value, new offset). Non-canonical encodings are rejected."""
    if offset >= len(data):
        raise ValueError("Unexpected end of data while reading compact size")
    prefix = data[offset]
    if prefix < 0xfd:
        return prefix, offset + 1
    width = {0xfd: 2, 0xfe: 4, 0xff: 8}[prefix]
    end = offset + 1 + width
    if end > len(data):
        raise ValueError("Unexpected end of data while reading compact size")
    value = int.from_bytes(data[offset + 1:end], 'little')
    if len(ser_compact_size(value)) != 1 + width:
        raise ValueError(f"Non-canonical compact size encoding of {value}")
    return value, end
