import re
import struct

from .errors import MalformedEncoding

_HEX_RE = re.compile(r"[0-9A-Fa-f]*")


def hex_decode(s: str) -> bytes:
    # Strict: no whitespace, no 0x prefix, even length only.
    if len(s) % 2 != 0:
        raise MalformedEncoding(f"hex string has odd length {len(s)}")
    if not _HEX_RE.fullmatch(s):
        raise MalformedEncoding("invalid hex alphabet")
    return bytes.fromhex(s)


def hex_encode(b: bytes) -> str:
    return b.hex()


def bit_length(b: bytes) -> int:
    return len(b) * 8


def uint32le(n: int) -> bytes:
    if not (0 <= n <= 0xFFFFFFFF):
        raise MalformedEncoding(f"u32 out of range: {n}")
    return struct.pack("<I", n)


def read_uint32le(b: bytes) -> int:
    if len(b) != 4:
        raise MalformedEncoding(f"expected 4-byte little-endian u32, got {len(b)} bytes")
    return struct.unpack("<I", b)[0]
