"""
contract_sdk.utils — byte helpers shared by the key deriver and the codec.

Integers are always serialized big-endian. The fixed-width helpers below are
the only integer-to-bytes conversions in the package; mixing byte orders
between encode and decode corrupts data silently.

Length prefixes and counts use unsigned LEB128 ("uvarint").
"""

from __future__ import annotations

from typing import Tuple


def be_uint(n: int, width: int) -> bytes:
    """Big-endian unsigned encoding of `n` in exactly `width` bytes."""
    if n < 0 or n >= (1 << (8 * width)):
        raise ValueError(f"value out of range for {width}-byte unsigned integer")
    return n.to_bytes(width, "big", signed=False)


def from_be_uint(b: bytes) -> int:
    return int.from_bytes(b, "big", signed=False)


def u32_to_bytes(x: int) -> bytes:
    """Convert a u32 into 4 big-endian bytes."""
    return be_uint(x, 4)


def u64_to_bytes(x: int) -> bytes:
    """Convert a u64 into 8 big-endian bytes."""
    return be_uint(x, 8)


# ──────────────────────────────────────────────────────────────────────────────
# Varint (unsigned LEB128) for length prefixes and counts
# ──────────────────────────────────────────────────────────────────────────────


def uvarint_encode(n: int) -> bytes:
    """
    Unsigned LEB128 encoding.

    - n must be >= 0
    - returns minimal-length representation
    """
    if not isinstance(n, int) or isinstance(n, bool):
        raise TypeError("uvarint value must be int")
    if n < 0:
        raise ValueError("uvarint cannot encode negative values")
    out = bytearray()
    while True:
        b = n & 0x7F
        n >>= 7
        if n:
            out.append(b | 0x80)
        else:
            out.append(b)
            break
    return bytes(out)


def uvarint_decode(buf: bytes, offset: int = 0, *, strict: bool = True) -> Tuple[int, int]:
    """
    Decode unsigned LEB128 at buf[offset:].
    Returns (value, new_offset).
    Raises ValueError on truncated or (strict) non-minimal input.
    """
    n = 0
    shift = 0
    i = offset
    while i < len(buf):
        b = buf[i]
        i += 1
        n |= (b & 0x7F) << shift
        if (b & 0x80) == 0:
            if strict and b == 0 and i - offset > 1:
                raise ValueError("non-minimal uvarint")
            return n, i
        shift += 7
        if shift > 63:
            raise ValueError("uvarint too large or malformed")
    raise ValueError("truncated uvarint")


__all__ = [
    "be_uint",
    "from_be_uint",
    "u32_to_bytes",
    "u64_to_bytes",
    "uvarint_encode",
    "uvarint_decode",
]
