"""
Inverse decoder for the storage encoding (see encoding.py).

Top-level:
- decode_value(buf, typ, offset=0, strict=True) -> (value, new_offset)
- decode(buf, typ, strict=True) -> value             (exact consumption)
- decode_map(buf, key_type, value_type) -> dict      (exact consumption)

Every failure surfaces as contract_sdk.errors.DecodeError carrying the byte
offset where parsing stopped. `strict=True` additionally rejects non-minimal
LEB128 prefixes and bool bytes other than 0x00/0x01.

Decoded nested maps are plain dicts; vecs decode to lists, tuples to tuples,
structs to instances of their class.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple, Union

from ..errors import CodecTypeError, DecodeError
from ..utils import uvarint_decode
from .types import (BoolType, BytesType, IntType, MapType, OptionType,
                    StrType, StructType, TupleType, TypeSpec, UIntType,
                    VecType, as_type)

__all__ = [
    "decode_bool",
    "decode_uint",
    "decode_int",
    "decode_bytes",
    "decode_str",
    "decode_value",
    "decode_map",
    "decode",
]


# ──────────────────────────────────────────────────────────────────────────────
# Low-level helpers
# ──────────────────────────────────────────────────────────────────────────────


def _read_exact(buf: bytes, offset: int, n: int) -> Tuple[bytes, int]:
    j = offset + n
    if j > len(buf):
        raise DecodeError(
            "truncated payload",
            context={"offset": offset, "need": n, "have": len(buf) - offset},
        )
    return bytes(buf[offset:j]), j


def _read_count(buf: bytes, offset: int, strict: bool, max_entries: Optional[int]) -> Tuple[int, int]:
    try:
        n, i = uvarint_decode(buf, offset, strict=strict)
    except ValueError as e:
        raise DecodeError(str(e), context={"offset": offset}) from e
    if max_entries is not None and n > max_entries:
        raise DecodeError(
            "declared count exceeds limit",
            context={"offset": offset, "count": n, "max_entries": max_entries},
        )
    return n, i


# ──────────────────────────────────────────────────────────────────────────────
# Primitive decoders
# ──────────────────────────────────────────────────────────────────────────────


def decode_bool(buf: bytes, offset: int = 0, *, strict: bool = True) -> Tuple[bool, int]:
    b, j = _read_exact(buf, offset, 1)
    if b[0] == 0x00:
        return False, j
    if b[0] == 0x01:
        return True, j
    if strict:
        raise DecodeError("invalid boolean value", context={"offset": offset})
    return True, j


def decode_uint(buf: bytes, offset: int = 0, *, bits: int = 256) -> Tuple[int, int]:
    raw, j = _read_exact(buf, offset, bits // 8)
    return int.from_bytes(raw, "big", signed=False), j


def decode_int(buf: bytes, offset: int = 0, *, bits: int = 256) -> Tuple[int, int]:
    raw, j = _read_exact(buf, offset, bits // 8)
    return int.from_bytes(raw, "big", signed=True), j


def decode_bytes(
    buf: bytes,
    offset: int = 0,
    *,
    fixed_len: Optional[int] = None,
    max_len: Optional[int] = None,
    strict: bool = True,
) -> Tuple[bytes, int]:
    if fixed_len is not None:
        return _read_exact(buf, offset, fixed_len)
    length, i = _read_count(buf, offset, strict, None)
    if max_len is not None and length > max_len:
        raise DecodeError("bytes length exceeds max_len", context={"offset": offset, "length": length})
    return _read_exact(buf, i, length)


def decode_str(
    buf: bytes,
    offset: int = 0,
    *,
    max_len: Optional[int] = None,
    strict: bool = True,
) -> Tuple[str, int]:
    raw, j = decode_bytes(buf, offset, max_len=max_len, strict=strict)
    try:
        return raw.decode("utf-8"), j
    except UnicodeDecodeError as e:
        raise DecodeError("str is not valid UTF-8", context={"offset": offset}) from e


# ──────────────────────────────────────────────────────────────────────────────
# High-level dispatch
# ──────────────────────────────────────────────────────────────────────────────


def _decode_at(buf: bytes, typ: TypeSpec, offset: int, strict: bool, max_entries: Optional[int]) -> Tuple[Any, int]:
    if isinstance(typ, BoolType):
        return decode_bool(buf, offset, strict=strict)

    if isinstance(typ, UIntType):
        return decode_uint(buf, offset, bits=typ.bits)

    if isinstance(typ, IntType):
        if typ.signed:
            return decode_int(buf, offset, bits=typ.bits)
        return decode_uint(buf, offset, bits=typ.bits)

    if isinstance(typ, BytesType):
        return decode_bytes(
            buf,
            offset,
            fixed_len=typ.fixed_len,
            max_len=(typ.max_len if typ.fixed_len is None else None),
            strict=strict,
        )

    if isinstance(typ, StrType):
        return decode_str(buf, offset, max_len=typ.max_len, strict=strict)

    if isinstance(typ, OptionType):
        tag, i = _read_exact(buf, offset, 1)
        if tag == b"\x00":
            return None, i
        if tag == b"\x01":
            return _decode_at(buf, typ.inner, i, strict, max_entries)
        raise DecodeError("invalid option tag", context={"offset": offset, "tag": tag[0]})

    if isinstance(typ, VecType):
        count, i = _read_count(buf, offset, strict, max_entries)
        items = []
        for _ in range(count):
            v, i = _decode_at(buf, typ.item, i, strict, max_entries)
            items.append(v)
        return items, i

    if isinstance(typ, TupleType):
        values = []
        i = offset
        for t in typ.items:
            v, i = _decode_at(buf, t, i, strict, max_entries)
            values.append(v)
        return tuple(values), i

    if isinstance(typ, StructType):
        kwargs: Dict[str, Any] = {}
        i = offset
        for fname, ftype in typ.fields:
            kwargs[fname], i = _decode_at(buf, ftype, i, strict, max_entries)
        try:
            return typ.cls(**kwargs), i
        except (TypeError, ValueError) as e:
            raise DecodeError(
                f"cannot construct {typ.cls.__name__}: {e}", context={"offset": offset}
            ) from e

    if isinstance(typ, MapType):
        return _decode_pairs(buf, typ.key, typ.value, offset, strict, max_entries)

    raise CodecTypeError(f"unsupported codec type: {typ!r}")


def _decode_pairs(
    buf: bytes,
    key_type: TypeSpec,
    value_type: TypeSpec,
    offset: int,
    strict: bool,
    max_entries: Optional[int],
) -> Tuple[Dict[Any, Any], int]:
    count, i = _read_count(buf, offset, strict, max_entries)
    out: Dict[Any, Any] = {}
    for _ in range(count):
        k, i = _decode_at(buf, key_type, i, strict, max_entries)
        v, i = _decode_at(buf, value_type, i, strict, max_entries)
        # last write wins for duplicate keys
        out[k] = v
    return out, i


def _require_consumed(buf: bytes, end: int) -> None:
    if end != len(buf):
        raise DecodeError(
            "trailing bytes after record",
            context={"offset": end, "trailing": len(buf) - end},
        )


def decode_value(
    buf: bytes,
    typ: Union[str, TypeSpec],
    offset: int = 0,
    *,
    strict: bool = True,
    max_entries: Optional[int] = None,
) -> Tuple[Any, int]:
    """
    Decode a single value of the given type from buf[offset:].
    Returns (value, new_offset).
    """
    return _decode_at(buf, as_type(typ), offset, strict, max_entries)


def decode(
    buf: bytes,
    typ: Union[str, TypeSpec],
    *,
    strict: bool = True,
    max_entries: Optional[int] = None,
) -> Any:
    """Decode a value that must span all of `buf`."""
    value, end = decode_value(buf, typ, 0, strict=strict, max_entries=max_entries)
    _require_consumed(buf, end)
    return value


def decode_map(
    buf: bytes,
    key_type: Union[str, TypeSpec],
    value_type: Union[str, TypeSpec],
    *,
    strict: bool = True,
    max_entries: Optional[int] = None,
) -> Dict[Any, Any]:
    """
    Decode a persisted record:
        LEB128(count) || (K || V)*
    The record must span all of `buf`.
    """
    out, end = _decode_pairs(buf, as_type(key_type), as_type(value_type), 0, strict, max_entries)
    _require_consumed(buf, end)
    return out
