"""
Canonical storage encoding for contract values.

Design goals:
- Simple, deterministic per call, and easy to port.
- Fixed-width big-endian integers; LEB128 counts/lengths for variable data.
- No implicit padding, alignment or type tags.

Primitives
----------
- bool:               1 byte: 0x00 (false) or 0x01 (true)
- uN:                 N/8 bytes, big-endian unsigned
- iN:                 N/8 bytes, big-endian two's complement
- bytes (dynamic):    LEB128(len) || raw bytes
- bytesN (fixed):     raw bytes (exactly N)
- str:                LEB128(len) || UTF-8 bytes

Composites
----------
- vec<T>:             LEB128(count) || item1 || … || itemN
- option<T>:          0x00  |  0x01 || T
- tuple<A,B,…>:       A || B || …
- struct:             field1 || field2 || …   (declared order)
- map<K,V>:           LEB128(count) || (K || V)*   (the persisted record layout)

Maps are written in the iteration order of the mapping handed in. Two
encodings of equal maps may therefore differ byte-wise; only the decoded
content is guaranteed to match.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Union

from ..errors import CodecTypeError, ValidationError
from ..utils import be_uint, uvarint_encode
from .types import (BoolType, BytesType, IntType, MapType, OptionType,
                    StrType, StructType, TupleType, TypeSpec, UIntType,
                    VecType, as_type, coerce_bool, coerce_bytes, coerce_int,
                    coerce_str, coerce_uint)

__all__ = [
    "encode_bool",
    "encode_uint",
    "encode_int",
    "encode_bytes",
    "encode_str",
    "encode_value",
    "encode_map",
    "encode",
]


# ──────────────────────────────────────────────────────────────────────────────
# Primitive encoders
# ──────────────────────────────────────────────────────────────────────────────


def encode_bool(value: Any) -> bytes:
    return b"\x01" if coerce_bool(value) else b"\x00"


def encode_uint(value: Any, *, bits: int = 256) -> bytes:
    return be_uint(coerce_uint(value, bits=bits), bits // 8)


def encode_int(value: Any, *, bits: int = 256) -> bytes:
    v = coerce_int(value, bits=bits, signed=True)
    return v.to_bytes(bits // 8, "big", signed=True)


def encode_bytes(value: Any, *, fixed_len: Optional[int] = None, max_len: Optional[int] = None) -> bytes:
    """
    For fixed_len, the output is the raw bytes with no length prefix.
    For dynamic bytes, the output is LEB128(len) || bytes.
    """
    b = coerce_bytes(value, fixed_len=fixed_len, max_len=max_len)
    if fixed_len is not None:
        return b
    return uvarint_encode(len(b)) + b


def encode_str(value: Any, *, max_len: Optional[int] = None) -> bytes:
    b = coerce_str(value, max_len=max_len).encode("utf-8")
    return uvarint_encode(len(b)) + b


# ──────────────────────────────────────────────────────────────────────────────
# High-level dispatch
# ──────────────────────────────────────────────────────────────────────────────


def _check_count(n: int, max_entries: Optional[int], what: str) -> None:
    if max_entries is not None and n > max_entries:
        raise ValidationError(
            f"{what} has too many entries (max {max_entries}, got {n})",
            context={"count": n, "max_entries": max_entries},
        )


def _encode_into(out: List[bytes], value: Any, typ: TypeSpec, max_entries: Optional[int]) -> None:
    if isinstance(typ, BoolType):
        out.append(encode_bool(value))
    elif isinstance(typ, UIntType):
        out.append(encode_uint(value, bits=typ.bits))
    elif isinstance(typ, IntType):
        if typ.signed:
            out.append(encode_int(value, bits=typ.bits))
        else:
            out.append(encode_uint(value, bits=typ.bits))
    elif isinstance(typ, BytesType):
        out.append(
            encode_bytes(
                value,
                fixed_len=typ.fixed_len,
                max_len=typ.max_len if typ.fixed_len is None else None,
            )
        )
    elif isinstance(typ, StrType):
        out.append(encode_str(value, max_len=typ.max_len))
    elif isinstance(typ, OptionType):
        if value is None:
            out.append(b"\x00")
        else:
            out.append(b"\x01")
            _encode_into(out, value, typ.inner, max_entries)
    elif isinstance(typ, VecType):
        if not isinstance(value, (list, tuple)):
            typ.validate(value)
            value = list(value)
        _check_count(len(value), max_entries, typ.name)
        out.append(uvarint_encode(len(value)))
        for item in value:
            _encode_into(out, item, typ.item, max_entries)
    elif isinstance(typ, TupleType):
        if not isinstance(value, (tuple, list)) or len(value) != len(typ.items):
            typ.validate(value)
        for t, v in zip(typ.items, value):
            _encode_into(out, v, t, max_entries)
    elif isinstance(typ, StructType):
        if not isinstance(value, typ.cls):
            typ.validate(value)
        for fname, ftype in typ.fields:
            if not hasattr(value, fname):
                raise ValidationError(f"{typ.name} value has no field {fname!r}")
            _encode_into(out, getattr(value, fname), ftype, max_entries)
    elif isinstance(typ, MapType):
        _encode_pairs(out, value, typ.key, typ.value, max_entries)
    else:
        raise CodecTypeError(f"unsupported codec type: {typ!r}")


def _encode_pairs(
    out: List[bytes],
    mapping: Any,
    key_type: TypeSpec,
    value_type: TypeSpec,
    max_entries: Optional[int],
) -> None:
    if not isinstance(mapping, Mapping):
        raise ValidationError(f"expected a mapping, got {type(mapping).__name__}")
    items = list(mapping.items())
    _check_count(len(items), max_entries, "map")
    out.append(uvarint_encode(len(items)))
    for k, v in items:
        _encode_into(out, k, key_type, max_entries)
        _encode_into(out, v, value_type, max_entries)


def encode_value(
    value: Any,
    typ: Union[str, TypeSpec],
    *,
    max_entries: Optional[int] = None,
) -> bytes:
    """
    Encode a single value according to the given type (string or object).

    `max_entries` bounds every vec/map count encountered, nested ones included.
    """
    out: List[bytes] = []
    _encode_into(out, value, as_type(typ), max_entries)
    return b"".join(out)


def encode_map(
    mapping: Mapping[Any, Any],
    key_type: Union[str, TypeSpec],
    value_type: Union[str, TypeSpec],
    *,
    max_entries: Optional[int] = None,
) -> bytes:
    """
    Encode a key-value collection as a persisted record:
        LEB128(count) || (encode(k) || encode(v))*
    """
    out: List[bytes] = []
    _encode_pairs(out, mapping, as_type(key_type), as_type(value_type), max_entries)
    return b"".join(out)


# Short alias mirroring decoding.decode
encode = encode_value
