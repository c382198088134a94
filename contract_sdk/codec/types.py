"""
Codec type definitions and validation for contract storage.

Every value persisted through the SDK is described by a *type spec*: either a
type object from this module or a textual spec parsed by `parse_type`:

  - "bool"
  - "uN" / "uintN"        unsigned, N ∈ {8, 16, …, 256}; "uint" == "u256"
  - "iN" / "intN"         signed two's complement; "int" == "i256"
  - "bytes" / "bytesN"    dynamic or fixed-length (1 ≤ N ≤ 65535) byte strings
  - "str" / "string"      UTF-8 text
  - "vec<T>" / "list<T>"  homogeneous sequence
  - "option<T>"           None or a T
  - "tuple<A,B,…>"        fixed heterogeneous sequence
  - "map<K,V>"            nested key-value collection

Structs (dataclasses) have no textual form; build them with `struct(cls, ...)`
or annotate dataclass fields with `codec_field("u32")`.

Utilities here *only* coerce/validate Python values; the byte layout lives in
contract_sdk.codec.encoding / decoding.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from ..errors import CodecTypeError, ValidationError

__all__ = [
    "BoolType",
    "UIntType",
    "IntType",
    "BytesType",
    "StrType",
    "VecType",
    "OptionType",
    "TupleType",
    "MapType",
    "StructType",
    "TypeSpec",
    "as_type",
    "parse_type",
    "struct",
    "codec_field",
    "coerce_bool",
    "coerce_int",
    "coerce_uint",
    "coerce_bytes",
    "coerce_str",
]


# ──────────────────────────────────────────────────────────────────────────────
# Scalar coercion helpers
# ──────────────────────────────────────────────────────────────────────────────


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if type(value) is int and value in (0, 1):
        return bool(value)
    raise ValidationError(f"bool must be True/False or 0/1, got {value!r}")


def coerce_int(value: Any, *, bits: int = 256, signed: bool = True) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"int must be a Python int, got {type(value).__name__}")
    min_v = -(1 << (bits - 1)) if signed else 0
    max_v = (1 << (bits - 1)) - 1 if signed else (1 << bits) - 1
    if value < min_v or value > max_v:
        kind = "i" if signed else "u"
        raise ValidationError(f"{kind}{bits} out of range [{min_v}, {max_v}]")
    return int(value)


def coerce_uint(value: Any, *, bits: int = 256) -> int:
    return coerce_int(value, bits=bits, signed=False)


def coerce_bytes(
    value: Any,
    *,
    fixed_len: Optional[int] = None,
    max_len: Optional[int] = None,
) -> bytes:
    """Accept bytes-like values; enforce optional fixed or max length (in bytes)."""
    if isinstance(value, bytes):
        b = value
    elif isinstance(value, (bytearray, memoryview)):
        b = bytes(value)
    else:
        raise ValidationError(f"bytes must be bytes or bytearray, got {type(value).__name__}")
    if fixed_len is not None and len(b) != fixed_len:
        raise ValidationError(f"bytes length must be exactly {fixed_len}, got {len(b)}")
    if max_len is not None and len(b) > max_len:
        raise ValidationError(f"bytes too long (max {max_len}, got {len(b)})")
    return b


def coerce_str(value: Any, *, max_len: Optional[int] = None) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"str must be a Python str, got {type(value).__name__}")
    if max_len is not None and len(value.encode("utf-8")) > max_len:
        raise ValidationError(f"str too long (max {max_len} UTF-8 bytes)")
    return value


def _assert_bits(bits: int) -> None:
    if not isinstance(bits, int) or bits % 8 != 0 or not 8 <= bits <= 256:
        raise CodecTypeError("bit width must be a multiple of 8 in 8..256")


# ──────────────────────────────────────────────────────────────────────────────
# Scalar type specs
# ──────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BoolType:
    hashable = True

    def validate(self, value: Any) -> bool:
        return coerce_bool(value)

    @property
    def name(self) -> str:
        return "bool"


@dataclass(frozen=True)
class UIntType:
    bits: int = 256
    hashable = True

    def __post_init__(self) -> None:
        _assert_bits(self.bits)

    @property
    def width(self) -> int:
        return self.bits // 8

    def validate(self, value: Any) -> int:
        return coerce_uint(value, bits=self.bits)

    @property
    def name(self) -> str:
        return f"u{self.bits}"


@dataclass(frozen=True)
class IntType:
    bits: int = 256
    signed: bool = True
    hashable = True

    def __post_init__(self) -> None:
        _assert_bits(self.bits)

    @property
    def width(self) -> int:
        return self.bits // 8

    def validate(self, value: Any) -> int:
        return coerce_int(value, bits=self.bits, signed=self.signed)

    @property
    def name(self) -> str:
        return f"{'i' if self.signed else 'u'}{self.bits}"


@dataclass(frozen=True)
class BytesType:
    fixed_len: Optional[int] = None
    max_len: Optional[int] = None  # enforced when fixed_len is None
    hashable = True

    def __post_init__(self) -> None:
        if self.fixed_len is not None and not 1 <= self.fixed_len <= 65535:
            raise CodecTypeError("fixed_len must be in 1..65535")
        if self.fixed_len is None and self.max_len is not None and self.max_len <= 0:
            raise CodecTypeError("max_len must be > 0")

    def validate(self, value: Any) -> bytes:
        return coerce_bytes(value, fixed_len=self.fixed_len, max_len=self.max_len)

    @property
    def name(self) -> str:
        if self.fixed_len is not None:
            return f"bytes{self.fixed_len}"
        return "bytes"


@dataclass(frozen=True)
class StrType:
    max_len: Optional[int] = None
    hashable = True

    def validate(self, value: Any) -> str:
        return coerce_str(value, max_len=self.max_len)

    @property
    def name(self) -> str:
        return "str"


# ──────────────────────────────────────────────────────────────────────────────
# Composite type specs
# ──────────────────────────────────────────────────────────────────────────────
#
# Composite specs accept either type objects or textual specs for their
# children and normalize them to type objects on construction. Their
# validate() checks recursively and returns the value unchanged so callers
# keep references to the objects they inserted.


@dataclass(frozen=True)
class VecType:
    item: "TypeSpec"
    hashable = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "item", as_type(self.item))

    def validate(self, value: Any) -> Any:
        if isinstance(value, (str, bytes, bytearray, Mapping)) or not isinstance(value, Sequence):
            raise ValidationError(f"{self.name} must be a list or tuple, got {type(value).__name__}")
        for v in value:
            self.item.validate(v)
        return value

    @property
    def name(self) -> str:
        return f"vec<{self.item.name}>"


@dataclass(frozen=True)
class OptionType:
    inner: "TypeSpec"

    def __post_init__(self) -> None:
        object.__setattr__(self, "inner", as_type(self.inner))

    @property
    def hashable(self) -> bool:
        return self.inner.hashable

    def validate(self, value: Any) -> Any:
        if value is None:
            return None
        return self.inner.validate(value)

    @property
    def name(self) -> str:
        return f"option<{self.inner.name}>"


@dataclass(frozen=True)
class TupleType:
    items: Tuple["TypeSpec", ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(as_type(t) for t in self.items))

    @property
    def hashable(self) -> bool:
        return all(t.hashable for t in self.items)

    def validate(self, value: Any) -> Any:
        if not isinstance(value, (tuple, list)):
            raise ValidationError(f"{self.name} must be a tuple, got {type(value).__name__}")
        if len(value) != len(self.items):
            raise ValidationError(f"{self.name} expects {len(self.items)} items, got {len(value)}")
        for t, v in zip(self.items, value):
            t.validate(v)
        return value

    @property
    def name(self) -> str:
        return "tuple<" + ",".join(t.name for t in self.items) + ">"


@dataclass(frozen=True)
class MapType:
    key: "TypeSpec"
    value: "TypeSpec"
    hashable = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "key", as_type(self.key))
        object.__setattr__(self, "value", as_type(self.value))
        if not self.key.hashable:
            raise CodecTypeError(f"map key type {self.key.name} is not hashable")

    def validate(self, value: Any) -> Any:
        if not isinstance(value, Mapping):
            raise ValidationError(f"{self.name} must be a mapping, got {type(value).__name__}")
        for k, v in value.items():
            self.key.validate(k)
            self.value.validate(v)
        return value

    @property
    def name(self) -> str:
        return f"map<{self.key.name},{self.value.name}>"


@dataclass(frozen=True)
class StructType:
    """
    A dataclass (or any class constructible from keyword arguments) encoded as
    the concatenation of its fields in declared order.
    """

    cls: type
    fields: Tuple[Tuple[str, "TypeSpec"], ...]

    def __post_init__(self) -> None:
        if not self.fields:
            raise CodecTypeError(f"struct {self.cls.__name__} declares no fields")
        normalized = tuple((str(n), as_type(t)) for n, t in self.fields)
        names = [n for n, _ in normalized]
        if len(set(names)) != len(names):
            raise CodecTypeError(f"struct {self.cls.__name__} has duplicate field names")
        object.__setattr__(self, "fields", normalized)

    @property
    def hashable(self) -> bool:
        return getattr(self.cls, "__hash__", None) is not None and all(t.hashable for _, t in self.fields)

    def validate(self, value: Any) -> Any:
        if not isinstance(value, self.cls):
            raise ValidationError(f"expected {self.cls.__name__}, got {type(value).__name__}")
        for fname, ftype in self.fields:
            if not hasattr(value, fname):
                raise ValidationError(f"{self.cls.__name__} value has no field {fname!r}")
            try:
                ftype.validate(getattr(value, fname))
            except ValidationError as e:
                raise ValidationError(f"{self.cls.__name__}.{fname}: {e.message}") from e
        return value

    @property
    def name(self) -> str:
        return self.cls.__name__


TypeSpec = Union[
    BoolType, UIntType, IntType, BytesType, StrType, VecType, OptionType, TupleType, MapType, StructType
]

_TYPE_CLASSES = (BoolType, UIntType, IntType, BytesType, StrType, VecType, OptionType, TupleType, MapType, StructType)


def codec_field(spec: Union[str, TypeSpec], **kwargs: Any) -> Any:
    """`dataclasses.field` carrying the codec type spec of the field."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata["codec"] = spec
    return dataclasses.field(metadata=metadata, **kwargs)


def struct(cls: type, **field_specs: Union[str, TypeSpec]) -> StructType:
    """
    Build a StructType for `cls`.

    With keyword specs, fields are encoded in the order given. Without them,
    `cls` must be a dataclass whose fields carry `codec_field(...)` specs.
    """
    if field_specs:
        return StructType(cls, tuple(field_specs.items()))
    if not dataclasses.is_dataclass(cls):
        raise CodecTypeError(f"{cls.__name__} is not a dataclass; pass field specs explicitly")
    pairs: List[Tuple[str, Union[str, TypeSpec]]] = []
    for f in dataclasses.fields(cls):
        spec = f.metadata.get("codec")
        if spec is None:
            raise CodecTypeError(f"{cls.__name__}.{f.name} has no codec spec")
        pairs.append((f.name, spec))
    return StructType(cls, tuple(pairs))


def as_type(spec: Union[str, TypeSpec]) -> TypeSpec:
    """Normalize a textual spec or type object to a type object."""
    if isinstance(spec, _TYPE_CLASSES):
        return spec
    if isinstance(spec, str):
        return parse_type(spec)
    raise CodecTypeError(f"unsupported type spec: {spec!r}")


# ──────────────────────────────────────────────────────────────────────────────
# Parser for textual type specs (e.g., "u32", "bytes32", "map<u32,vec<u8>>")
# ──────────────────────────────────────────────────────────────────────────────


def _split_args(s: str, spec: str) -> List[str]:
    """Split a generic argument list on top-level commas."""
    parts: List[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(s):
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
            if depth < 0:
                raise CodecTypeError(f"unbalanced '>' in type spec: {spec!r}")
        elif ch == "," and depth == 0:
            parts.append(s[start:i])
            start = i + 1
    if depth != 0:
        raise CodecTypeError(f"unbalanced '<' in type spec: {spec!r}")
    parts.append(s[start:])
    if any(not p.strip() for p in parts):
        raise CodecTypeError(f"empty type argument in spec: {spec!r}")
    return [p.strip() for p in parts]


def _parse_width(s: str, prefix: str, spec: str) -> int:
    try:
        bits = int(s[len(prefix):])
    except ValueError as e:
        raise CodecTypeError(f"invalid integer width in type spec: {spec!r}") from e
    _assert_bits(bits)
    return bits


@lru_cache(maxsize=256)
def parse_type(spec: str) -> TypeSpec:
    """
    Parse a textual type spec into a type object with a .validate() method.
    See the module docstring for the supported grammar.
    """
    if not isinstance(spec, str) or not spec.strip():
        raise CodecTypeError("type spec must be a non-empty string")

    s = spec.strip().lower().replace(" ", "")

    if "<" in s:
        if not s.endswith(">"):
            raise CodecTypeError(f"malformed generic type spec: {spec!r}")
        head, _, rest = s.partition("<")
        args = _split_args(rest[:-1], spec)
        if head in ("vec", "list"):
            if len(args) != 1:
                raise CodecTypeError(f"{head}<T> takes one type argument: {spec!r}")
            return VecType(args[0])
        if head == "option":
            if len(args) != 1:
                raise CodecTypeError(f"option<T> takes one type argument: {spec!r}")
            return OptionType(args[0])
        if head == "map":
            if len(args) != 2:
                raise CodecTypeError(f"map<K,V> takes two type arguments: {spec!r}")
            return MapType(args[0], args[1])
        if head == "tuple":
            return TupleType(tuple(args))
        raise CodecTypeError(f"unsupported generic type: {head!r}")

    if s == "bool":
        return BoolType()
    if s in ("str", "string"):
        return StrType()
    if s == "bytes":
        return BytesType()
    if s.startswith("bytes"):
        try:
            n = int(s[5:])
        except ValueError as e:
            raise CodecTypeError("invalid bytesN length") from e
        return BytesType(fixed_len=n)

    if s == "uint":
        return UIntType(256)
    if s == "int":
        return IntType(256)
    if s.startswith("uint"):
        return UIntType(_parse_width(s, "uint", spec))
    if s.startswith("int"):
        return IntType(_parse_width(s, "int", spec))
    if s.startswith("u"):
        return UIntType(_parse_width(s, "u", spec))
    if s.startswith("i"):
        return IntType(_parse_width(s, "i", spec))

    raise CodecTypeError(f"unsupported type spec: {spec!r}")
