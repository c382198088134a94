from __future__ import annotations

from dataclasses import dataclass
from typing import List

import pytest

from contract_sdk.codec import (MapType, StructType, codec_field, decode, decode_map,
                                encode_map, encode_value, parse_type, struct)
from contract_sdk.errors import CodecTypeError, DecodeError, ValidationError


@dataclass
class MockValue:
    field1: int = codec_field("u32")
    field2: List[int] = codec_field("vec<u8>")


MOCK = struct(MockValue)
MOCK_BYTES = b"\x00\x00\x00\x02\x04\x01\x02\x03\x04"


@dataclass(frozen=True)
class Point:
    x: int
    y: int


POINT = struct(Point, x="i32", y="i32")


# ---------------------------------------------------------------------------
# Structs
# ---------------------------------------------------------------------------


def test_struct_fields_are_concatenated_in_declared_order() -> None:
    assert encode_value(MockValue(2, [1, 2, 3, 4]), MOCK) == MOCK_BYTES
    assert decode(MOCK_BYTES, MOCK) == MockValue(2, [1, 2, 3, 4])


def test_struct_from_explicit_field_specs() -> None:
    buf = encode_value(Point(-1, 2), POINT)
    assert buf == b"\xff\xff\xff\xff\x00\x00\x00\x02"
    assert decode(buf, POINT) == Point(-1, 2)
    assert POINT.hashable
    assert not MOCK.hashable


def test_struct_value_of_wrong_class_is_rejected() -> None:
    with pytest.raises(ValidationError):
        encode_value(Point(1, 2), MOCK)
    with pytest.raises(ValidationError):
        MOCK.validate(MockValue(1, [300]))


def test_struct_requires_field_specs() -> None:
    @dataclass
    class Bare:
        a: int

    class NotADataclass:
        pass

    with pytest.raises(CodecTypeError):
        struct(Bare)
    with pytest.raises(CodecTypeError):
        struct(NotADataclass)
    with pytest.raises(CodecTypeError):
        StructType(Point, ())
    with pytest.raises(CodecTypeError):
        StructType(Point, (("x", "u8"), ("x", "u8")))


def test_struct_that_cannot_be_rebuilt_fails_to_decode() -> None:
    odd = struct(Point, x="i32", z="i32")
    with pytest.raises(DecodeError):
        decode(b"\x00" * 8, odd)


# ---------------------------------------------------------------------------
# Maps
# ---------------------------------------------------------------------------


def test_empty_map_is_a_single_zero_byte() -> None:
    assert encode_map({}, "u32", "u32") == b"\x00"
    assert decode_map(b"\x00", "u32", "u32") == {}


def test_map_record_layout() -> None:
    buf = encode_map({1: b"a", 2: b"bc"}, "u32", "bytes")
    assert buf == (
        b"\x02"
        + b"\x00\x00\x00\x01" + b"\x01a"
        + b"\x00\x00\x00\x02" + b"\x02bc"
    )
    assert decode_map(buf, "u32", "bytes") == {1: b"a", 2: b"bc"}


def test_map_of_structs() -> None:
    m = {7: MockValue(2, [1, 2, 3, 4])}
    buf = encode_map(m, "u32", MOCK)
    assert buf == b"\x01\x00\x00\x00\x07" + MOCK_BYTES
    assert decode_map(buf, "u32", MOCK) == m


def test_nested_maps_decode_to_dicts() -> None:
    outer = {1: {1: b"\x01"}, 2: {1: b"\x02", 3: b""}}
    buf = encode_value(outer, "map<u32,map<u32,bytes>>")
    out = decode(buf, "map<u32,map<u32,bytes>>")
    assert out == outer
    assert type(out[2]) is dict
    assert out[2][1] == b"\x02"


def test_map_with_tuple_keys() -> None:
    m = {(1, True): "x", (2, False): "y"}
    buf = encode_map(m, "tuple<u8,bool>", "str")
    assert decode_map(buf, "tuple<u8,bool>", "str") == m


def test_duplicate_keys_on_decode_last_write_wins() -> None:
    buf = b"\x02" + b"\x01" + b"\x0a" + b"\x01" + b"\x0b"
    assert decode_map(buf, "u8", "u8") == {1: 11}


def test_map_value_types_are_checked_on_encode() -> None:
    with pytest.raises(ValidationError):
        encode_map({1: "not bytes"}, "u32", "bytes")
    with pytest.raises(ValidationError):
        encode_map([(1, b"")], "u32", "bytes")  # type: ignore[arg-type]


def test_unhashable_key_types_are_rejected() -> None:
    with pytest.raises(CodecTypeError):
        parse_type("map<map<u8,u8>,u8>")
    with pytest.raises(CodecTypeError):
        MapType("vec<u8>", "u8")


def test_map_entry_cap() -> None:
    big = {i: i for i in range(5)}
    with pytest.raises(ValidationError):
        encode_map(big, "u8", "u8", max_entries=4)
    buf = encode_map(big, "u8", "u8")
    with pytest.raises(DecodeError) as ei:
        decode_map(buf, "u8", "u8", max_entries=4)
    assert ei.value.context["count"] == 5


# ---------------------------------------------------------------------------
# Malformed records
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "buf",
    [
        b"",                                   # no count
        b"\x01",                               # count but no entries
        b"\x01\x00\x00\x00\x01",               # key without value
        b"\x01\x00\x00\x00\x01\x05ab",         # value shorter than its prefix
        b"\x80",                               # truncated count
        b"\x80\x00",                           # non-minimal count
        b"\x00\x00",                           # trailing byte
    ],
)
def test_malformed_records_raise_decode_error(buf: bytes) -> None:
    with pytest.raises(DecodeError):
        decode_map(buf, "u32", "bytes")


def test_decode_error_reports_offset() -> None:
    with pytest.raises(DecodeError) as ei:
        decode_map(b"\x01\x00\x00\x00\x01\x05ab", "u32", "bytes")
    err = ei.value
    assert err.code == "decode"
    assert err.context["offset"] == 6
    assert "truncated" in str(err)


def test_decode_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        decode_map(b"\x01", "u32", "u32")
