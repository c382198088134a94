# -*- coding: utf-8 -*-
"""
Property tests for the storage codec and persistent maps.

- decode(encode(v)) == v for generated values of nested types
- a flushed map loads back with equal content, whatever the insert order
- last write wins on overwrite, and removing then flushing never resurrects
- non-minimal or truncated prefixes never decode silently in strict mode
"""
from __future__ import annotations

from typing import Dict, Optional

import pytest
from hypothesis import given, settings, strategies as st

from contract_sdk.codec import decode, decode_map, encode_map, encode_value
from contract_sdk.errors import DecodeError
from contract_sdk.storage import Map, MemoryBackend, Storage
from contract_sdk.utils import uvarint_decode, uvarint_encode

# -----------------------------------------------------------------------------
# Strategies
# -----------------------------------------------------------------------------

U32 = st.integers(min_value=0, max_value=2**32 - 1)
I64 = st.integers(min_value=-(2**63), max_value=2**63 - 1)
SMALL_BYTES = st.binary(min_size=0, max_size=64)
TEXT = st.text(max_size=32)

INNER = st.dictionaries(keys=U32, values=SMALL_BYTES, max_size=8)
NESTED = st.dictionaries(keys=U32, values=INNER, max_size=8)


def _fresh_storage() -> Storage:
    return Storage(MemoryBackend())


# -----------------------------------------------------------------------------
# Codec
# -----------------------------------------------------------------------------


@settings(max_examples=200, deadline=None)
@given(n=st.integers(min_value=0, max_value=2**63 - 1))
def test_uvarint_is_minimal_and_invertible(n: int) -> None:
    buf = uvarint_encode(n)
    assert uvarint_decode(buf) == (n, len(buf))
    assert buf[-1] < 0x80
    if len(buf) > 1:
        assert buf[-1] != 0


@settings(max_examples=100, deadline=None)
@given(v=st.lists(st.tuples(I64, st.booleans(), st.one_of(st.none(), TEXT)), max_size=8))
def test_composite_values_survive_encoding(v) -> None:
    spec = "vec<tuple<i64,bool,option<str>>>"
    assert decode(encode_value(v, spec), spec) == v


@settings(max_examples=100, deadline=None)
@given(m=NESTED)
def test_nested_map_records_decode_to_equal_dicts(m: Dict[int, Dict[int, bytes]]) -> None:
    buf = encode_map(m, "u32", "map<u32,bytes>")
    assert decode_map(buf, "u32", "map<u32,bytes>") == m


@settings(max_examples=100, deadline=None)
@given(m=st.dictionaries(keys=U32, values=U32, min_size=1, max_size=16), data=st.data())
def test_truncated_records_never_decode(m: Dict[int, int], data) -> None:
    buf = encode_map(m, "u32", "u32")
    cut = data.draw(st.integers(min_value=0, max_value=len(buf) - 1))
    with pytest.raises(DecodeError):
        decode_map(buf[:cut], "u32", "u32")


# -----------------------------------------------------------------------------
# Maps over a store
# -----------------------------------------------------------------------------


@settings(max_examples=100, deadline=None)
@given(m=st.dictionaries(keys=SMALL_BYTES, values=U32, max_size=16))
def test_flush_then_load_is_identity(m: Dict[bytes, int]) -> None:
    storage = _fresh_storage()
    a = Map.new("props", "bytes", "u32", storage=storage)
    for k in reversed(list(m)):
        a.insert(k, m[k])
    a.flush()
    b = Map.load("props", "bytes", "u32", storage=storage)
    assert b.to_dict() == m


@settings(max_examples=100, deadline=None)
@given(
    writes=st.lists(st.tuples(st.integers(0, 7), st.one_of(st.none(), U32)), max_size=32),
)
def test_map_matches_dict_model(writes) -> None:
    storage = _fresh_storage()
    model: Dict[int, int] = {}
    m = Map.load_or_create("model", "u8", "u32", storage=storage)
    for k, v in writes:
        if v is None:
            prev: Optional[int] = m.remove(k)
            assert prev == model.pop(k, None)
        else:
            assert m.insert(k, v) == model.get(k)
            model[k] = v
    m.flush()
    again = Map.load_or_create("model", "u8", "u32", storage=storage)
    assert again.to_dict() == model
    assert len(again) == len(model)
