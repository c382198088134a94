from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from contract_sdk.config import SENTINEL
from contract_sdk.errors import ValidationError
from contract_sdk.storage.key import StorageKey, derive


def test_from_short_storage_key_is_padded() -> None:
    key = StorageKey.from_name("my key")
    target = b"my key" + b"\x00" * 26
    assert key.raw == target
    assert StorageKey.from_name(target) == key


def test_from_long_storage_key_is_truncated() -> None:
    name = b"myreallylongstoragekeythatislongerthan32bytes"
    key = derive(name)
    assert key.raw == name[:32]
    assert len(key.raw) == 32


def test_exactly_32_bytes_is_kept_verbatim() -> None:
    name = bytes(range(32))
    assert derive(name).raw == name


def test_str_names_are_utf8_encoded() -> None:
    assert derive("café") == derive("café".encode("utf-8"))


def test_empty_name_derives_the_zero_key_which_equals_the_sentinel() -> None:
    key = derive(b"")
    assert key == StorageKey.zero()
    assert key.raw == SENTINEL


def test_names_sharing_a_32_byte_prefix_collide() -> None:
    a = derive(b"x" * 32 + b"-first")
    b = derive(b"x" * 32 + b"-second")
    assert a == b
    # trailing NULs are indistinguishable from padding
    assert derive(b"abc") == derive(b"abc\x00")


def test_coerce_passes_keys_through() -> None:
    key = derive("balances")
    assert StorageKey.coerce(key) is key
    assert StorageKey.coerce("balances") == key


def test_storage_key_rejects_wrong_width() -> None:
    with pytest.raises(ValidationError):
        StorageKey(b"\x01" * 31)
    with pytest.raises(ValidationError):
        derive(1234)  # type: ignore[arg-type]


def test_storage_key_is_hashable_and_printable() -> None:
    keys = {derive("a"), derive("a"), derive("b")}
    assert len(keys) == 2
    assert repr(derive("my map")) == "StorageKey('my map')"
    assert repr(StorageKey(b"\xff" * 32)).startswith("StorageKey(0x")


@given(st.binary(max_size=64))
def test_derivation_is_truncate_or_zero_pad(data: bytes) -> None:
    key = derive(data)
    if len(data) >= 32:
        assert key.raw == data[:32]
    else:
        assert key.raw == data + b"\x00" * (32 - len(data))
    assert derive(data) == key
