"""
contract_sdk.storage.key — fixed-width storage keys.

The store addresses records by exactly 32 bytes. Human-readable names are
mapped onto that space by truncation or zero-padding:

    derive(b"my key")      -> b"my key" + b"\\x00" * 26
    derive(b"x" * 40)      -> b"x" * 32

This is the only keying convention visible to other readers of the store and
must stay bit-stable.

Known collisions (accepted, never detected at runtime):
- names sharing their first 32 bytes map to the same key;
- b"abc" and b"abc\\x00" map to the same key;
- the empty name maps to the all-zero key, which equals the clear sentinel.
Pick short, distinguishing names.
"""

from __future__ import annotations

from typing import Union

from ..config import STORAGE_KEY_BYTES
from ..errors import ValidationError

NameOrKey = Union["StorageKey", bytes, bytearray, memoryview, str]


def _name_bytes(name: Union[bytes, bytearray, memoryview, str]) -> bytes:
    if isinstance(name, str):
        return name.encode("utf-8")
    if isinstance(name, (bytes, bytearray, memoryview)):
        return bytes(name)
    raise ValidationError(f"storage name must be str or bytes, got {type(name).__name__}")


class StorageKey:
    """A 32-byte storage key. Immutable and hashable."""

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes) -> None:
        raw = bytes(raw)
        if len(raw) != STORAGE_KEY_BYTES:
            raise ValidationError(
                f"storage key must be exactly {STORAGE_KEY_BYTES} bytes, got {len(raw)}"
            )
        self._raw = raw

    @classmethod
    def zero(cls) -> "StorageKey":
        """Return a zeroed-out storage key."""
        return cls(b"\x00" * STORAGE_KEY_BYTES)

    @classmethod
    def from_name(cls, name: Union[bytes, bytearray, memoryview, str]) -> "StorageKey":
        """Truncate or zero-pad `name` to 32 bytes."""
        data = _name_bytes(name)
        if len(data) >= STORAGE_KEY_BYTES:
            return cls(data[:STORAGE_KEY_BYTES])
        return cls(data.ljust(STORAGE_KEY_BYTES, b"\x00"))

    @classmethod
    def coerce(cls, name_or_key: NameOrKey) -> "StorageKey":
        """Pass StorageKey instances through; derive everything else."""
        if isinstance(name_or_key, StorageKey):
            return name_or_key
        return cls.from_name(name_or_key)

    @property
    def raw(self) -> bytes:
        return self._raw

    def as_bytes(self) -> bytes:
        return self._raw

    def hex(self) -> str:
        return self._raw.hex()

    def __bytes__(self) -> bytes:
        return self._raw

    def __len__(self) -> int:
        return STORAGE_KEY_BYTES

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StorageKey):
            return self._raw == other._raw
        return NotImplemented

    def __hash__(self) -> int:
        return hash((StorageKey, self._raw))

    def __repr__(self) -> str:
        printable = self._raw.rstrip(b"\x00")
        if printable and all(0x20 <= c < 0x7F for c in printable):
            return f"StorageKey({printable.decode('ascii')!r})"
        return f"StorageKey(0x{self._raw.hex()})"


def derive(name: Union[bytes, bytearray, memoryview, str]) -> StorageKey:
    """Derive the storage key for `name` (see module docstring)."""
    return StorageKey.from_name(name)


__all__ = ["StorageKey", "NameOrKey", "derive"]
