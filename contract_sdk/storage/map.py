"""
contract_sdk.storage.map — a typed, persistent key-value map.

A `Map` is an in-memory dict bound to one storage key. Reads and writes
never touch the store; the whole collection is loaded eagerly and written
back in full by `flush()`:

    balances = Map.load_or_create("balances", "bytes32", "u128", storage=storage)
    balances[alice] = balances.get(alice, 0) + 10
    balances.flush()

Lifecycle (`Map.state`)
-----------------------
    UNBOUND_EMPTY  constructed with a key, store not read, no entries
    LOADED         content decoded from the store (or nothing was there)
    DIRTY          mutated since the last load/flush
    FLUSHED        full content written under the bound key

Mutations made in place on a value obtained through `get()` are not tracked;
use `get_mut()` when the state should reflect them. `flush()` always rewrites
the full collection regardless of state, so nothing is lost either way.
Unflushed changes are discarded with the instance.

Persisted record layout: see contract_sdk.codec.encoding (`map<K,V>`).
"""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from enum import Enum
from typing import Any, Dict, Generic, Iterator, Optional, Tuple, TypeVar, Union

from ..codec import TypeSpec, as_type, decode_map, encode_map
from ..errors import CodecTypeError, DecodeError, Unavailable
from .api import Storage
from .key import NameOrKey, StorageKey

log = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


class MapState(str, Enum):
    UNBOUND_EMPTY = "unbound_empty"
    LOADED = "loaded"
    DIRTY = "dirty"
    FLUSHED = "flushed"


class Map(MutableMapping, Generic[K, V]):
    """
    A map type for contract storage.

    Keys and values are checked against their codec types on insert, so a
    value that cannot be persisted fails at the call site rather than at
    flush time.
    """

    def __init__(
        self,
        name_or_key: NameOrKey,
        key_type: Union[str, TypeSpec],
        value_type: Union[str, TypeSpec],
        *,
        storage: Storage,
    ) -> None:
        self._key = StorageKey.coerce(name_or_key)
        self._key_type = as_type(key_type)
        self._value_type = as_type(value_type)
        if not self._key_type.hashable:
            raise CodecTypeError(f"map key type {self._key_type.name} is not hashable")
        self._storage = storage
        self._entries: Dict[K, V] = {}
        self._state = MapState.UNBOUND_EMPTY

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def new(
        cls,
        name_or_key: NameOrKey,
        key_type: Union[str, TypeSpec],
        value_type: Union[str, TypeSpec],
        *,
        storage: Storage,
    ) -> "Map[K, V]":
        """Create an empty map bound to `name_or_key` without reading the store."""
        return cls(name_or_key, key_type, value_type, storage=storage)

    @classmethod
    def load(
        cls,
        name_or_key: NameOrKey,
        key_type: Union[str, TypeSpec],
        value_type: Union[str, TypeSpec],
        *,
        storage: Storage,
    ) -> "Map[K, V]":
        """
        Load a map from the store.

        Raises Unavailable if nothing was ever written (or the record was
        cleared), DecodeError if the stored bytes are malformed.
        """
        m = cls(name_or_key, key_type, value_type, storage=storage)
        data = storage.get_kv(m._key)
        if data is None:
            raise Unavailable("no map stored under key", context={"storage_key": m._key.hex()})
        m._load_bytes(data)
        return m

    @classmethod
    def load_or_create(
        cls,
        name_or_key: NameOrKey,
        key_type: Union[str, TypeSpec],
        value_type: Union[str, TypeSpec],
        *,
        storage: Storage,
    ) -> "Map[K, V]":
        """
        Load a map from the store, or return an empty map bound to the
        requested key if nothing is stored there.
        !This still fails if the stored data has an invalid encoding.
        """
        m = cls(name_or_key, key_type, value_type, storage=storage)
        data = storage.get_kv(m._key)
        if data is None:
            log.debug("no stored map; starting empty", extra={"storage_key": m._key.hex()})
            return m
        m._load_bytes(data)
        return m

    @classmethod
    def from_bytes(
        cls,
        buf: bytes,
        name_or_key: NameOrKey,
        key_type: Union[str, TypeSpec],
        value_type: Union[str, TypeSpec],
        *,
        storage: Storage,
    ) -> "Map[K, V]":
        """
        Decode `buf` into a map bound to `name_or_key`. The result is DIRTY:
        nothing says the store holds these bytes.
        """
        m = cls(name_or_key, key_type, value_type, storage=storage)
        m._entries = m._decode(buf)
        m._state = MapState.DIRTY
        return m

    def _decode(self, buf: bytes) -> Dict[K, V]:
        cfg = self._storage.config
        try:
            return decode_map(
                buf,
                self._key_type,
                self._value_type,
                strict=cfg.strict_decode,
                max_entries=cfg.max_map_entries,
            )
        except DecodeError as e:
            e.context.setdefault("storage_key", self._key.hex())
            raise

    def _load_bytes(self, data: bytes) -> None:
        self._entries = self._decode(data)
        self._state = MapState.LOADED
        log.debug(
            "loaded map",
            extra={"storage_key": self._key.hex(), "entries": len(self._entries), "size": len(data)},
        )

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def encode(self) -> bytes:
        """Encode the full in-memory content as a persisted record."""
        return encode_map(
            self._entries,
            self._key_type,
            self._value_type,
            max_entries=self._storage.config.max_map_entries,
        )

    def flush(self) -> None:
        """Write the full map to the store under its bound key."""
        self._write(self.encode())

    def _write(self, data: bytes) -> None:
        self._storage.put_kv(self._key, data)
        self._state = MapState.FLUSHED
        log.debug(
            "flushed map",
            extra={"storage_key": self._key.hex(), "entries": len(self._entries), "size": len(data)},
        )

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def storage_key(self) -> StorageKey:
        return self._key

    @property
    def key_type(self) -> TypeSpec:
        return self._key_type

    @property
    def value_type(self) -> TypeSpec:
        return self._value_type

    @property
    def storage(self) -> Storage:
        return self._storage

    @property
    def state(self) -> MapState:
        return self._state

    @property
    def is_dirty(self) -> bool:
        return self._state is MapState.DIRTY

    # ------------------------------------------------------------------ #
    # Associative API
    # ------------------------------------------------------------------ #

    def _touch(self) -> None:
        self._state = MapState.DIRTY

    def len(self) -> int:
        """Return the number of entries in the map."""
        return len(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def get(self, key: Any, default: Any = None) -> Any:
        """Return the value under `key`, `default` if not found."""
        return self._entries.get(key, default)

    def get_mut(self, key: Any) -> Optional[V]:
        """
        Return the value under `key` for in-place mutation, None if not found.
        A hit marks the map DIRTY.
        """
        if key not in self._entries:
            return None
        self._touch()
        return self._entries[key]

    def contains_key(self, key: Any) -> bool:
        return key in self._entries

    def insert(self, key: K, value: V) -> Optional[V]:
        """Insert `value` under `key`; return the previous value, if any."""
        key = self._key_type.validate(key)
        value = self._value_type.validate(value)
        prev = self._entries.get(key)
        self._entries[key] = value
        self._touch()
        return prev

    def remove(self, key: Any) -> Optional[V]:
        """Remove the value under `key` if any; a missing key is a no-op."""
        if key not in self._entries:
            return None
        self._touch()
        return self._entries.pop(key)

    def iter(self) -> Iterator[Tuple[K, V]]:
        """Iterate (key, value) pairs in arbitrary order."""
        return iter(self._entries.items())

    # MutableMapping protocol

    def __getitem__(self, key: Any) -> V:
        try:
            return self._entries[key]
        except KeyError:
            raise KeyError(key) from None

    def __setitem__(self, key: K, value: V) -> None:
        self.insert(key, value)

    def __delitem__(self, key: Any) -> None:
        if key not in self._entries:
            raise KeyError(key)
        self.remove(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[K]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        """Drop every entry in memory (the store is untouched until flush)."""
        if self._entries:
            self._entries.clear()
            self._touch()

    def to_dict(self) -> Dict[K, V]:
        return dict(self._entries)

    def __repr__(self) -> str:
        return (
            f"Map({self._key!r}, {self._key_type.name}, {self._value_type.name}, "
            f"entries={len(self._entries)}, state={self._state.value})"
        )


def flush_all(*maps: Map) -> None:
    """
    Flush several maps together: every record is encoded and checked against
    its storage caps before the first write, so a map that cannot be
    persisted leaves all of them unwritten.
    """
    staged = []
    for m in maps:
        data = m.encode()
        m.storage.ensure_fits(m.storage_key, data)
        staged.append((m, data))
    for m, data in staged:
        m._write(data)


__all__ = ["Map", "MapState", "flush_all"]
