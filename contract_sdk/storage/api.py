"""
contract_sdk.storage.api — the KV-store adapter used by contract code.

`Storage` wraps an injected `StorageBackend` and exposes:

Low level (fixed 32-byte keys)
------------------------------
- get_kv(key) -> Optional[bytes]
- put_kv(key, value: Optional[bytes]) -> None   # None writes the sentinel
- clear(key) -> None                            # == put_kv(key, None)
- raw_kv(key) -> Optional[bytes]                # record as stored, sentinel included

High level (names or keys, typed values)
----------------------------------------
- put(name, value, typ)
- get(name, typ) -> Optional[value]
- remove(name)
- contains(name) -> bool

Sentinel policy
---------------
The store has no delete: clearing writes 32 zero bytes. `get_kv` reports a
record equal to the sentinel as logically absent, so every reader above this
layer (typed `get`, `Map.load`) sees a cleared key exactly like a key that was
never written. A value whose encoding is itself 32 zero bytes (e.g. a zero
u256) therefore reads back as absent; store such values inside a map or
under option<T>. `raw_kv` still shows the sentinel record.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

from ..codec import TypeSpec, decode, encode_value
from ..config import CFG, SENTINEL, SDKConfig
from ..errors import BackendError
from .backend import StorageBackend, check_backend
from .key import NameOrKey, StorageKey

log = logging.getLogger(__name__)


class Storage:
    """A map-like API over an opaque two-primitive store."""

    def __init__(self, backend: StorageBackend, *, config: Optional[SDKConfig] = None) -> None:
        self._backend = check_backend(backend)
        self._cfg = config or CFG

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def config(self) -> SDKConfig:
        return self._cfg

    # ------------------------------------------------------------------ #
    # Low-level ABI
    # ------------------------------------------------------------------ #

    def raw_kv(self, key: StorageKey) -> Optional[bytes]:
        """Return the record stored under `key` without sentinel filtering."""
        value = self._backend.get(key.raw)
        return None if value is None else bytes(value)

    def get_kv(self, key: StorageKey) -> Optional[bytes]:
        """Load stored value at `key`; None if never written or cleared."""
        value = self.raw_kv(key)
        if value is None:
            log.debug("get_kv miss", extra={"storage_key": key.hex()})
            return None
        if value == SENTINEL:
            log.debug("get_kv cleared record", extra={"storage_key": key.hex()})
            return None
        log.debug("get_kv hit", extra={"storage_key": key.hex(), "size": len(value)})
        return value

    def put_kv(self, key: StorageKey, value: Optional[bytes]) -> None:
        """Store `value` under `key`; None writes the clear sentinel."""
        if value is None:
            payload = SENTINEL
        else:
            payload = bytes(value)
            self.ensure_fits(key, payload)
        self._backend.put(key.raw, payload)
        log.debug("put_kv", extra={"storage_key": key.hex(), "size": len(payload)})

    def ensure_fits(self, key: StorageKey, payload: bytes) -> None:
        """Raise BackendError if `payload` exceeds the configured value cap."""
        if len(payload) > self._cfg.max_value_bytes:
            raise BackendError(
                f"storage value too large (>{self._cfg.max_value_bytes} bytes)",
                context={"storage_key": key.hex(), "size": len(payload)},
            )

    def clear(self, key: StorageKey) -> None:
        """Overwrite the record under `key` with the zero sentinel."""
        self.put_kv(key, None)

    # ------------------------------------------------------------------ #
    # High-level typed API
    # ------------------------------------------------------------------ #

    def put(self, name: NameOrKey, value: Any, typ: Union[str, TypeSpec]) -> None:
        """Encode `value` as `typ` and store it under `name`."""
        key = StorageKey.coerce(name)
        data = encode_value(value, typ, max_entries=self._cfg.max_map_entries)
        self.put_kv(key, data)

    def get(self, name: NameOrKey, typ: Union[str, TypeSpec]) -> Optional[Any]:
        """
        Retrieve and decode the value under `name`.
        Returns None if absent or cleared; raises DecodeError if malformed.
        """
        key = StorageKey.coerce(name)
        data = self.get_kv(key)
        if data is None:
            return None
        return decode(
            data,
            typ,
            strict=self._cfg.strict_decode,
            max_entries=self._cfg.max_map_entries,
        )

    def remove(self, name: NameOrKey) -> None:
        """Remove a key from storage by zero-ing out the value."""
        self.clear(StorageKey.coerce(name))

    def contains(self, name: NameOrKey) -> bool:
        return self.get_kv(StorageKey.coerce(name)) is not None

    def __repr__(self) -> str:
        return f"Storage(backend={type(self._backend).__name__})"


__all__ = ["Storage"]
