"""
contract_sdk.storage.backend — the two-primitive store boundary.

The host store offers exactly two operations over 32-byte keys:

    get(key: bytes) -> Optional[bytes]        None if never written
    put(key: bytes, value: Optional[bytes])   None stores the clear sentinel

There is no delete and no read-modify-write atomicity; last write wins.

Implementations provided here:
- MemoryBackend: in-process dict, for local runs and tests.
- HostBackend:   duck-typed bridge over a host object exposing storage
                 methods under common names (get_storage/read_storage/...).

A backend is always passed in explicitly (see contract_sdk.storage.api.Storage);
there is no process-wide default.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol, Tuple, runtime_checkable

from ..config import SENTINEL, STORAGE_KEY_BYTES
from ..errors import BackendError

# ---------------------------- Backend API ---------------------------- #


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal host store interface."""

    def get(self, key: bytes) -> Optional[bytes]: ...
    def put(self, key: bytes, value: Optional[bytes]) -> None: ...


def check_backend(backend: Any) -> StorageBackend:
    """Raise BackendError unless `backend` offers callable get/put."""
    for attr in ("get", "put"):
        if not callable(getattr(backend, attr, None)):
            raise BackendError(
                f"backend missing method: {attr}",
                context={"backend": type(backend).__name__},
            )
    return backend


def _check_key(key: bytes) -> None:
    if not isinstance(key, (bytes, bytearray)) or len(key) != STORAGE_KEY_BYTES:
        raise BackendError(f"backend keys must be {STORAGE_KEY_BYTES} bytes")


# ---------------------------- In-memory ---------------------------- #


class MemoryBackend:
    """
    In-memory backend for local runs and tests.

    Follows the host contract literally: `put(key, None)` stores the
    sentinel, so a cleared key still has a record.
    """

    def __init__(self, initial: Optional[Dict[bytes, bytes]] = None) -> None:
        self._store: Dict[bytes, bytes] = {}
        self.reads = 0
        self.writes = 0
        for k, v in (initial or {}).items():
            self.put(k, v)

    def get(self, key: bytes) -> Optional[bytes]:
        _check_key(key)
        self.reads += 1
        return self._store.get(bytes(key))

    def put(self, key: bytes, value: Optional[bytes]) -> None:
        _check_key(key)
        self.writes += 1
        self._store[bytes(key)] = SENTINEL if value is None else bytes(value)

    def has_record(self, key: bytes) -> bool:
        return bytes(key) in self._store

    def items(self) -> Iterator[Tuple[bytes, bytes]]:
        return iter(list(self._store.items()))

    def snapshot(self) -> Dict[bytes, bytes]:
        return dict(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store


# ---------------------------- Host bridge ---------------------------- #

_GETTERS = ["get_storage", "read_storage", "get_kv", "get"]
_SETTERS = ["set_storage", "write_storage", "put_storage", "put_kv", "put", "set"]


def _first_attr(obj: Any, candidates: List[str]) -> Optional[Callable[..., Any]]:
    """Return the first callable attribute or None."""
    for name in candidates:
        fn = getattr(obj, name, None)
        if callable(fn):
            return fn
    return None


@dataclass
class HostBackend:
    """
    Thin adapter that presents the two-primitive API over a host object.

    The host is probed once, at construction, for a getter and a setter
    under common names. Hosts returning hex strings ("0x…") are accepted.
    """

    host: Any
    _get: Callable[..., Any] = field(init=False, repr=False)
    _put: Callable[..., Any] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        getter = _first_attr(self.host, _GETTERS)
        setter = _first_attr(self.host, _SETTERS)
        if getter is None or setter is None:
            missing = "getter" if getter is None else "setter"
            raise BackendError(
                f"host exposes no storage {missing}",
                context={"host": type(self.host).__name__},
            )
        self._get = getter
        self._put = setter

    def get(self, key: bytes) -> Optional[bytes]:
        _check_key(key)
        out = self._get(bytes(key))
        if out is None:
            return None
        if isinstance(out, str):
            if not out.startswith("0x"):
                raise BackendError("host returned a non-hex string value")
            return bytes.fromhex(out[2:])
        return bytes(out)

    def put(self, key: bytes, value: Optional[bytes]) -> None:
        _check_key(key)
        self._put(bytes(key), SENTINEL if value is None else bytes(value))


__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "HostBackend",
    "check_backend",
]
