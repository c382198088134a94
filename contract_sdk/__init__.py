"""
contract_sdk — typed persistent storage for contract code.

Contract state lives in an opaque host store that only knows how to read and
write bytes under 32-byte keys. This package layers on top of it:

- StorageKey / derive(name)   deterministic 32-byte keys from names
- Storage(backend)            the KV adapter (get_kv / put_kv / clear)
- Map                         typed in-memory map with load / flush lifecycle
- codec                       composable encode/decode of (nested) values

Quick start:

    from contract_sdk import Map, MemoryBackend, Storage

    storage = Storage(MemoryBackend())
    m = Map.load_or_create("my map", "u32", "bytes", storage=storage)
    m[1] = b"hello"
    m.flush()

The host binding is always injected; MemoryBackend stands in for it in tests.
"""

from __future__ import annotations

from .version import __version__
from .config import CFG, SENTINEL, STORAGE_KEY_BYTES, SDKConfig, load_config
from .errors import (BackendError, CodecTypeError, DecodeError, SDKError,
                     Unavailable, ValidationError)
from .storage import (HostBackend, Map, MapState, MemoryBackend, Storage,
                      StorageBackend, StorageKey, derive)


def version() -> str:
    """Return the contract_sdk semantic version string."""
    return __version__


__all__ = [
    "__version__",
    "version",
    "CFG",
    "SDKConfig",
    "load_config",
    "SENTINEL",
    "STORAGE_KEY_BYTES",
    "SDKError",
    "DecodeError",
    "Unavailable",
    "ValidationError",
    "CodecTypeError",
    "BackendError",
    "Storage",
    "StorageBackend",
    "MemoryBackend",
    "HostBackend",
    "StorageKey",
    "derive",
    "Map",
    "MapState",
]
