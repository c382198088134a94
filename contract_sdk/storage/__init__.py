"""
contract_sdk.storage
====================

Persistence for contract state over an opaque two-primitive store:

- key:     32-byte storage keys derived from names (truncate / zero-pad)
- backend: the `get`/`put` host boundary, plus in-memory and host bridges
- api:     `Storage`, the KV adapter (get_kv / put_kv / clear, typed get/put)
- map:     `Map`, a typed in-memory map with load / flush lifecycle
"""

from __future__ import annotations

from .api import Storage
from .backend import HostBackend, MemoryBackend, StorageBackend, check_backend
from .key import NameOrKey, StorageKey, derive
from .map import Map, MapState, flush_all

__all__ = [
    "Storage",
    "StorageBackend",
    "MemoryBackend",
    "HostBackend",
    "check_backend",
    "StorageKey",
    "NameOrKey",
    "derive",
    "Map",
    "MapState",
    "flush_all",
]
