from __future__ import annotations

import pytest

from contract_sdk.storage import MemoryBackend, Storage


@pytest.fixture()
def backend() -> MemoryBackend:
    """A fresh in-memory host store per test."""
    return MemoryBackend()


@pytest.fixture()
def storage(backend: MemoryBackend) -> Storage:
    return Storage(backend)
