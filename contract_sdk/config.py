"""
contract_sdk.config — decode strictness, size caps and logging defaults.

This module has NO third-party deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (CONTRACT_SDK_*)
  2) Hardcoded safe defaults below

Key env vars (case-insensitive where boolean):
  - CONTRACT_SDK_STRICT              (bool)   default: true
  - CONTRACT_SDK_MAX_MAP_ENTRIES     (int)    default: 65_536
  - CONTRACT_SDK_MAX_VALUE_BYTES     (int)    default: 1_048_576  (1 MiB)
  - CONTRACT_SDK_LOG_LEVEL           (str)    default: WARNING
  - CONTRACT_SDK_LOG_FORMAT          (str)    default: text  (text|json)

The storage key width (32 bytes) and the clear sentinel are NOT configurable:
they are part of the on-store format shared by every reader of the store.

Usage:
    from contract_sdk.config import load_config
    CFG = load_config()
    if CFG.strict_decode: ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from functools import lru_cache
from typing import Any, Dict

# Fixed on-store format constants
STORAGE_KEY_BYTES = 32
SENTINEL = b"\x00" * STORAGE_KEY_BYTES


# ----------------------------- helpers ---------------------------------------


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().lower()
    return val in ("1", "true", "t", "yes", "y", "on")


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip()
    for c in choices:
        if val.lower() == c.lower():
            return c
    return default


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class SDKConfig:
    # Decoding
    strict_decode: bool

    # Numeric caps
    max_map_entries: int
    max_value_bytes: int

    # Logging defaults (consumed by contract_sdk.logging.configure)
    log_level: str
    log_format: str

    def with_overrides(self, **changes: Any) -> "SDKConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "strict_decode": self.strict_decode,
            "max_map_entries": self.max_map_entries,
            "max_value_bytes": self.max_value_bytes,
            "log_level": self.log_level,
            "log_format": self.log_format,
        }


@lru_cache(maxsize=1)
def load_config() -> SDKConfig:
    """
    Build and cache an SDKConfig from environment + safe defaults.
    """
    return SDKConfig(
        strict_decode=_env_bool("CONTRACT_SDK_STRICT", True),
        max_map_entries=_env_int("CONTRACT_SDK_MAX_MAP_ENTRIES", 1 << 16, min_v=1, max_v=1 << 32),
        max_value_bytes=_env_int(
            "CONTRACT_SDK_MAX_VALUE_BYTES", 1 << 20, min_v=len(SENTINEL), max_v=(1 << 31) - 1
        ),
        log_level=_env_choice(
            "CONTRACT_SDK_LOG_LEVEL", "WARNING", ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
        ),
        log_format=_env_choice("CONTRACT_SDK_LOG_FORMAT", "text", ("text", "json")),
    )


# Eagerly construct a module-level singleton for convenience, but keep load_config()
# as the canonical accessor (cached).
CFG: SDKConfig = load_config()

__all__ = ["SDKConfig", "load_config", "CFG", "STORAGE_KEY_BYTES", "SENTINEL"]
