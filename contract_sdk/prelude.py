"""
Useful default imports for writing contracts:

    from contract_sdk.prelude import *
"""

from __future__ import annotations

from .codec import (BoolType, BytesType, IntType, MapType, OptionType,
                    StrType, TupleType, UIntType, VecType, codec_field,
                    parse_type, struct)
from .errors import DecodeError, SDKError, Unavailable
from .storage import Map, Storage, StorageKey, derive
from .utils import u32_to_bytes, u64_to_bytes

__all__ = [
    "Map",
    "Storage",
    "StorageKey",
    "derive",
    "SDKError",
    "DecodeError",
    "Unavailable",
    "BoolType",
    "BytesType",
    "IntType",
    "MapType",
    "OptionType",
    "StrType",
    "TupleType",
    "UIntType",
    "VecType",
    "codec_field",
    "parse_type",
    "struct",
    "u32_to_bytes",
    "u64_to_bytes",
]
