"""
contract_sdk.codec
==================

Generic, composable encode/decode of storage values and key-value
collections. Everything here is pure-Python and side-effect free; the
persistence lifecycle lives in contract_sdk.storage.
"""

from __future__ import annotations

from .decoding import *  # noqa: F401,F403
from .encoding import *  # noqa: F401,F403
from .types import *  # noqa: F401,F403
from .decoding import __all__ as _all_decoding
from .encoding import __all__ as _all_encoding
from .types import __all__ as _all_types

__all__ = tuple(dict.fromkeys((*_all_types, *_all_encoding, *_all_decoding)))
