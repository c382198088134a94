"""
contract_sdk.errors — structured error types for contract storage.

Every error raised by the SDK derives from `SDKError`, which carries a short
machine-readable `code`, a human `message` and an optional `context` dict
(storage key hex, offsets, sizes...). Concrete subclasses also derive from
the closest builtin so callers may catch either form:

    DecodeError       (SDKError, ValueError)   persisted bytes are malformed
    Unavailable       (SDKError, LookupError)  strict load of a missing record
    ValidationError   (SDKError, ValueError)   value does not fit its codec type
    CodecTypeError    (SDKError, TypeError)    malformed/unsupported type spec
    BackendError      (SDKError)               backend misuse or size caps

Two distinct names deriving to the same storage key (see
contract_sdk.storage.key) is *not* an error that can be detected here; callers
own the choice of short, distinguishing names.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping


@dataclass(eq=False)
class SDKError(Exception):
    """
    Root error for contract_sdk.

    Supported call patterns:

        SDKError("simple message")
        SDKError("message", code="some_code", context={...})
    """

    code: str
    message: str
    context: Dict[str, Any]

    default_code = "sdk_error"

    def __init__(self, message: str = "", *, code: str | None = None, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        object.__setattr__(self, "code", str(code) if code is not None else self.default_code)
        object.__setattr__(self, "message", str(message))
        object.__setattr__(self, "context", dict(context) if context else {})

    def __str__(self) -> str:
        if not self.context:
            return self.message
        extras = " ".join(f"{k}={v}" for k, v in sorted(self.context.items()))
        return f"{self.message} ({extras})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }


class DecodeError(SDKError, ValueError):
    """Persisted bytes do not parse as a well-formed record."""

    default_code = "decode"


class Unavailable(SDKError, LookupError):
    """A strict load found no record under the requested key."""

    default_code = "unavailable"


class ValidationError(SDKError, ValueError):
    """A Python value does not conform to its codec type."""

    default_code = "validation"


class CodecTypeError(SDKError, TypeError):
    """Raised when a codec type spec is malformed or unsupported."""

    default_code = "codec_type"


class BackendError(SDKError):
    """The storage backend is unusable or a record exceeds configured caps."""

    default_code = "backend"


__all__ = [
    "SDKError",
    "DecodeError",
    "Unavailable",
    "ValidationError",
    "CodecTypeError",
    "BackendError",
]
