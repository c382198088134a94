"""
contract_sdk.logging
--------------------

Logging setup for hosts embedding the SDK:
- JSON or concise text formats
- Context-local fields via `contextvars` (contract, storage_key, call, ...)
- Safe JSON serialization (bytes → hex, dataclasses → dicts)
- Stdlib only

Library modules never configure handlers; they log through
`logging.getLogger(__name__)` and leave output to the host:

    from contract_sdk import logging as slog

    slog.configure(level="DEBUG")          # once at process start
    with slog.scope(contract="ledger"):
        ledger.transfer(...)

Defaults for `configure()` come from contract_sdk.config
(CONTRACT_SDK_LOG_LEVEL / CONTRACT_SDK_LOG_FORMAT).
"""

from __future__ import annotations

import datetime as _dt
import io
import json
import logging
import sys
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Iterator, Optional

from .config import CFG

ROOT_LOGGER = "contract_sdk"

# ----------------------------
# Context
# ----------------------------

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("_LOG_CONTEXT", default={})

DEFAULT_CONTEXT_KEYS = (
    "contract",
    "call",
    "storage_key",
)


def context() -> Dict[str, Any]:
    """Return a *copy* of the active logging context."""
    return dict(_LOG_CONTEXT.get())


def bind(**fields: Any) -> None:
    """Merge fields into the active context."""
    cur = dict(_LOG_CONTEXT.get())
    cur.update({k: _coerce_value(v) for k, v in fields.items()})
    _LOG_CONTEXT.set(cur)


def unbind(*keys: str) -> None:
    cur = dict(_LOG_CONTEXT.get())
    for k in keys:
        cur.pop(k, None)
    _LOG_CONTEXT.set(cur)


def clear_context() -> None:
    _LOG_CONTEXT.set({})


@contextmanager
def scope(**fields: Any) -> Iterator[None]:
    """Bind `fields` for the duration of the block; restores prior context on exit."""
    prev = dict(_LOG_CONTEXT.get())
    try:
        bind(**fields)
        yield
    finally:
        _LOG_CONTEXT.set(prev)


# ----------------------------
# JSON & Text formatters
# ----------------------------

_RESERVED = frozenset(
    (
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
    )
)


def _coerce_value(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, (bytes, bytearray)):
        return bytes(v).hex()
    if is_dataclass(v) and not isinstance(v, type):
        return asdict(v)
    return str(v)


def _utcnow_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for k, v in record.__dict__.items():
        if k.startswith("_") or k in _RESERVED:
            continue
        out[k] = _coerce_value(v)
    return out


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utcnow_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(context())
        for k, v in _extras(record).items():
            payload.setdefault(k, v)
        if record.exc_info:
            payload["err"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return json.dumps(payload, default=str, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """
    Human-friendly one-liner:
      2026-01-05T12:34:56.789+00:00 | DEBUG | contract_sdk.storage.map | storage_key=6d79.. | flushed map
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = context()
        ctx_parts = [f"{k}={ctx[k]}" for k in DEFAULT_CONTEXT_KEYS if ctx.get(k) is not None]
        extra_parts = [
            f"{k}={v}" for k, v in _extras(record).items() if k not in ctx and k not in DEFAULT_CONTEXT_KEYS
        ]
        line = f"{_utcnow_iso()} | {record.levelname:<5} | {record.name}"
        if ctx_parts:
            line += " | " + " ".join(ctx_parts)
        if extra_parts:
            line += " " + " ".join(extra_parts)
        line += f" | {record.getMessage()}"
        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


# ----------------------------
# Public setup API
# ----------------------------


def configure(
    *,
    json: Optional[bool] = None,
    level: str | int | None = None,
    stream: io.TextIOBase = sys.stderr,
) -> logging.Logger:
    """
    Attach a single console handler to the `contract_sdk` logger.

    Parameters
    ----------
    json : bool | None
        If None, determined by CONTRACT_SDK_LOG_FORMAT.
    level : str | int | None
        Minimum log level; defaults to CONTRACT_SDK_LOG_LEVEL.
    stream : TextIO
        Stream for the console handler (default: stderr).
    """
    chosen_json = json if json is not None else CFG.log_format == "json"
    lvl = _coerce_level(level if level is not None else CFG.log_level)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(lvl)
    for h in list(logger.handlers):
        logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setLevel(lvl)
    handler.setFormatter(JSONFormatter() if chosen_json else TextFormatter())
    logger.addHandler(handler)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger under the `contract_sdk` hierarchy."""
    if not name or name == ROOT_LOGGER:
        return logging.getLogger(ROOT_LOGGER)
    if name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


_LEVEL_TO_INT = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return _LEVEL_TO_INT.get(level.upper(), logging.INFO)


# Libraries should not emit "No handler found" warnings.
logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())

__all__ = [
    "context",
    "bind",
    "unbind",
    "clear_context",
    "scope",
    "JSONFormatter",
    "TextFormatter",
    "configure",
    "get_logger",
]
