from __future__ import annotations

import io
import json
import logging
from typing import Iterator

import pytest

from contract_sdk import logging as slog
from contract_sdk import version
from contract_sdk.config import SENTINEL, STORAGE_KEY_BYTES, load_config
from contract_sdk.errors import (BackendError, CodecTypeError, DecodeError,
                                 SDKError, Unavailable, ValidationError)


@pytest.fixture()
def fresh_config() -> Iterator[None]:
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    yield
    slog.clear_context()
    logger = logging.getLogger(slog.ROOT_LOGGER)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def test_defaults(fresh_config: None, monkeypatch: pytest.MonkeyPatch) -> None:
    for var in (
        "CONTRACT_SDK_STRICT",
        "CONTRACT_SDK_MAX_MAP_ENTRIES",
        "CONTRACT_SDK_MAX_VALUE_BYTES",
        "CONTRACT_SDK_LOG_LEVEL",
        "CONTRACT_SDK_LOG_FORMAT",
    ):
        monkeypatch.delenv(var, raising=False)
    cfg = load_config()
    assert cfg.as_dict() == {
        "strict_decode": True,
        "max_map_entries": 65536,
        "max_value_bytes": 1 << 20,
        "log_level": "WARNING",
        "log_format": "text",
    }
    assert STORAGE_KEY_BYTES == 32
    assert SENTINEL == bytes(32)


def test_env_overrides(fresh_config: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CONTRACT_SDK_STRICT", "off")
    monkeypatch.setenv("CONTRACT_SDK_MAX_MAP_ENTRIES", "0x100")
    monkeypatch.setenv("CONTRACT_SDK_MAX_VALUE_BYTES", "1")
    monkeypatch.setenv("CONTRACT_SDK_LOG_LEVEL", "debug")
    monkeypatch.setenv("CONTRACT_SDK_LOG_FORMAT", "JSON")
    cfg = load_config()
    assert cfg.strict_decode is False
    assert cfg.max_map_entries == 256
    assert cfg.max_value_bytes == 32  # clamped: the sentinel must always fit
    assert cfg.log_level == "DEBUG"
    assert cfg.log_format == "json"


def test_bad_env_values_fall_back_to_defaults(fresh_config: None, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CONTRACT_SDK_MAX_MAP_ENTRIES", "lots")
    monkeypatch.setenv("CONTRACT_SDK_LOG_FORMAT", "xml")
    cfg = load_config()
    assert cfg.max_map_entries == 65536
    assert cfg.log_format == "text"


def test_config_is_frozen_and_overridable() -> None:
    cfg = load_config()
    with pytest.raises(Exception):
        cfg.strict_decode = False  # type: ignore[misc]
    relaxed = cfg.with_overrides(strict_decode=False)
    assert relaxed.strict_decode is False


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "cls, code, builtin",
    [
        (DecodeError, "decode", ValueError),
        (Unavailable, "unavailable", LookupError),
        (ValidationError, "validation", ValueError),
        (CodecTypeError, "codec_type", TypeError),
        (BackendError, "backend", Exception),
    ],
)
def test_error_codes_and_builtin_bases(cls, code: str, builtin: type) -> None:
    err = cls("boom", context={"offset": 3})
    assert isinstance(err, SDKError)
    assert isinstance(err, builtin)
    assert err.code == code
    assert str(err) == "boom (offset=3)"
    assert err.to_dict() == {"code": code, "message": "boom", "context": {"offset": 3}}


def test_error_code_override() -> None:
    err = SDKError("x", code="custom")
    assert err.code == "custom"
    assert str(err) == "x"
    assert {err}  # errors stay hashable


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def test_scope_binds_and_restores_context() -> None:
    slog.bind(contract="ledger")
    with slog.scope(call="transfer", storage_key=b"\x01\x02"):
        assert slog.context() == {"contract": "ledger", "call": "transfer", "storage_key": "0102"}
    assert slog.context() == {"contract": "ledger"}
    slog.unbind("contract")
    assert slog.context() == {}


def test_json_formatter_includes_context_and_extras() -> None:
    buf = io.StringIO()
    slog.configure(json=True, level="DEBUG", stream=buf)
    log = slog.get_logger("storage.map")
    assert log.name == "contract_sdk.storage.map"
    with slog.scope(contract="ledger"):
        log.debug("flushed map", extra={"entries": 2, "raw": b"\xff"})
    payload = json.loads(buf.getvalue().strip())
    assert payload["msg"] == "flushed map"
    assert payload["level"] == "DEBUG"
    assert payload["logger"] == "contract_sdk.storage.map"
    assert payload["contract"] == "ledger"
    assert payload["entries"] == 2
    assert payload["raw"] == "ff"


def test_text_formatter_one_liner() -> None:
    buf = io.StringIO()
    slog.configure(json=False, level=logging.INFO, stream=buf)
    log = slog.get_logger()
    log.debug("hidden")
    with slog.scope(storage_key="abcd"):
        log.info("loaded map", extra={"entries": 1})
    line = buf.getvalue().strip()
    assert "\n" not in line
    assert "| INFO  | contract_sdk | storage_key=abcd entries=1 | loaded map" in line


def test_configure_replaces_handlers() -> None:
    slog.configure(stream=io.StringIO())
    logger = slog.configure(stream=io.StringIO())
    assert len(logger.handlers) == 1


def test_version_string() -> None:
    assert isinstance(version(), str) and version()


def test_version_falls_back_to_format_version(monkeypatch: pytest.MonkeyPatch) -> None:
    import importlib
    from importlib import metadata as importlib_metadata

    # the package re-binds `version` to a function, so fetch the module itself
    version_mod = importlib.import_module("contract_sdk.version")

    def _missing(name: str) -> str:
        raise importlib_metadata.PackageNotFoundError(name)

    monkeypatch.delenv("CONTRACT_SDK_VERSION", raising=False)
    monkeypatch.setattr(version_mod.importlib_metadata, "version", _missing)
    assert version_mod._resolve() == version_mod.FORMAT_VERSION + "+src"
    monkeypatch.setenv("CONTRACT_SDK_VERSION", "9.9.9")
    assert version_mod._resolve() == "9.9.9"
