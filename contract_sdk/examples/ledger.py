"""
Token ledger example contract built on contract_sdk.

Storage layout:

    "ledger:meta"        TokenMeta struct (symbol, decimals, total supply)
    "ledger:balances"    map<bytes32, u128>                    owner -> balance
    "ledger:allowances"  map<bytes32, map<bytes32, u128>>      owner -> spender -> amount

Every entrypoint loads what it needs, mutates in memory and flushes before
returning, so a failed check leaves the store untouched.

Public functions:

    init(owner, symbol, decimals, supply) -> None
    meta() -> TokenMeta
    balance_of(owner) -> int
    transfer(sender, to, amount) -> None
    approve(owner, spender, amount) -> None
    allowance(owner, spender) -> int
    transfer_from(spender, owner, to, amount) -> None

Addresses are opaque 32-byte values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Final

from ..codec import codec_field, struct
from ..errors import SDKError, Unavailable
from ..storage import Map, Storage, flush_all

K_META: Final[str] = "ledger:meta"
K_BALANCES: Final[str] = "ledger:balances"
K_ALLOWANCES: Final[str] = "ledger:allowances"

MAX_AMOUNT: Final[int] = (1 << 128) - 1


@dataclass
class TokenMeta:
    symbol: str = codec_field("str")
    decimals: int = codec_field("u8")
    total_supply: int = codec_field("u128")


META_TYPE = struct(TokenMeta)


class LedgerError(SDKError):
    default_code = "ledger"


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise LedgerError(msg)


class Ledger:
    def __init__(self, storage: Storage) -> None:
        self._storage = storage

    def _balances(self) -> Map[bytes, int]:
        return Map.load_or_create(K_BALANCES, "bytes32", "u128", storage=self._storage)

    def _allowances(self) -> Map[bytes, Dict[bytes, int]]:
        return Map.load_or_create(K_ALLOWANCES, "bytes32", "map<bytes32,u128>", storage=self._storage)

    def init(self, owner: bytes, symbol: str, decimals: int, supply: int) -> None:
        _require(not self._storage.contains(K_META), "ledger: already initialized")
        _require(0 <= supply <= MAX_AMOUNT, "ledger: supply out of range")
        meta = META_TYPE.validate(TokenMeta(symbol, decimals, supply))
        balances = Map.new(K_BALANCES, "bytes32", "u128", storage=self._storage)
        balances[owner] = supply
        self._storage.put(K_META, meta, META_TYPE)
        balances.flush()

    def meta(self) -> TokenMeta:
        m = self._storage.get(K_META, META_TYPE)
        if m is None:
            raise Unavailable("ledger: not initialized")
        return m

    def balance_of(self, owner: bytes) -> int:
        return self._balances().get(owner, 0)

    def _move(self, balances: Map[bytes, int], sender: bytes, to: bytes, amount: int) -> None:
        _require(amount > 0, "ledger: amount must be positive")
        have = balances.get(sender, 0)
        _require(have >= amount, "ledger: insufficient balance")
        if have == amount:
            balances.remove(sender)
        else:
            balances[sender] = have - amount
        balances[to] = balances.get(to, 0) + amount

    def transfer(self, sender: bytes, to: bytes, amount: int) -> None:
        balances = self._balances()
        self._move(balances, sender, to, amount)
        balances.flush()

    def approve(self, owner: bytes, spender: bytes, amount: int) -> None:
        _require(0 <= amount <= MAX_AMOUNT, "ledger: amount out of range")
        allowances = self._allowances()
        per_owner = allowances.get_mut(owner)
        if per_owner is None:
            per_owner = {}
            allowances[owner] = per_owner
        if amount == 0:
            per_owner.pop(spender, None)
        else:
            per_owner[spender] = amount
        allowances.flush()

    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self._allowances().get(owner, {}).get(spender, 0)

    def transfer_from(self, spender: bytes, owner: bytes, to: bytes, amount: int) -> None:
        allowances = self._allowances()
        per_owner = allowances.get_mut(owner) or {}
        allowed = per_owner.get(spender, 0)
        _require(allowed >= amount, "ledger: allowance exceeded")

        balances = self._balances()
        self._move(balances, owner, to, amount)

        if allowed == amount:
            per_owner.pop(spender)
        else:
            per_owner[spender] = allowed - amount
        flush_all(balances, allowances)
