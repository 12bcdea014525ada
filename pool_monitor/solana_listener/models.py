"""
Data models for the pool creation pipeline.

LogEntry (stream) → TransactionRecord (fetch) → Initialize2Payload / PoolAccounts
(decode) → TokenInfo (metadata) → PoolCreationEvent (report). All frozen; an
event is assembled once and never mutated.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from solders.instruction import CompiledInstruction
from solders.pubkey import Pubkey

# discriminator u8, nonce u8, open_time u64, init_pc_amount u64, init_coin_amount u64
INITIALIZE2_FORMAT = "<BBQQQ"
INITIALIZE2_SIZE = struct.calcsize(INITIALIZE2_FORMAT)  # 26


@dataclass(frozen=True)
class LogEntry:
    """
    One logsNotification value: the transaction signature and its program log lines.
    """

    signature: str
    logs: tuple[str, ...]
    err: Any = None  # None if the transaction succeeded
    slot: int | None = None

    @classmethod
    def from_notification(cls, params: dict[str, Any]) -> "LogEntry":
        """Build from logsNotification params ({"result": {"context": ..., "value": ...}})."""
        result = params.get("result") or {}
        value = result.get("value") or {}
        context = result.get("context") or {}
        return cls(
            signature=str(value["signature"]),
            logs=tuple(value.get("logs") or ()),
            err=value.get("err"),
            slot=context.get("slot"),
        )


@dataclass(frozen=True)
class TransactionRecord:
    """
    Decoded getTransaction result.

    account_keys is the flattened table instructions index into: static keys,
    then loaded writable, then loaded readonly addresses.
    """

    signature: str
    slot: int | None
    block_time: int | None
    account_keys: tuple[Pubkey, ...]
    instructions: tuple[CompiledInstruction, ...]


@dataclass(frozen=True)
class Initialize2Payload:
    """Raydium AMM V4 initialize2 instruction arguments."""

    discriminator: int
    nonce: int
    open_time: int
    init_pc_amount: int
    """Initial quote (pc) amount in raw token units."""
    init_coin_amount: int
    """Initial base (coin) amount in raw token units."""

    def encode(self) -> bytes:
        return struct.pack(
            INITIALIZE2_FORMAT,
            self.discriminator,
            self.nonce,
            self.open_time,
            self.init_pc_amount,
            self.init_coin_amount,
        )


@dataclass(frozen=True)
class PoolAccounts:
    lp_address: Pubkey
    token_a_mint: Pubkey
    token_b_mint: Pubkey


@dataclass(frozen=True)
class MintInfo:
    decimals: int
    is_initialized: bool = True


@dataclass(frozen=True)
class TokenInfo:
    """Mint address with a display name and decimal precision; always populated."""

    address: str
    name: str
    decimals: int

    def to_dict(self) -> dict[str, Any]:
        return {"address": self.address, "name": self.name, "decimals": self.decimals}


@dataclass(frozen=True)
class PoolCreationEvent:
    """
    A newly created liquidity pool, assembled from one initialize2 transaction.

    token_a is the coin (base) side, token_b the pc (quote) side.
    observed_delay_seconds is None when the ledger did not report a block time.
    """

    signature: str
    lp_address: str
    token_a: TokenInfo
    token_a_amount: Decimal
    token_b: TokenInfo
    token_b_amount: Decimal
    open_time: int
    observed_delay_seconds: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serializable dict; amounts are rendered as strings to keep precision."""
        out: dict[str, Any] = {
            "signature": self.signature,
            "lp_address": self.lp_address,
            "token_a": self.token_a.to_dict(),
            "token_a_amount": str(self.token_a_amount),
            "token_b": self.token_b.to_dict(),
            "token_b_amount": str(self.token_b_amount),
            "open_time": self.open_time,
        }
        if self.observed_delay_seconds is not None:
            out["observed_delay_seconds"] = self.observed_delay_seconds
        return out
