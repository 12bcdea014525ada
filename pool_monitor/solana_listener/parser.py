"""
Transaction parser: raw getTransaction results to pool creation fields.

Decodes a base64 transaction into a TransactionRecord, finds the instruction
that invokes the AMM program, unpacks its initialize2 payload and picks the
pool and mint addresses out of the account table. Purely structural; no RPC.
"""

from __future__ import annotations

import base64
import binascii
import struct
from dataclasses import dataclass
from typing import Any, Sequence

from solders.instruction import CompiledInstruction
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from pool_monitor.core.exceptions import DecodeError, MalformedPayload, TransactionDecodeError
from pool_monitor.monitor_logging import get_logger
from pool_monitor.solana_listener.models import (
    INITIALIZE2_FORMAT,
    INITIALIZE2_SIZE,
    Initialize2Payload,
    PoolAccounts,
    TransactionRecord,
)

logger = get_logger(__name__)

# Raydium AMM V4 instruction tag for initialize2
INITIALIZE2_DISCRIMINATOR = 1


@dataclass(frozen=True)
class AccountLayout:
    """
    Role → account-table index for one version of an instruction's account list.

    These positions are a contract with the upstream program; when it changes
    its layout, add a new descriptor instead of editing call sites.
    """

    version: str
    lp: int
    coin_mint: int
    pc_mint: int

    @property
    def min_accounts(self) -> int:
        return max(self.lp, self.coin_mint, self.pc_mint) + 1


RAYDIUM_AMM_V4_INITIALIZE2 = AccountLayout(
    version="raydium-amm-v4/initialize2@1",
    lp=4,
    coin_mint=8,
    pc_mint=9,
)


def _get_account_keys(message: Any, meta: dict[str, Any] | None) -> tuple[Pubkey, ...]:
    """
    Static account keys followed by meta.loadedAddresses (writable + readonly).
    """
    out = list(message.account_keys)
    loaded = (meta or {}).get("loadedAddresses") or {}
    for role in ("writable", "readonly"):
        for addr in loaded.get(role) or []:
            try:
                out.append(Pubkey.from_string(addr))
            except ValueError as e:
                raise TransactionDecodeError(f"invalid loaded address {addr!r}") from e
    return tuple(out)


def decode_transaction(signature: str, raw: dict[str, Any]) -> TransactionRecord:
    """
    Decode a base64-encoded getTransaction result.

    Raises:
        TransactionDecodeError: wrong encoding or bytes that are not a transaction.
    """
    tx_field = raw.get("transaction")
    if not isinstance(tx_field, (list, tuple)) or not tx_field:
        raise TransactionDecodeError(f"transaction {signature} is not base64-encoded")
    encoding = tx_field[1] if len(tx_field) > 1 else "base64"
    if encoding != "base64":
        raise TransactionDecodeError(f"unsupported transaction encoding {encoding!r}")
    try:
        tx_bytes = base64.b64decode(tx_field[0], validate=True)
    except (binascii.Error, TypeError, ValueError) as e:
        raise TransactionDecodeError(f"invalid base64 for transaction {signature}") from e
    try:
        tx = VersionedTransaction.from_bytes(tx_bytes)
    except Exception as e:
        raise TransactionDecodeError(f"failed to deserialize transaction {signature}: {e}") from e

    message = tx.message
    block_time = raw.get("blockTime")
    return TransactionRecord(
        signature=signature,
        slot=raw.get("slot"),
        block_time=int(block_time) if block_time is not None else None,
        account_keys=_get_account_keys(message, raw.get("meta")),
        instructions=tuple(message.instructions),
    )


def locate_instruction(
    record: TransactionRecord,
    program_id: Pubkey,
) -> CompiledInstruction | None:
    """First top-level instruction whose program index resolves to program_id, else None."""
    keys = record.account_keys
    for ix in record.instructions:
        idx = ix.program_id_index
        if 0 <= idx < len(keys) and keys[idx] == program_id:
            return ix
    logger.debug(
        "program_instruction_absent",
        signature=record.signature,
        program_id=str(program_id),
    )
    return None


def decode_initialize2(
    raw: bytes,
    expected_discriminator: int = INITIALIZE2_DISCRIMINATOR,
) -> Initialize2Payload:
    """
    Unpack initialize2 instruction data (26 bytes, little-endian).

    Raises:
        MalformedPayload: wrong length or not an initialize2 instruction.
    """
    data = bytes(raw)
    if len(data) != INITIALIZE2_SIZE:
        raise MalformedPayload(
            f"initialize2 payload must be {INITIALIZE2_SIZE} bytes, got {len(data)}"
        )
    discriminator, nonce, open_time, pc_amount, coin_amount = struct.unpack(
        INITIALIZE2_FORMAT, data
    )
    if discriminator != expected_discriminator:
        raise MalformedPayload(
            f"instruction tag {discriminator} is not initialize2 ({expected_discriminator})"
        )
    return Initialize2Payload(
        discriminator=discriminator,
        nonce=nonce,
        open_time=open_time,
        init_pc_amount=pc_amount,
        init_coin_amount=coin_amount,
    )


def resolve_pool_accounts(
    account_keys: Sequence[Pubkey],
    layout: AccountLayout = RAYDIUM_AMM_V4_INITIALIZE2,
) -> PoolAccounts:
    """Pool and mint addresses at the layout's fixed positions."""
    if len(account_keys) < layout.min_accounts:
        raise DecodeError(
            f"account table has {len(account_keys)} keys; layout {layout.version} "
            f"needs {layout.min_accounts}"
        )
    return PoolAccounts(
        lp_address=account_keys[layout.lp],
        token_a_mint=account_keys[layout.coin_mint],
        token_b_mint=account_keys[layout.pc_mint],
    )
