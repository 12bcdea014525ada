"""
Tests for transaction decoding, instruction lookup, initialize2 payload and account layout.
"""

from __future__ import annotations

import base64
import struct

import pytest
from solders.instruction import CompiledInstruction
from solders.pubkey import Pubkey

from pool_monitor.config.settings import RAYDIUM_AMM_V4_PROGRAM_ID
from pool_monitor.core.exceptions import DecodeError, MalformedPayload, TransactionDecodeError
from pool_monitor.solana_listener.models import Initialize2Payload, TransactionRecord
from pool_monitor.solana_listener.parser import (
    RAYDIUM_AMM_V4_INITIALIZE2,
    AccountLayout,
    decode_initialize2,
    decode_transaction,
    locate_instruction,
    resolve_pool_accounts,
)

RAYDIUM_PROGRAM = Pubkey.from_string(RAYDIUM_AMM_V4_PROGRAM_ID)


def test_initialize2_roundtrip(initialize2_payload):
    raw = initialize2_payload.encode()
    assert len(raw) == 26
    assert decode_initialize2(raw) == initialize2_payload


def test_initialize2_field_layout():
    raw = struct.pack("<BBQQQ", 1, 7, 1_700_000_000, 10, 20)
    payload = decode_initialize2(raw)
    assert payload.nonce == 7
    assert payload.open_time == 1_700_000_000
    assert payload.init_pc_amount == 10
    assert payload.init_coin_amount == 20


@pytest.mark.parametrize("length", [0, 1, 25, 27, 64])
def test_initialize2_length_mismatch(length):
    with pytest.raises(MalformedPayload):
        decode_initialize2((b"\x01" + bytes(100))[:length])


def test_initialize2_wrong_discriminator():
    raw = Initialize2Payload(9, 0, 0, 0, 0).encode()
    with pytest.raises(MalformedPayload):
        decode_initialize2(raw)


def test_malformed_payload_is_decode_error():
    assert issubclass(MalformedPayload, DecodeError)


def _record(keys, instructions):
    return TransactionRecord(
        signature="sig",
        slot=1,
        block_time=None,
        account_keys=tuple(keys),
        instructions=tuple(instructions),
    )


def test_locate_instruction_first_match():
    keys = [Pubkey.new_unique(), RAYDIUM_PROGRAM, Pubkey.new_unique()]
    first = CompiledInstruction(1, b"\x01first", b"")
    second = CompiledInstruction(1, b"\x01second", b"")
    other = CompiledInstruction(2, b"other", b"")
    assert locate_instruction(_record(keys, [other, first, second]), RAYDIUM_PROGRAM) == first


def test_locate_instruction_absent_and_out_of_range():
    keys = [Pubkey.new_unique(), Pubkey.new_unique()]
    ixs = [CompiledInstruction(0, b"", b""), CompiledInstruction(42, b"", b"")]
    assert locate_instruction(_record(keys, ixs), RAYDIUM_PROGRAM) is None


def test_resolve_pool_accounts_fixed_positions():
    keys = [Pubkey.new_unique() for _ in range(12)]
    accounts = resolve_pool_accounts(keys)
    assert accounts.lp_address == keys[4]
    assert accounts.token_a_mint == keys[8]
    assert accounts.token_b_mint == keys[9]


def test_resolve_pool_accounts_custom_layout():
    keys = [Pubkey.new_unique() for _ in range(4)]
    layout = AccountLayout(version="test@1", lp=0, coin_mint=2, pc_mint=3)
    accounts = resolve_pool_accounts(keys, layout)
    assert (accounts.lp_address, accounts.token_a_mint, accounts.token_b_mint) == (
        keys[0],
        keys[2],
        keys[3],
    )


def test_resolve_pool_accounts_short_table():
    keys = [Pubkey.new_unique() for _ in range(RAYDIUM_AMM_V4_INITIALIZE2.min_accounts - 1)]
    with pytest.raises(DecodeError):
        resolve_pool_accounts(keys)


def test_decode_transaction(raw_transaction, initialize2_payload, signature):
    raw, keys = raw_transaction(initialize2_payload.encode(), block_time=1_234)
    record = decode_transaction(signature, raw)
    assert record.signature == signature
    assert record.block_time == 1_234
    assert record.slot == 250_000_000
    assert list(record.account_keys) == keys
    ix = locate_instruction(record, RAYDIUM_PROGRAM)
    assert ix is not None
    assert decode_initialize2(ix.data) == initialize2_payload


def test_decode_transaction_appends_loaded_addresses(raw_transaction, initialize2_payload):
    loaded = Pubkey.new_unique()
    raw, keys = raw_transaction(initialize2_payload.encode(), loaded_writable=[str(loaded)])
    record = decode_transaction("sig", raw)
    assert record.account_keys[: len(keys)] == tuple(keys)
    assert record.account_keys[-1] == loaded


def test_decode_transaction_missing_block_time(raw_transaction, initialize2_payload):
    raw, _ = raw_transaction(initialize2_payload.encode(), block_time=None)
    assert decode_transaction("sig", raw).block_time is None


@pytest.mark.parametrize(
    "tx_field",
    [
        None,
        [],
        ["AAAA", "base58"],
        ["not base64!!", "base64"],
        [base64.b64encode(b"\x01\x02\x03").decode(), "base64"],
    ],
)
def test_decode_transaction_errors(tx_field):
    with pytest.raises(TransactionDecodeError):
        decode_transaction("sig", {"transaction": tx_field, "blockTime": 1})
