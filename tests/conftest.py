"""
Pytest fixtures for pool monitor tests. Ledger access is faked in memory;
no network is used.
"""

from __future__ import annotations

import base64
from typing import Any, Sequence

import pytest
from solders.hash import Hash
from solders.instruction import CompiledInstruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from pool_monitor.config.settings import (
    RAYDIUM_AMM_V4_PROGRAM_ID,
    TOKEN_METADATA_PROGRAM_ID,
    MonitorSettings,
)
from pool_monitor.core.exceptions import AccountNotFound
from pool_monitor.solana_listener.models import Initialize2Payload

RAYDIUM_PROGRAM = Pubkey.from_string(RAYDIUM_AMM_V4_PROGRAM_ID)
METADATA_PROGRAM = Pubkey.from_string(TOKEN_METADATA_PROGRAM_ID)


class FakeLedger:
    """
    In-memory ledger client: accounts by address, queued getTransaction results.

    An account or transaction value that is an exception instance is raised.
    """

    def __init__(self) -> None:
        self.accounts: dict[str, bytes | BaseException] = {}
        self.transactions: list[Any] = []
        self.transaction_calls: list[tuple[str, dict[str, Any]]] = []
        self.account_calls: list[str] = []

    async def get_transaction(self, signature: str, **kwargs: Any) -> dict[str, Any] | None:
        self.transaction_calls.append((signature, kwargs))
        result = self.transactions.pop(0) if self.transactions else None
        if isinstance(result, BaseException):
            raise result
        return result

    async def get_account_data(self, address: Pubkey | str) -> bytes:
        addr = str(address)
        self.account_calls.append(addr)
        value = self.accounts.get(addr)
        if value is None:
            raise AccountNotFound(addr)
        if isinstance(value, BaseException):
            raise value
        return value

    def derive_address(self, seeds: Sequence[bytes], program_id: Pubkey) -> Pubkey:
        pda, _ = Pubkey.find_program_address(list(seeds), program_id)
        return pda


def _mint_data(decimals: int) -> bytes:
    data = bytearray(82)
    data[44] = decimals
    data[45] = 1
    return bytes(data)


def _metadata_data(name: str, *, pad_to: int = 32, key: int = 4) -> bytes:
    encoded = name.encode("utf-8").ljust(pad_to, b"\x00")
    return bytes([key]) + bytes(64) + bytes([len(encoded)]) + encoded + bytes(10)


def _metadata_address(mint: Pubkey) -> Pubkey:
    pda, _ = Pubkey.find_program_address(
        [b"metadata", bytes(METADATA_PROGRAM), bytes(mint)], METADATA_PROGRAM
    )
    return pda


def _raw_transaction(
    payload: bytes,
    *,
    keys: list[Pubkey] | None = None,
    extra_instructions: Sequence[CompiledInstruction] = (),
    block_time: int | None = 1_000,
    loaded_writable: Sequence[str] = (),
) -> tuple[dict[str, Any], list[Pubkey]]:
    """
    Base64 getTransaction result whose account table has the AMM program at
    index 10 and an initialize2 instruction carrying payload.
    """
    if keys is None:
        keys = [Pubkey.new_unique() for _ in range(10)] + [RAYDIUM_PROGRAM]
    program_index = keys.index(RAYDIUM_PROGRAM) if RAYDIUM_PROGRAM in keys else 0
    instructions = list(extra_instructions) + [
        CompiledInstruction(program_index, payload, bytes(range(min(len(keys), 10)))),
    ]
    message = Message.new_with_compiled_instructions(
        1, 0, 1, keys, Hash.default(), instructions
    )
    tx = VersionedTransaction.populate(message, [Keypair().sign_message(b"pool")])
    raw = {
        "slot": 250_000_000,
        "blockTime": block_time,
        "meta": {
            "err": None,
            "loadedAddresses": {"writable": list(loaded_writable), "readonly": []},
        },
        "transaction": [base64.b64encode(bytes(tx)).decode(), "base64"],
        "version": "legacy",
    }
    return raw, keys


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def mint_data():
    return _mint_data


@pytest.fixture
def metadata_data():
    return _metadata_data


@pytest.fixture
def metadata_address():
    return _metadata_address


@pytest.fixture
def raw_transaction():
    return _raw_transaction


@pytest.fixture
def signature() -> str:
    return str(Keypair().sign_message(b"initialize2"))


@pytest.fixture
def initialize2_payload() -> Initialize2Payload:
    return Initialize2Payload(
        discriminator=1,
        nonce=254,
        open_time=1_700_000_000,
        init_pc_amount=25_000_000_000,
        init_coin_amount=1_500_000_000_000,
    )


@pytest.fixture
def settings() -> MonitorSettings:
    return MonitorSettings(
        rpc_url="https://rpc.test",
        ws_url="wss://rpc.test",
        prefetch_delay_sec=0.0,
        retry_delay_sec=0.0,
    )
