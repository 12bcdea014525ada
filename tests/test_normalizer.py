"""
Tests for amount normalization, delay computation and event assembly.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from solders.pubkey import Pubkey

from pool_monitor.solana_listener.models import PoolAccounts, TokenInfo
from pool_monitor.solana_listener.normalizer import assemble_event, normalize_amount, observed_delay


@pytest.mark.parametrize("decimals", [0, 1, 6, 9, 18])
def test_normalize_zero_and_unit(decimals):
    assert normalize_amount(0, decimals) == 0
    assert normalize_amount(10**decimals, decimals) == 1


def test_normalize_base_amount_nine_decimals():
    assert normalize_amount(1_500_000_000_000, 9) == Decimal("1500")
    assert float(normalize_amount(1_500_000_000_000, 9)) == 1500.0


def test_normalize_u64_max():
    assert normalize_amount(2**64 - 1, 6) == Decimal("18446744073709.551615")


def test_observed_delay():
    assert observed_delay(1_000, 1_045) == 45
    assert observed_delay(1_000, 990) == 0
    assert observed_delay(1_000, 1_000.9) == 0
    assert observed_delay(None, 1_045) is None


def test_assemble_event_pairs_coin_with_token_a(initialize2_payload):
    accounts = PoolAccounts(
        lp_address=Pubkey.new_unique(),
        token_a_mint=Pubkey.new_unique(),
        token_b_mint=Pubkey.new_unique(),
    )
    token_a = TokenInfo(address=str(accounts.token_a_mint), name="MEME", decimals=9)
    token_b = TokenInfo(address=str(accounts.token_b_mint), name="Wrapped SOL", decimals=9)
    event = assemble_event(
        "sig",
        accounts,
        initialize2_payload,
        token_a,
        token_b,
        block_time=1_000,
        now=1_045,
    )
    assert event.lp_address == str(accounts.lp_address)
    assert event.token_a_amount == Decimal("1500")
    assert event.token_b_amount == Decimal("25")
    assert event.open_time == 1_700_000_000
    assert event.observed_delay_seconds == 45

    out = event.to_dict()
    assert out["token_a"]["name"] == "MEME"
    assert out["observed_delay_seconds"] == 45


def test_event_without_block_time_omits_delay(initialize2_payload):
    accounts = PoolAccounts(Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique())
    token = TokenInfo(address="x", name="X", decimals=0)
    event = assemble_event("sig", accounts, initialize2_payload, token, token, block_time=None, now=5)
    assert event.observed_delay_seconds is None
    assert "observed_delay_seconds" not in event.to_dict()
