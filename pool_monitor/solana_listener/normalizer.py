"""
Amount normalization and pool event assembly.

Raw u64 token amounts become Decimal display quantities; the observed delay is
the wall-clock gap since the transaction's block time, clamped at zero.
"""

from __future__ import annotations

from decimal import Decimal

from pool_monitor.solana_listener.models import (
    Initialize2Payload,
    PoolAccounts,
    PoolCreationEvent,
    TokenInfo,
)


def normalize_amount(raw_amount: int, decimals: int) -> Decimal:
    """raw_amount / 10**decimals, exact."""
    return Decimal(raw_amount).scaleb(-decimals)


def observed_delay(block_time: int | None, now: float) -> int | None:
    """Seconds between block_time and now, never negative; None without a block time."""
    if block_time is None:
        return None
    return max(0, int(now) - int(block_time))


def assemble_event(
    signature: str,
    accounts: PoolAccounts,
    payload: Initialize2Payload,
    token_a: TokenInfo,
    token_b: TokenInfo,
    *,
    block_time: int | None,
    now: float,
) -> PoolCreationEvent:
    """Token A is paired with the coin amount, token B with the pc amount."""
    return PoolCreationEvent(
        signature=signature,
        lp_address=str(accounts.lp_address),
        token_a=token_a,
        token_a_amount=normalize_amount(payload.init_coin_amount, token_a.decimals),
        token_b=token_b,
        token_b_amount=normalize_amount(payload.init_pc_amount, token_b.decimals),
        open_time=payload.open_time,
        observed_delay_seconds=observed_delay(block_time, now),
    )
