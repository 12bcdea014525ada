"""
Transaction fetcher: getTransaction with bounded retry.

A freshly logged transaction is often not queryable yet; the fetcher retries
under an injected RetryPolicy and raises FetchExhausted when the attempts run
out. Decoding failures are never retried.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Protocol

from pool_monitor.core.exceptions import FetchExhausted, PoolMonitorError
from pool_monitor.monitor_logging import get_logger
from pool_monitor.solana_listener.models import TransactionRecord
from pool_monitor.solana_listener.parser import decode_transaction

logger = get_logger(__name__)

Backoff = Callable[[int], float]


def fixed_backoff(delay_sec: float) -> Backoff:
    """Same delay after every failed attempt."""
    return lambda attempt: delay_sec


def exponential_backoff(base_sec: float, cap_sec: float = 60.0) -> Backoff:
    """base, 2*base, 4*base ... capped at cap_sec (attempt is 1-based)."""
    return lambda attempt: min(base_sec * (2 ** (attempt - 1)), cap_sec)


def _retry_any(error: BaseException) -> bool:
    return True


@dataclass(frozen=True)
class RetryPolicy:
    """max_attempts tries in total; backoff(attempt) seconds between them."""

    max_attempts: int = 3
    backoff: Backoff = field(default_factory=lambda: fixed_backoff(2.0))
    is_retryable: Callable[[BaseException], bool] = _retry_any

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


class TransactionNotAvailable(PoolMonitorError):
    """The node returned a null result; the transaction is not queryable yet."""


class TransactionSource(Protocol):
    async def get_transaction(
        self,
        signature: str,
        *,
        commitment: str = ...,
        encoding: str = ...,
        max_supported_transaction_version: int = ...,
    ) -> dict[str, Any] | None: ...


class TransactionFetcher:
    """Fetch and decode a transaction by signature, retrying transient failures."""

    def __init__(
        self,
        client: TransactionSource,
        *,
        policy: RetryPolicy | None = None,
        commitment: str = "confirmed",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._policy = policy or RetryPolicy()
        self._commitment = commitment
        self._sleep = sleep

    async def _fetch_raw(self, signature: str) -> dict[str, Any]:
        policy = self._policy
        last_error: BaseException | None = None
        attempt = 0
        while attempt < policy.max_attempts:
            attempt += 1
            try:
                raw = await self._client.get_transaction(
                    signature,
                    commitment=self._commitment,
                    encoding="base64",
                    max_supported_transaction_version=0,
                )
                if raw is None:
                    raise TransactionNotAvailable(f"transaction {signature} not found")
                if attempt > 1:
                    logger.info("tx_fetch_recovered", signature=signature, attempt=attempt)
                return raw
            except Exception as e:
                last_error = e
                if not policy.is_retryable(e):
                    logger.warning(
                        "tx_fetch_not_retryable",
                        signature=signature,
                        attempt=attempt,
                        error=str(e),
                    )
                    break
                logger.warning(
                    "tx_fetch_retry",
                    signature=signature,
                    attempt=attempt,
                    max_retries=policy.max_attempts,
                    error=str(e),
                )
                if attempt < policy.max_attempts:
                    await self._sleep(policy.backoff(attempt))
        raise FetchExhausted(signature, last_error, attempts=attempt)

    async def fetch(self, signature: str) -> TransactionRecord:
        """
        Return the decoded transaction.

        Raises:
            FetchExhausted: every attempt failed (last error attached).
            TransactionDecodeError: the node returned something that is not a transaction.
        """
        raw = await self._fetch_raw(signature)
        return decode_transaction(signature, raw)
