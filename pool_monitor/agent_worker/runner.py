"""
Pipeline runner: log stream → filter → fetch → decode → resolve → report.

One background task reads the log stream into a bounded queue; the foreground
consumer processes entries strictly one at a time, in arrival order. Any error
while handling a single entry is logged and reported, and the consumer moves
on. Only the end of the stream stops the run.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from typing import Awaitable, Callable

from solders.pubkey import Pubkey

from pool_monitor.alerts.reporter import EventReporter, LogReporter
from pool_monitor.config.env import mask_api_key
from pool_monitor.config.settings import MonitorSettings
from pool_monitor.core.exceptions import (
    DecodeError,
    FetchExhausted,
    MalformedSignature,
    PoolMonitorError,
)
from pool_monitor.monitor_logging import bind_signature, get_logger
from pool_monitor.solana_listener.fetcher import RetryPolicy, TransactionFetcher, fixed_backoff
from pool_monitor.solana_listener.listener import LogStream
from pool_monitor.solana_listener.log_filter import match_log_entry
from pool_monitor.solana_listener.metadata import MetadataResolver
from pool_monitor.solana_listener.models import LogEntry, PoolCreationEvent
from pool_monitor.solana_listener.normalizer import assemble_event
from pool_monitor.solana_listener.parser import (
    RAYDIUM_AMM_V4_INITIALIZE2,
    AccountLayout,
    decode_initialize2,
    locate_instruction,
    resolve_pool_accounts,
)
from pool_monitor.solana_listener.rpc import SolanaRpcClient

logger = get_logger(__name__)


class PoolMonitor:
    """Turns matching log entries into PoolCreationEvents, one at a time."""

    def __init__(
        self,
        settings: MonitorSettings,
        client: SolanaRpcClient,
        reporter: EventReporter | None = None,
        *,
        fetcher: TransactionFetcher | None = None,
        resolver: MetadataResolver | None = None,
        layout: AccountLayout = RAYDIUM_AMM_V4_INITIALIZE2,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._program_id = Pubkey.from_string(settings.program_id)
        self._reporter = reporter or LogReporter()
        self._fetcher = fetcher or TransactionFetcher(
            client,
            policy=RetryPolicy(
                max_attempts=settings.max_retries,
                backoff=fixed_backoff(settings.retry_delay_sec),
            ),
            commitment=settings.commitment,
            sleep=sleep,
        )
        self._resolver = resolver or MetadataResolver(
            client,
            settings.metadata_program_id,
            default_decimals=settings.default_decimals,
        )
        self._layout = layout
        self._clock = clock
        self._sleep = sleep
        self.processed = 0
        self.detected = 0
        self.failed = 0

    async def process_entry(self, entry: LogEntry) -> PoolCreationEvent | None:
        """
        Handle one log entry. Returns the event when a pool was assembled, else None.
        Never raises for per-event failures.
        """
        self.processed += 1
        try:
            signature = match_log_entry(entry, self._settings.log_marker)
        except MalformedSignature as e:
            self.failed += 1
            logger.error("signature_parse_failed", signature=entry.signature, error=str(e))
            self._reporter.report_error(entry.signature, e)
            return None
        if signature is None:
            return None

        sig = str(signature)
        log = bind_signature(sig)
        log.info("initialize2_detected", slot=entry.slot)
        await self._sleep(self._settings.prefetch_delay_sec)
        try:
            event = await self.process_signature(sig)
        except FetchExhausted as e:
            self.failed += 1
            log.error("tx_fetch_exhausted", attempts=e.attempts, error=str(e.last_error))
            self._reporter.report_error(sig, e)
            return None
        except DecodeError as e:
            self.failed += 1
            log.error("tx_decode_failed", error_type=type(e).__name__, error=str(e))
            self._reporter.report_error(sig, e)
            return None
        except PoolMonitorError as e:
            self.failed += 1
            log.error("tx_process_failed", error_type=type(e).__name__, error=str(e))
            self._reporter.report_error(sig, e)
            return None
        except Exception as e:
            self.failed += 1
            log.exception("tx_process_unexpected_error", error=str(e))
            self._reporter.report_error(sig, e)
            return None
        if event is not None:
            self.detected += 1
            self._reporter.report(event)
        return event

    async def process_signature(self, signature: str) -> PoolCreationEvent | None:
        """
        Fetch, decode and resolve one transaction. None if it has no AMM instruction.

        Raises:
            FetchExhausted, DecodeError: the event cannot be built.
        """
        record = await self._fetcher.fetch(signature)
        ix = locate_instruction(record, self._program_id)
        if ix is None:
            logger.info("pool_instruction_not_found", signature=signature)
            return None
        payload = decode_initialize2(ix.data)
        accounts = resolve_pool_accounts(record.account_keys, self._layout)
        token_a = await self._resolver.resolve_or_default(accounts.token_a_mint)
        token_b = await self._resolver.resolve_or_default(accounts.token_b_mint)
        return assemble_event(
            signature,
            accounts,
            payload,
            token_a,
            token_b,
            block_time=record.block_time,
            now=self._clock(),
        )

    async def consume(self, queue: asyncio.Queue[LogEntry | None]) -> None:
        """Drain queue until the None sentinel, one entry at a time."""
        while True:
            entry = await queue.get()
            try:
                if entry is None:
                    break
                await self.process_entry(entry)
            finally:
                queue.task_done()
        logger.info(
            "consumer_stopped",
            processed=self.processed,
            detected=self.detected,
            failed=self.failed,
        )

    async def run(self, stream: LogStream) -> None:
        """Run the stream as a background task and consume its queue in the foreground."""
        queue: asyncio.Queue[LogEntry | None] = asyncio.Queue(maxsize=self._settings.queue_maxsize)
        producer = asyncio.create_task(stream.run(queue))
        try:
            await self.consume(queue)
        finally:
            if not producer.done():
                producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await producer


async def run_monitor(settings: MonitorSettings, reporter: EventReporter | None = None) -> None:
    """Connect to the configured endpoints and monitor until the log stream ends."""
    logger.info(
        "monitor_starting",
        program_id=settings.program_id,
        rpc_url=mask_api_key(settings.rpc_url),
        ws_url=mask_api_key(settings.ws_url),
        commitment=settings.commitment,
    )
    stream = LogStream(settings.ws_url, settings.program_id, commitment=settings.commitment)
    async with SolanaRpcClient(
        settings.rpc_url,
        timeout=settings.request_timeout_sec,
        commitment=settings.commitment,
    ) as client:
        monitor = PoolMonitor(settings, client, reporter)
        await monitor.run(stream)
    logger.warning("monitor_stopped")
