"""
Event reporter: renders detected pools and per-event failures.

LogReporter writes one structured pool_created record per event (with a
Solscan link) and one pool_event_failed record per dropped transaction.
CollectingReporter keeps events in memory for callers that post-process them.
"""

from __future__ import annotations

from typing import Protocol

from pool_monitor.monitor_logging import get_logger
from pool_monitor.solana_listener.models import PoolCreationEvent

logger = get_logger(__name__)

SOLSCAN_TX_URL = "https://solscan.io/tx/{signature}"
# Max error text kept in a failure record
MAX_ERROR_LENGTH = 500


def _error_truncate(text: str) -> str:
    if len(text) <= MAX_ERROR_LENGTH:
        return text
    return text[: MAX_ERROR_LENGTH - 3] + "..."


class EventReporter(Protocol):
    def report(self, event: PoolCreationEvent) -> None: ...

    def report_error(self, signature: str, error: BaseException) -> None: ...


class LogReporter:
    """Report through the structured logger."""

    def report(self, event: PoolCreationEvent) -> None:
        fields = event.to_dict()
        fields["transaction_url"] = SOLSCAN_TX_URL.format(signature=event.signature)
        logger.info("pool_created", **fields)

    def report_error(self, signature: str, error: BaseException) -> None:
        logger.error(
            "pool_event_failed",
            signature=signature,
            error_type=type(error).__name__,
            error=_error_truncate(str(error)),
        )


class CollectingReporter:
    """In-memory reporter; events and errors are appended in arrival order."""

    def __init__(self) -> None:
        self.events: list[PoolCreationEvent] = []
        self.errors: list[tuple[str, BaseException]] = []

    def report(self, event: PoolCreationEvent) -> None:
        self.events.append(event)

    def report_error(self, signature: str, error: BaseException) -> None:
        self.errors.append((signature, error))
