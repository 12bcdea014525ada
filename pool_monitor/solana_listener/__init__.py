"""
Solana listener package.

Subscribes to program logs, fetches and decodes matching transactions, and
resolves token metadata into PoolCreationEvent records.
"""

from pool_monitor.solana_listener.models import (
    Initialize2Payload,
    LogEntry,
    PoolCreationEvent,
    TokenInfo,
    TransactionRecord,
)
from pool_monitor.solana_listener.parser import (
    decode_initialize2,
    decode_transaction,
    locate_instruction,
    resolve_pool_accounts,
)

__all__ = [
    "Initialize2Payload",
    "LogEntry",
    "PoolCreationEvent",
    "TokenInfo",
    "TransactionRecord",
    "decode_initialize2",
    "decode_transaction",
    "locate_instruction",
    "resolve_pool_accounts",
]
