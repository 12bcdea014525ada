"""
Log filter: picks out log entries that announce a pool initialization.

Pure: substring match over program log lines, then signature validation.
"""

from __future__ import annotations

from typing import Iterable

from solders.signature import Signature

from pool_monitor.core.exceptions import MalformedSignature
from pool_monitor.solana_listener.models import LogEntry


def contains_marker(lines: Iterable[str], marker: str) -> bool:
    """True if any log line contains marker (case-sensitive)."""
    return any(marker in line for line in lines)


def parse_signature(raw: str) -> Signature:
    """Parse a base58 transaction signature; raise MalformedSignature if it is not one."""
    try:
        return Signature.from_string(raw)
    except ValueError as e:
        raise MalformedSignature(raw, str(e)) from e


def match_log_entry(entry: LogEntry, marker: str) -> Signature | None:
    """
    Return the entry's signature if its logs contain marker, else None.

    Raises:
        MalformedSignature: the logs matched but the signature does not parse.
    """
    if not contains_marker(entry.logs, marker):
        return None
    return parse_signature(entry.signature)
