"""
Application-level exceptions.

Per-event errors (everything except StreamError and ConfigError) are caught by
the pipeline runner, logged, and the next queued log entry is processed.
"""

from __future__ import annotations


class PoolMonitorError(Exception):
    """Base class for all pool monitor errors."""


class ConfigError(PoolMonitorError):
    """Invalid or missing configuration value."""


class StreamError(PoolMonitorError):
    """Log subscription could not be established or the connection failed."""


class MalformedSignature(PoolMonitorError):
    """A log entry carried a signature that is not valid base58 of the right length."""

    def __init__(self, raw: str, reason: str = "") -> None:
        self.raw = raw
        self.reason = reason
        super().__init__(f"malformed signature {raw!r}" + (f": {reason}" if reason else ""))


class RpcError(PoolMonitorError):
    """JSON-RPC error object or transport failure from the ledger node."""

    def __init__(self, method: str, message: str, code: int | None = None) -> None:
        self.method = method
        self.code = code
        super().__init__(f"{method} failed: {message}" + (f" (code={code})" if code is not None else ""))


class AccountNotFound(PoolMonitorError):
    """getAccountInfo returned no account for the address."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"account not found: {address}")


class FetchExhausted(PoolMonitorError):
    """Transaction could not be fetched within the retry limit."""

    def __init__(self, signature: str, last_error: BaseException | None, attempts: int = 0) -> None:
        self.signature = signature
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(
            f"failed to fetch transaction {signature} after {attempts} attempts: {last_error}"
        )


class DecodeError(PoolMonitorError):
    """Structurally invalid ledger data; retrying cannot fix it."""


class TransactionDecodeError(DecodeError):
    """getTransaction result could not be decoded into a transaction record."""


class MalformedPayload(DecodeError):
    """Instruction data does not match the initialize2 layout."""
