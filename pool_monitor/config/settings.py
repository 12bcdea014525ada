"""
Application settings.

MonitorSettings is immutable and passed explicitly to every component at
construction; nothing reads process state after startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from pool_monitor.config.env import get_solana_rpc_url, get_solana_ws_url, load_monitor_env
from pool_monitor.core.exceptions import ConfigError

RAYDIUM_AMM_V4_PROGRAM_ID = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
TOKEN_METADATA_PROGRAM_ID = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
INITIALIZE2_LOG_MARKER = "initialize2"

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_SEC = 2.0
DEFAULT_PREFETCH_DELAY_SEC = 0.5
DEFAULT_QUEUE_MAXSIZE = 100
DEFAULT_DECIMALS = 9
DEFAULT_RPC_TIMEOUT_SEC = 15.0

_COMMITMENTS = ("processed", "confirmed", "finalized")


@dataclass(frozen=True)
class MonitorSettings:
    """Connection endpoints, target programs and retry tuning for one monitor run."""

    rpc_url: str
    ws_url: str
    program_id: str = RAYDIUM_AMM_V4_PROGRAM_ID
    metadata_program_id: str = TOKEN_METADATA_PROGRAM_ID
    log_marker: str = INITIALIZE2_LOG_MARKER
    commitment: str = "confirmed"
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_sec: float = DEFAULT_RETRY_DELAY_SEC
    prefetch_delay_sec: float = DEFAULT_PREFETCH_DELAY_SEC
    queue_maxsize: int = DEFAULT_QUEUE_MAXSIZE
    default_decimals: int = DEFAULT_DECIMALS
    request_timeout_sec: float = DEFAULT_RPC_TIMEOUT_SEC

    def __post_init__(self) -> None:
        if not self.rpc_url.strip():
            raise ConfigError("rpc_url must be non-empty")
        if not self.ws_url.strip():
            raise ConfigError("ws_url must be non-empty")
        if not self.log_marker:
            raise ConfigError("log_marker must be non-empty")
        if self.commitment not in _COMMITMENTS:
            raise ConfigError(f"commitment must be one of {', '.join(_COMMITMENTS)}")
        if self.max_retries < 1:
            raise ConfigError("max_retries must be at least 1")
        if self.retry_delay_sec < 0 or self.prefetch_delay_sec < 0:
            raise ConfigError("delays must be non-negative")
        if self.queue_maxsize < 1:
            raise ConfigError("queue_maxsize must be positive")
        if not (0 <= self.default_decimals <= 255):
            raise ConfigError("default_decimals must fit in a u8")
        if self.request_timeout_sec <= 0:
            raise ConfigError("request_timeout_sec must be positive")


def _env_str(name: str, default: str) -> str:
    return (os.getenv(name) or "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def get_settings() -> MonitorSettings:
    """
    Build settings from environment variables (and .env).

    Returns:
        MonitorSettings with endpoints, program ids and retry tuning.

    Raises:
        ConfigError: when a variable is present but invalid.
    """
    load_monitor_env()
    return MonitorSettings(
        rpc_url=get_solana_rpc_url(),
        ws_url=get_solana_ws_url(),
        program_id=_env_str("RAYDIUM_PROGRAM_ID", RAYDIUM_AMM_V4_PROGRAM_ID),
        metadata_program_id=_env_str("TOKEN_METADATA_PROGRAM_ID", TOKEN_METADATA_PROGRAM_ID),
        log_marker=_env_str("LOG_MARKER", INITIALIZE2_LOG_MARKER),
        commitment=_env_str("SOLANA_COMMITMENT", "confirmed").lower(),
        max_retries=_env_int("FETCH_MAX_RETRIES", DEFAULT_MAX_RETRIES),
        retry_delay_sec=_env_float("FETCH_RETRY_DELAY_SEC", DEFAULT_RETRY_DELAY_SEC),
        prefetch_delay_sec=_env_float("PREFETCH_DELAY_SEC", DEFAULT_PREFETCH_DELAY_SEC),
        queue_maxsize=_env_int("QUEUE_MAXSIZE", DEFAULT_QUEUE_MAXSIZE),
        default_decimals=_env_int("DEFAULT_DECIMALS", DEFAULT_DECIMALS),
        request_timeout_sec=_env_float("RPC_TIMEOUT_SEC", DEFAULT_RPC_TIMEOUT_SEC),
    )
