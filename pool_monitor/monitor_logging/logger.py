"""
Log setup for the pool monitor.

Each record is one line: event_type, level, UTC timestamp, the emitting module
and whatever keyword context the caller passed (signature, mint, attempt...).
LOG_FORMAT=json (default) prints JSON lines; any other value prints the
structlog console renderer. LOG_LEVEL filters by name (DEBUG, INFO, ...).

This module must not import anything from pool_monitor; every other module
imports it.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

ROOT_LOGGER_NAME = "pool_monitor"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "json").strip().lower()


def _level_value(name: str) -> int:
    return getattr(logging, name, logging.INFO)


def _add_timestamp(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Stamp the record with the current UTC time unless the caller set one."""
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    return event_dict


def _normalize_event(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Move structlog's positional 'event' to event_type and mirror it as message."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    if "event_type" in event_dict:
        event_dict.setdefault("message", str(event_dict["event_type"]))
    return event_dict


def _renderer(fmt: str) -> Any:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_structlog(log_format: str | None = None, level: int | None = None) -> None:
    """
    (Re)configure structlog for the process.

    Runs once on import with LOG_FORMAT / LOG_LEVEL; call again to override,
    e.g. configure_structlog("console", logging.DEBUG) when debugging locally.
    """
    fmt = (log_format or LOG_FORMAT).strip().lower()
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_timestamp,
        _normalize_event,
        _renderer(fmt),
    ]
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            _level_value(LOG_LEVEL) if level is None else level
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_structlog()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger; call as get_logger(__name__).

        logger.info("stream_subscribed", subscription_id=42)
    renders as
        {"subscription_id": 42, "logger": "pool_monitor.solana_listener.listener",
         "level": "info", "timestamp": "...", "event_type": "stream_subscribed", ...}
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_signature(signature: str) -> structlog.BoundLogger:
    """Logger that tags every record with the transaction signature being processed."""
    return get_logger(ROOT_LOGGER_NAME).bind(signature=signature)
