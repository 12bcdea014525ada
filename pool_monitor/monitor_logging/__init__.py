"""
Structured logging for the pool monitor.

JSON logs with timestamp, level, event_type and per-event context.
"""

from pool_monitor.monitor_logging.logger import bind_signature, configure_structlog, get_logger

__all__ = ["bind_signature", "configure_structlog", "get_logger"]
