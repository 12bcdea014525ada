"""
Test that monitor_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from monitor_logging and use the logger."""
    from pool_monitor.monitor_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_bind_signature_smoke():
    from pool_monitor.monitor_logging import bind_signature

    log = bind_signature("5xyz")
    log.warning("tx_fetch_retry", attempt=1)


def test_normalize_event_renames_event_key():
    from pool_monitor.monitor_logging.logger import _normalize_event

    out = _normalize_event(None, "info", {"event": "pool_created", "signature": "s"})
    assert out["event_type"] == "pool_created"
    assert out["message"] == "pool_created"
    assert "event" not in out
