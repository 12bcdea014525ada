"""
Configuration management for the pool monitor.

Loads settings from environment variables and an optional .env file and
exposes them as one immutable MonitorSettings object.
"""

from pool_monitor.config.settings import MonitorSettings, get_settings  # noqa: F401

__all__ = ["MonitorSettings", "get_settings"]
