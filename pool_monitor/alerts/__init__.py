"""
Reporting sink for detected pools.
"""

from pool_monitor.alerts.reporter import CollectingReporter, EventReporter, LogReporter

__all__ = ["CollectingReporter", "EventReporter", "LogReporter"]
