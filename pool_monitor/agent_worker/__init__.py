"""
Agent worker: runs the log stream and the per-event processing loop.
"""

from pool_monitor.agent_worker.runner import PoolMonitor, run_monitor

__all__ = ["PoolMonitor", "run_monitor"]
