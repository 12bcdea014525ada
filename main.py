"""
Main entrypoint: watch Raydium AMM V4 program logs and report new liquidity pools.

Runs until the log stream ends or the process is interrupted (SIGINT/SIGTERM).

Env: SOLANA_RPC_URL, SOLANA_WS_URL, HELIUS_API_KEY, RAYDIUM_PROGRAM_ID,
TOKEN_METADATA_PROGRAM_ID, FETCH_MAX_RETRIES, FETCH_RETRY_DELAY_SEC,
PREFETCH_DELAY_SEC, QUEUE_MAXSIZE, LOG_LEVEL, LOG_FORMAT.
"""

import asyncio
import sys

# Configure structured JSON logging before other imports that may log
from pool_monitor.monitor_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Load settings and run the monitor in the foreground."""
    from pool_monitor.agent_worker.runner import run_monitor
    from pool_monitor.config import get_settings
    from pool_monitor.core.exceptions import ConfigError

    try:
        settings = get_settings()
    except ConfigError as e:
        logger.error("main_config_error", error=str(e))
        sys.exit(1)

    try:
        asyncio.run(run_monitor(settings))
    except KeyboardInterrupt:
        logger.info("main_keyboard_interrupt")


if __name__ == "__main__":
    main()
