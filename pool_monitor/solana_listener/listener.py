"""
Program log listener: logsSubscribe over the Solana WebSocket API.

Responsibilities:
- Open one WebSocket connection and subscribe to logs mentioning the target program.
- Turn each logsNotification into a LogEntry.
- Push entries into a bounded queue; a full queue blocks the reader (backpressure).
- Raise StreamError on subscription or connection failure. No reconnect: when
  the stream ends the listener puts a None sentinel so the consumer can stop.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Callable

import websockets
from websockets.exceptions import ConnectionClosedOK, WebSocketException

from pool_monitor.core.exceptions import StreamError
from pool_monitor.monitor_logging import get_logger
from pool_monitor.solana_listener.models import LogEntry

logger = get_logger(__name__)

DEFAULT_WS_PING_INTERVAL = 30.0
DEFAULT_WS_PING_TIMEOUT = 10.0
DEFAULT_SUBSCRIBE_TIMEOUT = 10.0
_WS_CLOSE_TIMEOUT = 5.0


def build_logs_subscribe(program_id: str, commitment: str, request_id: int = 1) -> dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "logsSubscribe",
        "params": [
            {"mentions": [program_id]},
            {"commitment": commitment},
        ],
    }


class LogStream:
    """
    Live sequence of LogEntry for transactions that mention one program.

    entries() is an async iterator over a single connection; run() forwards it
    into a queue and is meant to be the pipeline's background task.
    """

    def __init__(
        self,
        ws_url: str,
        program_id: str,
        *,
        commitment: str = "confirmed",
        ping_interval: float | None = DEFAULT_WS_PING_INTERVAL,
        ping_timeout: float | None = DEFAULT_WS_PING_TIMEOUT,
        subscribe_timeout: float = DEFAULT_SUBSCRIBE_TIMEOUT,
        connect: Callable[..., Any] = websockets.connect,
    ) -> None:
        if not ws_url.strip():
            raise ValueError("ws_url must be non-empty")
        self._ws_url = ws_url
        self._program_id = program_id
        self._commitment = commitment
        self._ping_interval = ping_interval
        self._ping_timeout = ping_timeout
        self._subscribe_timeout = subscribe_timeout
        self._connect = connect
        self.subscription_id: int | None = None

    async def _subscribe(self, ws: Any) -> int:
        await ws.send(json.dumps(build_logs_subscribe(self._program_id, self._commitment)))
        try:
            raw = await asyncio.wait_for(ws.recv(), timeout=self._subscribe_timeout)
            msg = json.loads(raw)
        except asyncio.TimeoutError as e:
            raise StreamError("logsSubscribe timed out waiting for confirmation") from e
        except json.JSONDecodeError as e:
            raise StreamError(f"logsSubscribe returned invalid JSON: {e}") from e
        sub_id = msg.get("result") if isinstance(msg, dict) else None
        if sub_id is None:
            error = msg.get("error") if isinstance(msg, dict) else msg
            raise StreamError(f"logsSubscribe rejected: {error}")
        return sub_id

    def _parse_message(self, raw: str | bytes) -> LogEntry | None:
        try:
            msg = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("stream_message_not_json")
            return None
        if not isinstance(msg, dict) or msg.get("method") != "logsNotification":
            return None
        params = msg.get("params")
        if not isinstance(params, dict):
            logger.debug("stream_notification_invalid", error="params is not an object")
            return None
        if self.subscription_id is not None and params.get("subscription") != self.subscription_id:
            return None
        try:
            return LogEntry.from_notification(params)
        except (KeyError, TypeError, AttributeError) as e:
            logger.debug("stream_notification_invalid", error=str(e))
            return None

    async def entries(self) -> AsyncIterator[LogEntry]:
        """
        Yield log entries until the connection closes.

        Raises:
            StreamError: connect, subscribe or receive failed.
        """
        logger.info("stream_connecting", program_id=self._program_id)
        try:
            async with self._connect(
                self._ws_url,
                ping_interval=self._ping_interval,
                ping_timeout=self._ping_timeout,
                close_timeout=_WS_CLOSE_TIMEOUT,
                max_size=None,
            ) as ws:
                self.subscription_id = await self._subscribe(ws)
                logger.info(
                    "stream_subscribed",
                    program_id=self._program_id,
                    subscription_id=self.subscription_id,
                    commitment=self._commitment,
                )
                async for raw in ws:
                    entry = self._parse_message(raw)
                    if entry is not None:
                        yield entry
        except ConnectionClosedOK:
            pass
        except StreamError:
            raise
        except (WebSocketException, OSError, asyncio.TimeoutError) as e:
            raise StreamError(f"log stream failed: {type(e).__name__}: {e}") from e
        logger.warning("stream_closed", program_id=self._program_id)

    async def run(self, queue: asyncio.Queue[LogEntry | None]) -> None:
        """
        Forward entries into queue until the stream ends, then put a None sentinel.
        Any stream failure is logged and ends the task; it is not re-raised,
        so the sentinel is always put unless the task is cancelled.
        """
        forwarded = 0
        try:
            async for entry in self.entries():
                await queue.put(entry)
                forwarded += 1
        except StreamError as e:
            logger.error("stream_failed", error=str(e), forwarded=forwarded)
        except Exception as e:
            logger.exception(
                "stream_failed",
                error_type=type(e).__name__,
                error=str(e),
                forwarded=forwarded,
            )
        finally:
            logger.warning("stream_task_ended", forwarded=forwarded)
        await queue.put(None)
