"""WebSocket notification adapter implementing NotificationPort.

Uses a connection-manager pattern to broadcast job events to every
WebSocket subscribed to a channel (one channel per user).
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class WebSocketNotifier:
    """Implements :class:`NotificationPort` by pushing JSON messages over
    WebSocket connections.
    """

    def __init__(self) -> None:
        # channel -> set of active WebSocket connections
        self._connections: dict[str, set[WebSocket]] = {}

    # -- connection management -------------------------------------------------

    async def connect(self, channel: str, websocket: WebSocket) -> None:
        """Accept a new WebSocket and register it under *channel*."""
        await websocket.accept()
        self._connections.setdefault(channel, set()).add(websocket)
        logger.info(
            "WebSocket connected for channel %s (total=%d)",
            channel,
            len(self._connections[channel]),
        )

    async def disconnect(self, channel: str, websocket: WebSocket) -> None:
        """Remove a WebSocket from the connection pool."""
        conns = self._connections.get(channel)
        if conns:
            conns.discard(websocket)
            if not conns:
                del self._connections[channel]
        logger.info("WebSocket disconnected for channel %s", channel)

    def listener_count(self, channel: str) -> int:
        return len(self._connections.get(channel, ()))

    # -- internal broadcast ----------------------------------------------------

    async def _broadcast(self, channel: str, payload: dict[str, Any]) -> None:
        """Send *payload* as JSON to every connection for *channel*."""
        conns = self._connections.get(channel)
        if not conns:
            logger.debug("No listeners for channel %s; skipping broadcast", channel)
            return

        message = json.dumps(payload)
        stale: list[WebSocket] = []

        for ws in list(conns):
            try:
                await ws.send_text(message)
            except Exception:
                logger.warning(
                    "Failed to send to WebSocket for channel %s; marking stale",
                    channel,
                )
                stale.append(ws)

        for ws in stale:
            conns.discard(ws)
        if not conns:
            del self._connections[channel]

    # -- NotificationPort implementation ---------------------------------------

    async def send_progress(
        self, channel: str, job_id: str, progress: int, message: str
    ) -> None:
        await self._broadcast(
            channel,
            {"type": "progress", "job_id": job_id, "progress": progress, "message": message},
        )

    async def send_completion(self, channel: str, job_id: str, result: dict) -> None:
        await self._broadcast(channel, {"type": "completion", "job_id": job_id, "result": result})

    async def send_error(self, channel: str, job_id: str, error: str) -> None:
        await self._broadcast(channel, {"type": "error", "job_id": job_id, "error": error})
