"""A single authenticated WebSocket connection.

Outbound events go through a bounded queue drained by one writer task, so
the order events are enqueued is the order the peer receives them, and a
slow peer never blocks the room that is fanning out to it. A peer that lets
its queue fill up is disconnected; it must reconnect, rejoin and re-fetch
history.
"""

import asyncio
import contextlib
from typing import Any
from uuid import uuid4

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect, WebSocketState

from src.app.core.logging import get_logger
from src.app.models import User

logger = get_logger(__name__)

# WebSocket close codes
CLOSE_NORMAL = 1000
CLOSE_GOING_AWAY = 1001
CLOSE_INTERNAL_ERROR = 1011
CLOSE_TRY_AGAIN_LATER = 1013
CLOSE_UNAUTHENTICATED = 4401


class Connection:
    """Session binding: one socket, one verified user, for the socket's lifetime."""

    def __init__(self, websocket: WebSocket, user: User, queue_size: int = 256):
        self.id = uuid4().hex
        self.websocket = websocket
        self.user = user
        self._queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue(maxsize=queue_size)
        self._writer: asyncio.Task[None] | None = None
        self._closer: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start the writer task. Call once, after the socket is accepted."""
        if self._writer is None:
            self._writer = asyncio.create_task(
                self._write_loop(), name=f"channel-writer-{self.id}"
            )

    def enqueue(self, event: dict[str, Any]) -> bool:
        """Queue an event for delivery without waiting.

        Returns:
            False if the connection is closed or its backlog overflowed
            (in which case it is being shut down).
        """
        if self._closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning("Outbound backlog full, dropping connection", connection_id=self.id)
            self._closed = True
            if self._writer is not None:
                self._writer.cancel()
            self._closer = asyncio.get_running_loop().create_task(
                self._close_socket(CLOSE_TRY_AGAIN_LATER)
            )
            return False
        return True

    async def close(self, code: int = CLOSE_NORMAL, timeout: float = 5.0) -> None:
        """Flush what is queued (bounded by ``timeout``) and close the socket. Idempotent."""
        self._closed = True

        writer = self._writer
        if writer is not None and not writer.done():
            try:
                self._queue.put_nowait(None)
            except asyncio.QueueFull:
                writer.cancel()
            await asyncio.wait({writer}, timeout=timeout)
            if not writer.done():
                writer.cancel()

        await self._close_socket(code)

    async def _close_socket(self, code: int) -> None:
        if (
            self.websocket.application_state == WebSocketState.CONNECTED
            and self.websocket.client_state == WebSocketState.CONNECTED
        ):
            with contextlib.suppress(RuntimeError, WebSocketDisconnect):
                await self.websocket.close(code=code)

    async def _write_loop(self) -> None:
        while True:
            event = await self._queue.get()
            if event is None:
                return
            try:
                await self.websocket.send_json(event)
            except Exception as e:
                # Peer went away mid-send; the reader side will clean up
                logger.debug("Send failed, stopping writer", connection_id=self.id, error=str(e))
                self._closed = True
                return
