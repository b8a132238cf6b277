"""Messaging channel: per-project rooms with ordered fan-out.

Room membership lives in process memory and is rebuilt by clients rejoining
after a restart. Only this class mutates it.

Ordering: ``publish`` holds the room's lock across "persist, then enqueue to
every member", so members observe messages in persistence order. A member
only sees events enqueued after it joined; history comes from the REST state
endpoint, never from the channel.
"""

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any, Protocol
from uuid import UUID

from src.app.core.logging import get_logger
from src.app.models import Message
from src.app.realtime.connection import CLOSE_GOING_AWAY, Connection
from src.app.schemas import MessagePayload, MessageRead
from src.app.schemas.channel import message_event, status_event

logger = get_logger(__name__)


class MessageStore(Protocol):
    """Durable message sink. Must assign the timeline sequence number."""

    async def save(self, project_id: UUID, sender_id: UUID, payload: MessagePayload) -> Message: ...


class MessagingChannel:
    def __init__(self, store: MessageStore, close_timeout: float = 5.0):
        self._store = store
        self._close_timeout = close_timeout
        self._connections: dict[str, Connection] = {}
        self._rooms: dict[UUID, set[Connection]] = {}
        self._memberships: dict[str, set[UUID]] = {}
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._publishers: dict[UUID, int] = {}

    # --- Membership ---

    def attach(self, connection: Connection) -> None:
        """Register an authenticated connection (no rooms yet)."""
        self._connections[connection.id] = connection
        self._memberships.setdefault(connection.id, set())

    def join(self, connection: Connection, project_id: UUID) -> bool:
        """Subscribe a connection to a project room. Idempotent.

        No authorization happens here; callers decide who may join.

        Returns:
            True if the connection was not already a member.
        """
        self.attach(connection)
        room = self._rooms.setdefault(project_id, set())
        if connection in room:
            return False
        room.add(connection)
        self._memberships[connection.id].add(project_id)
        logger.debug("Joined room", connection_id=connection.id, project_id=str(project_id))
        return True

    def leave_room(self, connection: Connection, project_id: UUID) -> bool:
        """Unsubscribe from one room. Returns True if it was a member."""
        room = self._rooms.get(project_id)
        if room is None or connection not in room:
            return False
        room.discard(connection)
        self._memberships.get(connection.id, set()).discard(project_id)
        if not room:
            self._drop_room(project_id)
        return True

    def leave(self, connection: Connection) -> list[UUID]:
        """Remove a connection from every room and forget it. Used on disconnect.

        Returns:
            The project ids it was subscribed to.
        """
        project_ids = list(self._memberships.pop(connection.id, set()))
        for project_id in project_ids:
            room = self._rooms.get(project_id)
            if room is None:
                continue
            room.discard(connection)
            if not room:
                self._drop_room(project_id)
        self._connections.pop(connection.id, None)
        return project_ids

    def is_member(self, connection: Connection, project_id: UUID) -> bool:
        return connection in self._rooms.get(project_id, ())

    def members(self, project_id: UUID) -> frozenset[Connection]:
        return frozenset(self._rooms.get(project_id, ()))

    # --- Delivery ---

    async def publish(self, project_id: UUID, sender_id: UUID, payload: MessagePayload) -> Message:
        """Persist a message, then deliver it to everyone in the room.

        Success is only reported after the store acknowledged the write. If
        the store raises, nothing is delivered and the error propagates to
        the publisher alone.
        """
        async with self._room_lock(project_id):
            message = await self._store.save(project_id, sender_id, payload)
            delivered = self._fan_out(
                project_id, message_event(MessageRead.from_model(message))
            )

        logger.info(
            "Message published",
            project_id=str(project_id),
            seq=message.seq,
            recipients=delivered,
        )
        return message

    async def broadcast_status(self, project_id: UUID, status: str) -> None:
        """Transient status notification. Not persisted, not replayed."""
        delivered = self._fan_out(project_id, status_event(project_id, status))
        logger.info(
            "Status broadcast",
            project_id=str(project_id),
            status=status,
            recipients=delivered,
        )

    def _fan_out(self, project_id: UUID, event: dict[str, Any]) -> int:
        delivered = 0
        dead: list[Connection] = []
        for connection in list(self._rooms.get(project_id, ())):
            if connection.enqueue(event):
                delivered += 1
            else:
                dead.append(connection)
        self._evict(dead)
        return delivered

    def _evict(self, connections: Iterable[Connection]) -> None:
        for connection in connections:
            self.leave(connection)

    # --- Locks ---

    @asynccontextmanager
    async def _room_lock(self, project_id: UUID) -> AsyncIterator[None]:
        """Serialize publishers of one room. The lock is discarded once no
        publisher holds or awaits it and the room is empty."""
        lock = self._locks.get(project_id)
        if lock is None:
            lock = self._locks[project_id] = asyncio.Lock()
        self._publishers[project_id] = self._publishers.get(project_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._publishers[project_id] - 1
            if remaining:
                self._publishers[project_id] = remaining
            else:
                del self._publishers[project_id]
                if project_id not in self._rooms:
                    self._locks.pop(project_id, None)

    def _drop_room(self, project_id: UUID) -> None:
        self._rooms.pop(project_id, None)
        if project_id not in self._publishers:
            self._locks.pop(project_id, None)

    # --- Lifecycle ---

    def stats(self) -> dict[str, int]:
        return {
            "connections": len(self._connections),
            "rooms": len(self._rooms),
            "subscriptions": sum(len(room) for room in self._rooms.values()),
        }

    async def close(self) -> None:
        """Close every connection. Called on application shutdown."""
        connections = list(self._connections.values())
        for connection in connections:
            self.leave(connection)
        await asyncio.gather(
            *(c.close(CLOSE_GOING_AWAY, timeout=self._close_timeout) for c in connections),
            return_exceptions=True,
        )
        logger.info("Channel closed", connections=len(connections))
