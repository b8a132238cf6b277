"""Shared test helpers."""

import asyncio
import random
from datetime import timedelta
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from src.app.core.exceptions import PersistenceFailure
from src.app.core.security import create_access_token
from src.app.models import Message, User
from src.app.models.base import utc_now
from src.app.repositories import (
    ApplicationRepository,
    MessageRepository,
    ProjectRepository,
)
from src.app.schemas import MessagePayload
from src.app.services import LifecycleService, ProjectService, StatusNotifier


def auth_headers(user: User) -> dict[str, str]:
    """Authorization header for a user, as issued by the identity service."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def expired_token(user: User) -> str:
    return create_access_token(user.id, expires_delta=timedelta(minutes=-5))


def ws_url(user: User | None = None) -> str:
    if user is None:
        return "/api/v1/ws"
    return f"/api/v1/ws?token={create_access_token(user.id)}"


def make_lifecycle(session: AsyncSession, notifier: StatusNotifier | None = None) -> LifecycleService:
    return LifecycleService(
        ProjectRepository(session),
        ApplicationRepository(session),
        MessageRepository(session),
        session,
        notifier=notifier,
    )


def make_project_service(session: AsyncSession) -> ProjectService:
    return ProjectService(
        ProjectRepository(session),
        ApplicationRepository(session),
        MessageRepository(session),
        session,
    )


async def reload(engine: AsyncEngine, model: type[Any], id: UUID) -> Any:
    """Read a row through a fresh session, bypassing any identity map."""
    async with AsyncSession(engine, expire_on_commit=False) as session:
        return await session.get(model, id)


class RecordingNotifier:
    """StatusNotifier that remembers what it was asked to broadcast."""

    def __init__(self, fail: bool = False) -> None:
        self.calls: list[tuple[UUID, str]] = []
        self.fail = fail

    async def broadcast_status(self, project_id: UUID, status: str) -> None:
        self.calls.append((project_id, status))
        if self.fail:
            raise RuntimeError("room unavailable")


class FakeConnection:
    """Stands in for realtime.Connection: records what the channel enqueues."""

    def __init__(self, user: User | None = None, accepting: bool = True) -> None:
        self.id = uuid4().hex
        self.user = user
        self.accepting = accepting
        self.events: list[dict[str, Any]] = []
        self.closed_with: int | None = None

    @property
    def closed(self) -> bool:
        return self.closed_with is not None

    def enqueue(self, event: dict[str, Any]) -> bool:
        if not self.accepting:
            return False
        self.events.append(event)
        return True

    async def close(self, code: int = 1000, timeout: float = 5.0) -> None:
        self.closed_with = code

    def of_type(self, event: str) -> list[dict[str, Any]]:
        return [e for e in self.events if e["event"] == event]

    def seqs(self) -> list[int]:
        return [e["message"]["seq"] for e in self.of_type("message")]


class FakeMessageStore:
    """In-memory MessageStore. Yields to the loop mid-save to provoke interleaving."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.saved: list[Message] = []
        self._counters: dict[UUID, int] = {}

    async def save(self, project_id: UUID, sender_id: UUID, payload: MessagePayload) -> Message:
        await asyncio.sleep(random.random() / 1000)
        if self.fail:
            raise PersistenceFailure("Could not save message")
        seq = self._counters.get(project_id, 0) + 1
        self._counters[project_id] = seq
        message = Message(
            id=uuid4(),
            project_id=project_id,
            sender_id=sender_id,
            seq=seq,
            message_type=payload.message_type.value,
            text=payload.text,
            file_url=payload.file_url,
            file_name=payload.file_name,
            created_at=utc_now(),
        )
        self.saved.append(message)
        return message
