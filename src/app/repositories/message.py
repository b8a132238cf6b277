"""Repository for Message entity (append-only)."""

from uuid import UUID

from sqlalchemy import delete
from sqlmodel import select

from src.app.models import Message
from src.app.repositories.base import BaseRepository


class MessageRepository(BaseRepository[Message]):
    model = Message

    async def list_by_project(
        self,
        project_id: UUID,
        after_seq: int | None = None,
    ) -> list[Message]:
        """Return the project's history in timeline order.

        Args:
            project_id: Room key.
            after_seq: If given, only messages with a greater sequence number.
        """
        query = select(Message).where(Message.project_id == project_id)
        if after_seq is not None:
            query = query.where(Message.seq > after_seq)
        result = await self.session.execute(query.order_by(Message.seq))
        return list(result.scalars().all())

    async def delete_by_project(self, project_id: UUID) -> int:
        """Delete a project's messages. Only used when an Open project is deleted."""
        result = await self.session.execute(
            delete(Message)
            .where(Message.project_id == project_id)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount)  # type: ignore[attr-defined]
