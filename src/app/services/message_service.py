"""Message persistence.

``MessageService`` works on a request-scoped session. ``DatabaseMessageStore``
is the long-lived adapter the messaging channel uses: it opens a fresh session
for every publish, since the channel outlives any single request.
"""

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from src.app.core.db import get_session
from src.app.core.exceptions import NotFound, PersistenceFailure, WorkroomError
from src.app.core.logging import get_logger
from src.app.models import Message
from src.app.repositories import MessageRepository, ProjectRepository
from src.app.schemas import MessagePayload

logger = get_logger(__name__)


class MessageService:
    """Appends messages to a project's timeline."""

    def __init__(
        self,
        project_repo: ProjectRepository,
        message_repo: MessageRepository,
        session: AsyncSession,
    ):
        self.project_repo = project_repo
        self.message_repo = message_repo
        self.session = session

    async def record(
        self,
        project_id: UUID,
        sender_id: UUID,
        payload: MessagePayload,
    ) -> Message:
        """Persist a message and return it with its sequence number.

        The sequence number is reserved from the project row in the same
        transaction as the insert, so the timeline has no gaps or duplicates
        even with publishers in several processes.

        Raises:
            NotFound: project does not exist.
            PersistenceFailure: the store rejected the write; nothing was saved.
        """
        try:
            seq = await self.project_repo.next_message_seq(project_id)
            if seq is None:
                raise NotFound(f"Project {project_id} not found")

            message = Message(
                project_id=project_id,
                sender_id=sender_id,
                seq=seq,
                message_type=payload.message_type.value,
                text=payload.text,
                file_url=payload.file_url,
                file_name=payload.file_name,
            )
            self.message_repo.add(message)
            await self.session.commit()
            await self.session.refresh(message)
        except WorkroomError:
            await self.session.rollback()
            raise
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to save message", project_id=str(project_id), error=str(e))
            raise PersistenceFailure("Could not save message") from e

        return message

    async def history(self, project_id: UUID, after_seq: int | None = None) -> list[Message]:
        """Messages for a project in timeline order."""
        try:
            return await self.message_repo.list_by_project(project_id, after_seq=after_seq)
        except SQLAlchemyError as e:
            logger.error("Failed to load messages", project_id=str(project_id), error=str(e))
            raise PersistenceFailure("Could not load messages") from e


class DatabaseMessageStore:
    """Message store for the channel, one session per write."""

    def __init__(self, engine: AsyncEngine | None = None):
        self.engine = engine

    async def save(
        self,
        project_id: UUID,
        sender_id: UUID,
        payload: MessagePayload,
    ) -> Message:
        async with get_session(self.engine) as session:
            service = MessageService(
                ProjectRepository(session),
                MessageRepository(session),
                session,
            )
            return await service.record(project_id, sender_id, payload)
