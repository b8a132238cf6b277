"""Read side of a project room: initial state, applications, room access."""

from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.core.exceptions import Forbidden, NotFound, PersistenceFailure
from src.app.core.logging import get_logger
from src.app.core.permissions import is_project_participant
from src.app.models import Application, Message, Project, User, UserRole
from src.app.repositories import (
    ApplicationRepository,
    MessageRepository,
    ProjectRepository,
)

logger = get_logger(__name__)


class ProjectService:
    def __init__(
        self,
        project_repo: ProjectRepository,
        application_repo: ApplicationRepository,
        message_repo: MessageRepository,
        session: AsyncSession,
    ):
        self.project_repo = project_repo
        self.application_repo = application_repo
        self.message_repo = message_repo
        self.session = session

    async def fetch_project_state(
        self,
        project_id: UUID,
        caller: User,
        after_seq: int | None = None,
    ) -> tuple[Project, list[Message]]:
        """Return the project and its message history in timeline order.

        Any authenticated user may view a project listing; the history is
        only returned to room participants (client, assigned freelancer,
        admins). Others get an empty list.

        Args:
            project_id: Project to load.
            caller: Authenticated user.
            after_seq: Only return messages after this sequence number.
        """
        try:
            project = await self.project_repo.get_by_id(project_id)
            if project is None:
                raise NotFound(f"Project {project_id} not found")

            messages: list[Message] = []
            if is_project_participant(project, caller):
                messages = await self.message_repo.list_by_project(project_id, after_seq=after_seq)
        except SQLAlchemyError as e:
            logger.error("Failed to load project state", project_id=str(project_id), error=str(e))
            raise PersistenceFailure("Could not load project") from e

        return project, messages

    async def list_applications(self, project_id: UUID, caller: User) -> list[Application]:
        """Applications for a project - visible to its client and admins."""
        try:
            project = await self.project_repo.get_by_id(project_id)
            if project is None:
                raise NotFound(f"Project {project_id} not found")
            if caller.role != UserRole.ADMIN.value and project.client_id != caller.id:
                raise Forbidden("Only the project's client can view its applications")
            return await self.application_repo.list_by_project(project_id)
        except SQLAlchemyError as e:
            logger.error("Failed to load applications", project_id=str(project_id), error=str(e))
            raise PersistenceFailure("Could not load applications") from e

    async def authorize_room_access(self, project_id: UUID, user: User) -> Project:
        """Check that ``user`` may join the project's room.

        Raises:
            NotFound: project does not exist.
            Forbidden: user is not a participant.
        """
        try:
            project = await self.project_repo.get_by_id(project_id)
        except SQLAlchemyError as e:
            raise PersistenceFailure("Could not load project") from e
        if project is None:
            raise NotFound(f"Project {project_id} not found")
        if not is_project_participant(project, user):
            raise Forbidden("Only project participants can join this room")
        return project
