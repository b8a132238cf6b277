"""Repository for Project entity."""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import delete, update
from sqlmodel import select

from src.app.models import Project, ProjectStatus
from src.app.models.base import utc_now
from src.app.repositories.base import BaseRepository

# Sentinel meaning "leave freelancer_id as it is"
_KEEP = object()


class ProjectRepository(BaseRepository[Project]):
    model = Project

    async def get_for_update(self, project_id: UUID) -> Project | None:
        """Load a project and lock its row until the transaction ends.

        On backends without row locks (SQLite) this is a plain read; the
        compare-and-set in ``transition_status`` still guards every write.
        """
        result = await self.session.execute(
            select(Project).where(Project.id == project_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def transition_status(
        self,
        project_id: UUID,
        expected: Iterable[ProjectStatus],
        new_status: ProjectStatus,
        freelancer_id: UUID | None | object = _KEEP,
    ) -> bool:
        """Compare-and-set the project status.

        The row only changes if its current status is one of ``expected``.

        Returns:
            True if exactly one row changed, False if the status moved
            underneath the caller (or the project is gone).
        """
        values: dict[str, object] = {
            "status": new_status.value,
            "updated_at": utc_now(),
        }
        if freelancer_id is not _KEEP:
            values["freelancer_id"] = freelancer_id

        result = await self.session.execute(
            update(Project)
            .where(
                Project.id == project_id,
                Project.status.in_([s.value for s in expected]),  # type: ignore[attr-defined]
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def next_message_seq(self, project_id: UUID) -> int | None:
        """Reserve the next message sequence number for a project.

        The increment takes the project row's write lock, so concurrent
        publishers (in any process) are serialized per project until commit.

        Returns:
            The reserved sequence number, or None if the project does not exist.
        """
        result = await self.session.execute(
            update(Project)
            .where(Project.id == project_id)
            .values(last_message_seq=Project.last_message_seq + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:  # type: ignore[attr-defined]
            return None
        seq = await self.session.scalar(
            select(Project.last_message_seq).where(Project.id == project_id)
        )
        return int(seq) if seq is not None else None

    async def delete_open(self, project_id: UUID) -> bool:
        """Delete a project only while it is still Open.

        Returns:
            True if the row was deleted.
        """
        result = await self.session.execute(
            delete(Project)
            .where(
                Project.id == project_id,
                Project.status == ProjectStatus.OPEN.value,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]
