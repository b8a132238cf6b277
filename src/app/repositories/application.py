"""Repository for Application entity."""

from uuid import UUID

from sqlalchemy import delete, func, update
from sqlmodel import select

from src.app.models import Application, ApplicationStatus
from src.app.models.base import utc_now
from src.app.repositories.base import BaseRepository


class ApplicationRepository(BaseRepository[Application]):
    model = Application

    async def list_by_project(self, project_id: UUID) -> list[Application]:
        """List applications for a project, oldest first."""
        result = await self.session.execute(
            select(Application)
            .where(Application.project_id == project_id)
            .order_by(Application.created_at, Application.id)
        )
        return list(result.scalars().all())

    async def get_by_project_and_freelancer(
        self, project_id: UUID, freelancer_id: UUID
    ) -> Application | None:
        result = await self.session.execute(
            select(Application).where(
                Application.project_id == project_id,
                Application.freelancer_id == freelancer_id,
            )
        )
        return result.scalar_one_or_none()

    async def set_status_if_pending(
        self, application_id: UUID, new_status: ApplicationStatus
    ) -> bool:
        """Decide a single application, only while it is still Pending."""
        result = await self.session.execute(
            update(Application)
            .where(
                Application.id == application_id,
                Application.status == ApplicationStatus.PENDING.value,
            )
            .values(status=new_status.value, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def reject_pending_siblings(self, project_id: UUID, accepted_id: UUID) -> int:
        """Reject every other Pending application for the project.

        Returns:
            Number of applications rejected.
        """
        result = await self.session.execute(
            update(Application)
            .where(
                Application.project_id == project_id,
                Application.id != accepted_id,
                Application.status == ApplicationStatus.PENDING.value,
            )
            .values(status=ApplicationStatus.REJECTED.value, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount)  # type: ignore[attr-defined]

    async def count_accepted(self, project_id: UUID) -> int:
        result = await self.session.scalar(
            select(func.count())
            .select_from(Application)
            .where(
                Application.project_id == project_id,
                Application.status == ApplicationStatus.ACCEPTED.value,
            )
        )
        return int(result or 0)

    async def delete_by_project(self, project_id: UUID) -> int:
        """Delete all applications for a project. Returns rows deleted."""
        result = await self.session.execute(
            delete(Application)
            .where(Application.project_id == project_id)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount)  # type: ignore[attr-defined]
