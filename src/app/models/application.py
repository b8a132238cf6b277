"""Application model - a freelancer's proposal for a project."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from src.app.models.base import utc_now
from src.app.models.enums import ApplicationStatus


class Application(SQLModel, table=True):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("project_id", "freelancer_id", name="uq_applications_project_freelancer"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", index=True)
    freelancer_id: UUID = Field(foreign_key="users.id", index=True)
    proposal: str = Field(max_length=5000)
    proposed_budget: float = Field(ge=0)
    status: str = Field(default=ApplicationStatus.PENDING.value, max_length=16, index=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def status_enum(self) -> ApplicationStatus:
        """Get status as ApplicationStatus enum."""
        return ApplicationStatus(self.status)
