"""Project model - the unit of collaboration and the channel key."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from src.app.models.base import utc_now
from src.app.models.enums import ProjectStatus


class Project(SQLModel, table=True):
    """Project posted by a client.

    Status only changes through LifecycleService. ``last_message_seq`` is the
    per-project counter that orders the message timeline; it is bumped in the
    same transaction that inserts each message.
    """

    __tablename__ = "projects"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    client_id: UUID = Field(foreign_key="users.id", index=True)
    freelancer_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)
    title: str = Field(max_length=200)
    description: str = Field(max_length=5000)
    budget: float = Field(ge=0)
    skills: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    status: str = Field(default=ProjectStatus.OPEN.value, max_length=32, index=True)
    last_message_seq: int = Field(default=0)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def status_enum(self) -> ProjectStatus:
        """Get status as ProjectStatus enum."""
        return ProjectStatus(self.status)
