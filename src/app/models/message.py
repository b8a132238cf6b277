"""Message model - append-only project chat history."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from src.app.models.base import utc_now
from src.app.models.enums import MessageType


class Message(SQLModel, table=True):
    """A message in a project room.

    Exactly one payload shape is populated, selected by ``message_type``:
    ``text`` for text messages, ``file_url`` + ``file_name`` for image and
    file messages. Rows are never updated or deleted (except by the cascade
    when an Open project is deleted).
    """

    __tablename__ = "messages"
    __table_args__ = (UniqueConstraint("project_id", "seq", name="uq_messages_project_seq"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", index=True)
    sender_id: UUID = Field(foreign_key="users.id")
    seq: int
    message_type: str = Field(default=MessageType.TEXT.value, max_length=8)
    text: str | None = Field(default=None, max_length=10000)
    file_url: str | None = Field(default=None, max_length=2048)
    file_name: str | None = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=utc_now)
