"""User model - identities owned by the external identity service."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.app.models.base import utc_now
from src.app.models.enums import UserRole


class User(SQLModel, table=True):
    """Marketplace user. Rows are provisioned by the identity service."""

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    full_name: str = Field(max_length=100)
    role: str = Field(default=UserRole.FREELANCER.value, max_length=20)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
