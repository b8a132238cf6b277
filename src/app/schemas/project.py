"""Project schemas for API request/response."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.app.schemas.message import MessageRead


class ProjectCreate(BaseModel):
    """Schema for posting a project."""

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1, max_length=5000)
    budget: float = Field(ge=0)
    skills: list[str] = Field(default_factory=list, max_length=50)

    @field_validator("title", "description")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value cannot be empty or whitespace only")
        return v

    @field_validator("skills")
    @classmethod
    def normalize_skills(cls, v: list[str]) -> list[str]:
        return [s.strip() for s in v if s.strip()]


class ProjectRead(BaseModel):
    """Schema for reading a project."""

    id: UUID
    client_id: UUID
    freelancer_id: UUID | None
    title: str
    description: str
    budget: float
    skills: list[str]
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectState(BaseModel):
    """Initial state for a project room: the project and its full history."""

    project: ProjectRead
    messages: list[MessageRead]
