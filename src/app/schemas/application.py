"""Application schemas for API request/response."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ApplicationCreate(BaseModel):
    """Schema for applying to a project."""

    proposal: str = Field(min_length=1, max_length=5000)
    proposed_budget: float = Field(ge=0)

    @field_validator("proposal")
    @classmethod
    def validate_proposal(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Proposal cannot be empty or whitespace only")
        return v


class ApplicationRead(BaseModel):
    """Schema for reading an application."""

    id: UUID
    project_id: UUID
    freelancer_id: UUID
    proposal: str
    proposed_budget: float
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
