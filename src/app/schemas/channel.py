"""Channel protocol frames.

Inbound frames are parsed into one of the ``*Frame`` models by ``parse_frame``;
outbound frames are plain dicts built by the ``*_event`` helpers so every
producer emits exactly the same shape.
"""

from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from src.app.schemas.message import MessagePayload, MessageRead


class _Frame(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    project_id: UUID = Field(alias="projectId")


class JoinFrame(_Frame):
    event: Literal["join"]


class LeaveFrame(_Frame):
    event: Literal["leave"]


class SendFrame(MessagePayload):
    event: Literal["send"]
    project_id: UUID
    # Clients historically sent their own id; it is checked, never trusted.
    sender: UUID | None = None


InboundFrame = Annotated[JoinFrame | LeaveFrame | SendFrame, Field(discriminator="event")]

_frame_adapter: TypeAdapter[JoinFrame | LeaveFrame | SendFrame] = TypeAdapter(InboundFrame)


def parse_frame(raw: str | bytes) -> JoinFrame | LeaveFrame | SendFrame:
    """Parse a raw JSON frame. Raises pydantic.ValidationError on bad input."""
    return _frame_adapter.validate_json(raw)


def message_event(message: MessageRead) -> dict[str, Any]:
    return {"event": "message", "message": message.model_dump(mode="json", by_alias=True)}


def status_event(project_id: UUID, status: str) -> dict[str, Any]:
    return {"event": "statusChanged", "projectId": str(project_id), "status": status}


def joined_event(project_id: UUID) -> dict[str, Any]:
    return {"event": "joined", "projectId": str(project_id)}


def left_event(project_id: UUID) -> dict[str, Any]:
    return {"event": "left", "projectId": str(project_id)}


def error_event(code: str, detail: str) -> dict[str, Any]:
    return {"event": "error", "code": code, "detail": detail}
