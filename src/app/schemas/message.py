"""Message schemas.

The wire shape is camelCase and tagged by ``messageType``; existing clients
branch their rendering on it, so it is kept exactly:

    text:        {..., "messageType": "text", "text": "..."}
    image/file:  {..., "messageType": "file", "fileUrl": "...", "fileName": "..."}
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializationInfo,
    SerializerFunctionWrapHandler,
    model_serializer,
    model_validator,
)
from pydantic.alias_generators import to_camel

from src.app.models import Message, MessageType

_FILE_FIELDS = ("file_url", "fileUrl", "file_name", "fileName")


class MessagePayload(BaseModel):
    """Content of a message as sent by a client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    message_type: MessageType = MessageType.TEXT
    text: str | None = Field(default=None, max_length=10000)
    file_url: str | None = Field(default=None, max_length=2048)
    file_name: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def validate_variant(self) -> "MessagePayload":
        """Keep exactly the fields of the tagged variant."""
        if self.message_type == MessageType.TEXT:
            if self.text is None or not self.text.strip():
                raise ValueError("Text messages require non-empty text")
            self.file_url = None
            self.file_name = None
        else:
            if not self.file_url or not self.file_name:
                raise ValueError(
                    f"{self.message_type.value} messages require fileUrl and fileName"
                )
            self.text = None
        return self


class MessageRead(BaseModel):
    """A persisted message, serialized in the client wire shape."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID = Field(alias="_id")
    project_id: UUID = Field(alias="project")
    sender_id: UUID = Field(alias="sender")
    seq: int
    message_type: MessageType = Field(alias="messageType")
    text: str | None = None
    file_url: str | None = Field(default=None, alias="fileUrl")
    file_name: str | None = Field(default=None, alias="fileName")
    created_at: datetime = Field(alias="createdAt")

    @classmethod
    def from_model(cls, message: Message) -> "MessageRead":
        return cls(
            id=message.id,
            project_id=message.project_id,
            sender_id=message.sender_id,
            seq=message.seq,
            message_type=MessageType(message.message_type),
            text=message.text,
            file_url=message.file_url,
            file_name=message.file_name,
            created_at=message.created_at,
        )

    @model_serializer(mode="wrap")
    def _serialize_variant(
        self, handler: SerializerFunctionWrapHandler, info: SerializationInfo
    ) -> dict[str, Any]:
        data: dict[str, Any] = handler(self)
        if self.message_type == MessageType.TEXT:
            for key in _FILE_FIELDS:
                data.pop(key, None)
        else:
            data.pop("text", None)
        return data
