"""Tests for message payloads, wire shape and channel frames."""

import json
from uuid import uuid4

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from src.app.models import MessageType
from src.app.schemas import MessagePayload, MessageRead
from src.app.schemas.channel import (
    JoinFrame,
    LeaveFrame,
    SendFrame,
    error_event,
    message_event,
    parse_frame,
    status_event,
)
from tests.factories import MessageFactory

pytestmark = pytest.mark.unit


class TestMessagePayload:
    def test_text_message(self):
        payload = MessagePayload.model_validate({"messageType": "text", "text": "hi"})
        assert payload.message_type == MessageType.TEXT
        assert payload.text == "hi"

    def test_message_type_defaults_to_text(self):
        assert MessagePayload.model_validate({"text": "hi"}).message_type == MessageType.TEXT

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_text_message_requires_text(self, text):
        with pytest.raises(ValidationError, match="non-empty text"):
            MessagePayload.model_validate({"messageType": "text", "text": text})

    @pytest.mark.parametrize("kind", ["image", "file"])
    def test_file_message_requires_reference(self, kind):
        with pytest.raises(ValidationError, match="fileUrl and fileName"):
            MessagePayload.model_validate({"messageType": kind, "fileUrl": "https://cdn/x.png"})

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            MessagePayload.model_validate({"messageType": "video", "text": "x"})

    def test_text_message_drops_file_fields(self):
        payload = MessagePayload.model_validate(
            {"messageType": "text", "text": "hi", "fileUrl": "https://cdn/x", "fileName": "x"}
        )
        assert payload.file_url is None
        assert payload.file_name is None

    def test_file_message_drops_text(self):
        payload = MessagePayload.model_validate(
            {
                "messageType": "file",
                "text": "ignored",
                "fileUrl": "https://cdn/brief.pdf",
                "fileName": "brief.pdf",
            }
        )
        assert payload.text is None
        assert payload.file_name == "brief.pdf"

    @given(
        kind=st.sampled_from(list(MessageType)),
        text=st.one_of(st.none(), st.text(min_size=1, max_size=50)),
        url=st.one_of(st.none(), st.just("https://cdn.example.com/a.bin")),
        name=st.one_of(st.none(), st.just("a.bin")),
    )
    def test_valid_payload_carries_exactly_one_variant(self, kind, text, url, name):
        try:
            payload = MessagePayload(message_type=kind, text=text, file_url=url, file_name=name)
        except ValidationError:
            return
        if payload.message_type == MessageType.TEXT:
            assert payload.text and payload.text.strip()
            assert payload.file_url is None and payload.file_name is None
        else:
            assert payload.text is None
            assert payload.file_url and payload.file_name


class TestMessageRead:
    def test_text_wire_shape(self):
        message = MessageFactory.build(project_id=uuid4(), sender_id=uuid4(), seq=3, text="hey")
        data = MessageRead.from_model(message).model_dump(mode="json", by_alias=True)

        assert set(data) == {"_id", "project", "sender", "seq", "messageType", "text", "createdAt"}
        assert data["_id"] == str(message.id)
        assert data["project"] == str(message.project_id)
        assert data["sender"] == str(message.sender_id)
        assert data["seq"] == 3
        assert data["messageType"] == "text"

    def test_file_wire_shape(self):
        message = MessageFactory.build(
            project_id=uuid4(),
            sender_id=uuid4(),
            message_type="image",
            text=None,
            file_url="https://cdn.example.com/mock.png",
            file_name="mock.png",
        )
        data = MessageRead.from_model(message).model_dump(mode="json", by_alias=True)

        assert "text" not in data
        assert data["fileUrl"] == "https://cdn.example.com/mock.png"
        assert data["fileName"] == "mock.png"
        assert data["messageType"] == "image"

    def test_accepts_its_own_wire_shape(self):
        message = MessageFactory.build(project_id=uuid4(), sender_id=uuid4())
        wire = MessageRead.from_model(message).model_dump(mode="json", by_alias=True)
        assert MessageRead.model_validate(wire).id == message.id


class TestParseFrame:
    def test_join(self):
        project_id = uuid4()
        frame = parse_frame(json.dumps({"event": "join", "projectId": str(project_id)}))
        assert isinstance(frame, JoinFrame)
        assert frame.project_id == project_id

    def test_leave(self):
        frame = parse_frame(json.dumps({"event": "leave", "projectId": str(uuid4())}))
        assert isinstance(frame, LeaveFrame)

    def test_send_with_camel_case_fields(self):
        sender = uuid4()
        frame = parse_frame(
            json.dumps(
                {
                    "event": "send",
                    "projectId": str(uuid4()),
                    "messageType": "file",
                    "fileUrl": "https://cdn.example.com/brief.pdf",
                    "fileName": "brief.pdf",
                    "sender": str(sender),
                }
            )
        )
        assert isinstance(frame, SendFrame)
        assert frame.message_type == MessageType.FILE
        assert frame.sender == sender

    @pytest.mark.parametrize(
        "raw",
        [
            "not json",
            "{}",
            '{"event": "shout", "projectId": "x"}',
            '{"event": "join", "projectId": "not-a-uuid"}',
            '{"event": "send", "projectId": "00000000-0000-0000-0000-000000000001"}',
        ],
    )
    def test_rejects_malformed(self, raw):
        with pytest.raises(ValidationError):
            parse_frame(raw)


class TestOutboundEvents:
    def test_message_event(self):
        message = MessageFactory.build(project_id=uuid4(), sender_id=uuid4())
        event = message_event(MessageRead.from_model(message))
        assert event["event"] == "message"
        assert event["message"]["_id"] == str(message.id)
        json.dumps(event)

    def test_status_event(self):
        project_id = uuid4()
        assert status_event(project_id, "Pending Approval") == {
            "event": "statusChanged",
            "projectId": str(project_id),
            "status": "Pending Approval",
        }

    def test_error_event(self):
        assert error_event("forbidden", "nope") == {
            "event": "error",
            "code": "forbidden",
            "detail": "nope",
        }
