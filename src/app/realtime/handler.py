"""Per-connection dispatch of inbound channel frames.

All replies (acks and errors) go through the connection's outbound queue,
never straight to the socket, so they interleave with room fan-out in the
order they were produced.
"""

from collections.abc import Awaitable, Callable
from uuid import UUID

from pydantic import ValidationError

from src.app.core.exceptions import Forbidden, RateLimited, WorkroomError
from src.app.core.logging import get_logger
from src.app.models import User
from src.app.realtime.channel import MessagingChannel
from src.app.realtime.connection import Connection
from src.app.schemas.channel import (
    JoinFrame,
    LeaveFrame,
    SendFrame,
    error_event,
    joined_event,
    left_event,
    parse_frame,
)

logger = get_logger(__name__)

# (project_id, user) -> None, raising NotFound / Forbidden
RoomAccessCheck = Callable[[UUID, User], Awaitable[object]]
# user_id -> allowed?
SendRateCheck = Callable[[UUID], Awaitable[bool]]


async def _always_allowed(user_id: UUID) -> bool:
    return True


class ChannelFrameHandler:
    def __init__(
        self,
        connection: Connection,
        channel: MessagingChannel,
        authorize_join: RoomAccessCheck,
        check_send_rate: SendRateCheck = _always_allowed,
    ):
        self.connection = connection
        self.channel = channel
        self.authorize_join = authorize_join
        self.check_send_rate = check_send_rate

    @property
    def user(self) -> User:
        return self.connection.user

    async def handle(self, raw: str | bytes) -> None:
        """Handle one inbound frame. Never raises for client mistakes."""
        try:
            frame = parse_frame(raw)
        except ValidationError as e:
            self._reply_error("invalid_frame", _summarize(e))
            return

        try:
            match frame:
                case JoinFrame():
                    await self._join(frame)
                case LeaveFrame():
                    self._leave(frame)
                case SendFrame():
                    await self._send(frame)
        except WorkroomError as e:
            logger.info(
                "Channel request rejected",
                event=frame.event,
                project_id=str(frame.project_id),
                code=e.code,
            )
            self._reply_error(e.code, e.detail)

    async def _join(self, frame: JoinFrame) -> None:
        await self.authorize_join(frame.project_id, self.user)
        self.channel.join(self.connection, frame.project_id)
        # Enqueued right after join, before any await, so it precedes fan-out
        self.connection.enqueue(joined_event(frame.project_id))

    def _leave(self, frame: LeaveFrame) -> None:
        self.channel.leave_room(self.connection, frame.project_id)
        self.connection.enqueue(left_event(frame.project_id))

    async def _send(self, frame: SendFrame) -> None:
        if frame.sender is not None and frame.sender != self.user.id:
            raise Forbidden("Sender does not match the authenticated user")
        if not self.channel.is_member(self.connection, frame.project_id):
            raise Forbidden("Join the project room before sending")
        if not await self.check_send_rate(self.user.id):
            raise RateLimited("Too many messages. Please slow down.")

        # The sender receives its own message through the room fan-out
        await self.channel.publish(frame.project_id, self.user.id, frame)

    def _reply_error(self, code: str, detail: str) -> None:
        self.connection.enqueue(error_event(code, detail))


def _summarize(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Invalid frame")
    return f"{location}: {message}" if location else message
