"""WebSocket endpoint for project rooms.

Protocol (JSON text frames):

    -> {"event": "join",  "projectId": "..."}
    -> {"event": "leave", "projectId": "..."}
    -> {"event": "send",  "projectId": "...", "messageType": "text", "text": "..."}
    <- {"event": "joined", "projectId": "..."}
    <- {"event": "message", "message": {...}}
    <- {"event": "statusChanged", "projectId": "...", "status": "..."}
    <- {"event": "error", "code": "...", "detail": "..."}

Authentication happens once, at connect time, with the token in the ``token``
query parameter or an ``Authorization: Bearer`` header. A rejected handshake
gets one error frame and is closed with code 4401.
"""

from uuid import UUID

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from src.app.core.config import get_settings
from src.app.core.db import get_session
from src.app.core.exceptions import Unauthenticated, WorkroomError
from src.app.core.logging import bind_connection_context, clear_request_context, get_logger
from src.app.core.rate_limit import check_channel_send_allowed
from src.app.models import User
from src.app.realtime import (
    CLOSE_INTERNAL_ERROR,
    CLOSE_UNAUTHENTICATED,
    ChannelFrameHandler,
    MessagingChannel,
    SessionGateway,
)
from src.app.repositories import ApplicationRepository, MessageRepository, ProjectRepository
from src.app.schemas.channel import error_event
from src.app.services import ProjectService

logger = get_logger(__name__)

router = APIRouter(tags=["channel"])


async def authorize_room_access(project_id: UUID, user: User) -> None:
    """Only the project's client, its freelancer and admins may join."""
    async with get_session() as session:
        service = ProjectService(
            ProjectRepository(session),
            ApplicationRepository(session),
            MessageRepository(session),
            session,
        )
        await service.authorize_room_access(project_id, user)


@router.websocket("/ws")
async def project_channel(websocket: WebSocket) -> None:
    channel: MessagingChannel = websocket.app.state.channel
    gateway: SessionGateway = websocket.app.state.gateway
    settings = get_settings()

    await websocket.accept()
    clear_request_context()

    try:
        connection = await gateway.open_session(websocket)
    except WorkroomError as e:
        logger.info("Channel handshake rejected", code=e.code)
        await websocket.send_json(error_event(e.code, e.detail))
        close_code = CLOSE_UNAUTHENTICATED if isinstance(e, Unauthenticated) else CLOSE_INTERNAL_ERROR
        await websocket.close(code=close_code)
        return

    bind_connection_context(connection.id, connection.user.id)
    channel.attach(connection)
    connection.start()
    logger.info("Channel connected")

    handler = ChannelFrameHandler(
        connection,
        channel,
        authorize_join=authorize_room_access,
        check_send_rate=check_channel_send_allowed,
    )
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes") or b""
            await handler.handle(raw)
            if connection.closed:
                break
    except WebSocketDisconnect as e:
        logger.info("Channel disconnected", close_code=e.code)
    finally:
        rooms = channel.leave(connection)
        await connection.close(timeout=settings.channel_close_timeout_seconds)
        logger.debug("Channel cleaned up", rooms=len(rooms))
        clear_request_context()
