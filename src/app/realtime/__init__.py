"""Real-time layer: connections, rooms and the WebSocket session gateway."""

from src.app.realtime.channel import MessageStore, MessagingChannel
from src.app.realtime.connection import (
    CLOSE_INTERNAL_ERROR,
    CLOSE_UNAUTHENTICATED,
    Connection,
)
from src.app.realtime.gateway import SessionGateway
from src.app.realtime.handler import ChannelFrameHandler

__all__ = [
    "CLOSE_INTERNAL_ERROR",
    "CLOSE_UNAUTHENTICATED",
    "ChannelFrameHandler",
    "Connection",
    "MessageStore",
    "MessagingChannel",
    "SessionGateway",
]
