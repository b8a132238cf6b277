"""Session gateway: authenticate a WebSocket once, at connect time."""

from fastapi import WebSocket
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from src.app.core.db import get_session
from src.app.core.exceptions import PersistenceFailure, Unauthenticated
from src.app.core.security import extract_bearer_token, verify_access_token
from src.app.models import User
from src.app.realtime.connection import Connection
from src.app.repositories import UserRepository


def _token_from_handshake(websocket: WebSocket) -> str | None:
    """Browsers cannot set headers on WebSocket handshakes, so the query
    string is tried first, then the Authorization header."""
    token = websocket.query_params.get("token")
    if token:
        return token
    authorization = websocket.headers.get("authorization")
    if authorization:
        return extract_bearer_token(authorization)
    return None


class SessionGateway:
    def __init__(self, engine: AsyncEngine | None = None, queue_size: int = 256):
        self.engine = engine
        self.queue_size = queue_size

    async def authenticate(self, websocket: WebSocket) -> User:
        """Resolve the handshake credential to an active user.

        Raises:
            Unauthenticated: credential missing, malformed or expired, or the
                user is unknown or deactivated.
        """
        user_id = verify_access_token(_token_from_handshake(websocket))

        try:
            async with get_session(self.engine) as session:
                user = await UserRepository(session).get_by_id(user_id)
        except SQLAlchemyError as e:
            raise PersistenceFailure("Could not verify user") from e

        if user is None or not user.is_active:
            raise Unauthenticated("User not found or inactive")
        return user

    async def open_session(self, websocket: WebSocket) -> Connection:
        """Authenticate and bind the user to a new connection."""
        user = await self.authenticate(websocket)
        return Connection(websocket, user, queue_size=self.queue_size)
