"""JWT access tokens.

Tokens are minted by the external identity service with the shared secret;
this module verifies them. ``create_access_token`` exists for that service's
contract and for tests.
"""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from src.app.core.config import get_settings
from src.app.core.exceptions import Unauthenticated

TOKEN_TYPE_ACCESS = "access"


def create_access_token(
    subject: str | UUID,
    expires_delta: timedelta | None = None,
) -> str:
    """Create JWT access token."""
    settings = get_settings()

    if expires_delta is not None:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {
        "sub": str(subject),
        "exp": expire,
        "type": TOKEN_TYPE_ACCESS,
    }
    return jwt.encode(  # type: ignore[no-any-return]
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and validate JWT token. Returns None on any error (incl. expiry)."""
    settings = get_settings()
    try:
        return jwt.decode(  # type: ignore[no-any-return]
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None


def extract_bearer_token(authorization: str | None) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthenticated("Missing or invalid authorization header")
    token = authorization[7:].strip()
    if not token:
        raise Unauthenticated("Missing or invalid authorization header")
    return token


def verify_access_token(token: str | None) -> UUID:
    """Validate an access token and return the user id it was issued for.

    Raises:
        Unauthenticated: token missing, malformed, expired, of the wrong
            type, or without a UUID subject.
    """
    if not token:
        raise Unauthenticated("Missing access token")

    payload = decode_token(token)
    if payload is None:
        raise Unauthenticated("Invalid or expired token")

    if payload.get("type") != TOKEN_TYPE_ACCESS:
        raise Unauthenticated("Invalid token type")

    subject = payload.get("sub")
    if not subject:
        raise Unauthenticated("Invalid token payload")

    try:
        return UUID(subject)
    except ValueError as e:
        raise Unauthenticated("Invalid user id in token") from e
