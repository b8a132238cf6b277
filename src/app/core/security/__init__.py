"""Security utilities - access token creation and verification."""

from src.app.core.security.crypto import (
    TOKEN_TYPE_ACCESS,
    create_access_token,
    decode_token,
    extract_bearer_token,
    verify_access_token,
)

__all__ = [
    "TOKEN_TYPE_ACCESS",
    "create_access_token",
    "decode_token",
    "extract_bearer_token",
    "verify_access_token",
]
