"""Tests for access token verification (src/app/core/security)."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import jwt

from src.app.core.config import get_settings
from src.app.core.exceptions import Unauthenticated
from src.app.core.security import (
    create_access_token,
    extract_bearer_token,
    verify_access_token,
)

pytestmark = pytest.mark.unit


def _encode(claims: dict) -> str:
    settings = get_settings()
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


class TestVerifyAccessToken:
    def test_valid_token_returns_subject(self):
        user_id = uuid4()
        assert verify_access_token(create_access_token(user_id)) == user_id

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, token):
        with pytest.raises(Unauthenticated, match="Missing"):
            verify_access_token(token)

    def test_malformed_token(self):
        with pytest.raises(Unauthenticated, match="Invalid or expired"):
            verify_access_token("not-a-jwt")

    def test_expired_token(self):
        token = create_access_token(uuid4(), expires_delta=timedelta(seconds=-1))
        with pytest.raises(Unauthenticated, match="Invalid or expired"):
            verify_access_token(token)

    def test_wrong_secret(self):
        token = jwt.encode(
            {"sub": str(uuid4()), "type": "access"},
            "another-secret-that-is-long-enough-000000",
            algorithm="HS256",
        )
        with pytest.raises(Unauthenticated):
            verify_access_token(token)

    def test_wrong_token_type(self):
        with pytest.raises(Unauthenticated, match="type"):
            verify_access_token(_encode({"sub": str(uuid4()), "type": "refresh"}))

    def test_missing_subject(self):
        with pytest.raises(Unauthenticated):
            verify_access_token(_encode({"type": "access"}))

    def test_subject_must_be_uuid(self):
        with pytest.raises(Unauthenticated):
            verify_access_token(_encode({"sub": "alice", "type": "access"}))


class TestExtractBearerToken:
    def test_extracts_token(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer ", "bearer abc"])
    def test_rejects_other_schemes(self, header):
        with pytest.raises(Unauthenticated):
            extract_bearer_token(header)
