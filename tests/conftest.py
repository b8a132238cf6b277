"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database-specific fixtures are in tests/integration/conftest.py.
"""

import os
import tempfile
from pathlib import Path

# Set APP_ENV to testing before any app imports to disable rate limiting
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("JWT_SECRET_KEY", "workroom-test-secret-key-0123456789abcdef")
# One SQLite file per test process; integration fixtures recreate its tables per test
_TEST_DB = Path(tempfile.gettempdir()) / f"workroom-test-{os.getpid()}.db"
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_DB}")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator, Generator

import pytest
from fakeredis import aioredis as fakeredis_aio
from redis.asyncio import Redis

from src.app.core import rate_limit
from src.app.core import redis as redis_core
from src.app.core.config import get_settings

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


# --- Rate Limit Fixtures ---


@pytest.fixture
def reset_rate_limit_buckets() -> Generator[None]:
    """Reset rate limit in-memory state.

    Use this fixture when you need to ensure rate limit state is clean.
    """
    rate_limit.reset_rate_limit_state()
    yield
    rate_limit.reset_rate_limit_state()


# --- Redis Test Fixtures (shared) ---


@pytest.fixture
async def fake_redis() -> AsyncGenerator[Redis]:
    """In-memory Redis implementation, no server required."""
    client = fakeredis_aio.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
async def mock_redis(fake_redis: Redis) -> AsyncGenerator[Redis]:
    """Install fakeredis as the process Redis client."""
    redis_core.set_redis(fake_redis)
    yield fake_redis
    redis_core.set_redis(None)
    await redis_core.close_redis()


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    _TEST_DB.unlink(missing_ok=True)
