"""Optional Redis client.

Redis backs the shared rate-limit buckets. The service runs without it:
callers get ``None`` and fall back to process-local state.
"""

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from src.app.core.config import get_settings
from src.app.core.logging import get_logger

logger = get_logger(__name__)

_client: Redis | None = None
# Set after the first attempt so a missing Redis is not re-dialed on every call
_attempted = False


async def get_redis() -> Redis | None:
    """Lazily connect on first use. Returns None if unconfigured or unreachable."""
    global _client, _attempted

    if _client is not None or _attempted:
        return _client
    _attempted = True

    settings = get_settings()
    if not settings.redis_url:
        logger.info("Redis not configured (REDIS_URL not set)")
        return None

    pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=settings.redis_pool_size,
        decode_responses=True,
    )
    client = Redis(connection_pool=pool)
    try:
        await client.ping()  # type: ignore[misc]
    except (RedisError, OSError) as e:
        logger.warning("Redis unavailable, continuing without it", error=str(e))
        await client.aclose()
        await pool.disconnect()
        return None

    logger.info("Redis connected")
    _client = client
    return _client


def set_redis(client: Redis | None) -> None:
    """Install a client directly (e.g. fakeredis in tests)."""
    global _client, _attempted
    _client = client
    _attempted = True


async def close_redis() -> None:
    """Close the client and its pool. Called on shutdown."""
    global _client, _attempted

    if _client is not None:
        await _client.aclose(close_connection_pool=True)
        logger.info("Redis connection closed")

    _client = None
    _attempted = False
