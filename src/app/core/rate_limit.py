"""Rate limiting with an optional Redis backend.

Three layers:
1. Global HTTP middleware: token bucket per client IP, before any routing.
2. Endpoint decorators (slowapi): per-route limits on mutating REST calls.
3. Channel sends: token bucket per user, checked for every ``send`` frame,
   since WebSocket traffic never passes through HTTP middleware.

Buckets live in Redis when REDIS_URL is configured (shared by every worker)
and fall back to process memory otherwise. Everything is disabled when
APP_ENV=testing.
"""

import asyncio
import time
from uuid import UUID

from redis.asyncio import Redis
from redis.exceptions import RedisError
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from src.app.core.config import get_settings
from src.app.core.logging import get_logger
from src.app.core.redis import get_redis

logger = get_logger(__name__)

_EXEMPT_PATHS = frozenset({"/health", "/metrics", "/docs", "/openapi.json", "/redoc"})

# Atomic refill-and-take on the Redis server
_REDIS_TOKEN_BUCKET_SCRIPT = """
local key = KEYS[1]
local rate = tonumber(ARGV[1])
local burst = tonumber(ARGV[2])
local now = tonumber(ARGV[3])
local ttl = tonumber(ARGV[4])

local bucket = redis.call('HMGET', key, 'tokens', 'last_update')
local tokens = tonumber(bucket[1]) or burst
local last_update = tonumber(bucket[2]) or now

tokens = math.min(burst, tokens + (now - last_update) * rate)

local allowed = 0
if tokens >= 1 then
    tokens = tokens - 1
    allowed = 1
end
redis.call('HSET', key, 'tokens', tokens, 'last_update', now)
redis.call('EXPIRE', key, ttl)
return allowed
"""

_script_sha: str | None = None

# In-memory fallback: key -> (tokens, last_update, full_at)
_buckets: dict[str, tuple[float, float, float]] = {}
_buckets_lock = asyncio.Lock()
_PRUNE_INTERVAL_SECONDS = 60.0
_last_prune = 0.0


def get_rate_limit_key(request: Request) -> str:
    """Client IP only. Never key on unauthenticated headers: rotating them
    would mint unlimited fresh buckets."""
    return get_remote_address(request) or "unknown"


def create_limiter() -> Limiter:
    """slowapi limiter for route decorators. Redis-backed when configured."""
    settings = get_settings()

    if settings.app_env == "testing":
        logger.info("Rate limiter disabled (testing environment)")
        return Limiter(key_func=get_rate_limit_key, enabled=False)

    if settings.redis_url:
        logger.info("Rate limiter using Redis backend")
        return Limiter(key_func=get_rate_limit_key, storage_uri=settings.redis_url)

    logger.info("Rate limiter using in-memory backend (not distributed)")
    return Limiter(key_func=get_rate_limit_key)


limiter = create_limiter()


def _prune_full_buckets(now: float) -> None:
    """Drop buckets that have refilled completely. A missing key reads as full,
    so this changes no decision. Caller holds ``_buckets_lock``."""
    global _last_prune
    if now - _last_prune < _PRUNE_INTERVAL_SECONDS:
        return
    _last_prune = now
    full = [key for key, (_, _, full_at) in _buckets.items() if full_at <= now]
    for key in full:
        del _buckets[key]


async def _take_in_memory(key: str, rate: float, burst: int) -> bool:
    now = time.monotonic()
    async with _buckets_lock:
        _prune_full_buckets(now)
        tokens, last_update, _ = _buckets.get(key, (float(burst), now, now))
        tokens = min(float(burst), tokens + (now - last_update) * rate)
        allowed = tokens >= 1
        if allowed:
            tokens -= 1
        _buckets[key] = (tokens, now, now + (burst - tokens) / rate)
    return allowed


async def _take_redis(redis: Redis, key: str, rate: float, burst: int) -> bool:
    global _script_sha
    if _script_sha is None:
        _script_sha = await redis.script_load(_REDIS_TOKEN_BUCKET_SCRIPT)

    # Long enough to refill a full bucket, plus slack
    ttl = int(burst / rate) + 60
    result = await redis.evalsha(  # type: ignore[misc]
        _script_sha, 1, key, str(rate), str(burst), str(time.time()), str(ttl)
    )
    return bool(int(result) == 1)


async def take_token(key: str, rate: float, burst: int) -> bool:
    """Consume one token from the bucket at ``key``.

    Returns:
        True if the action is allowed.
    """
    redis = await get_redis()
    if redis is not None:
        try:
            return await _take_redis(redis, key, rate, burst)
        except RedisError as e:
            global _script_sha
            # Script cache is lost if Redis restarted
            _script_sha = None
            logger.warning("Redis rate limit check failed, using in-memory", key=key, error=str(e))

    return await _take_in_memory(key, rate, burst)


async def check_global_rate_limit(client_ip: str) -> bool:
    settings = get_settings()
    if settings.app_env == "testing":
        return True
    return await take_token(
        f"global_ratelimit:{client_ip}",
        settings.global_rate_limit_per_second,
        settings.global_rate_limit_burst,
    )


async def check_channel_send_allowed(user_id: UUID) -> bool:
    """Per-user budget for messages published over the channel."""
    settings = get_settings()
    if settings.app_env == "testing":
        return True
    return await take_token(
        f"channel_send:{user_id}",
        settings.channel_send_rate_per_second,
        settings.channel_send_burst,
    )


async def global_rate_limit_middleware(request: Request, call_next) -> Response:  # type: ignore[no-untyped-def]
    """Per-IP token bucket in front of every HTTP route except monitoring."""
    if request.url.path in _EXEMPT_PATHS:
        return await call_next(request)  # type: ignore[no-any-return]

    client_ip = get_rate_limit_key(request)
    if not await check_global_rate_limit(client_ip):
        logger.warning("Global rate limit exceeded", client_ip=client_ip, path=request.url.path)
        return JSONResponse(
            status_code=429,
            content={
                "detail": "Too many requests. Please slow down.",
                "code": "rate_limited",
                "retry_after": 1,
            },
            headers={"Retry-After": "1"},
        )

    return await call_next(request)  # type: ignore[no-any-return]


def reset_rate_limit_state() -> None:
    """Forget all in-memory buckets and the cached script. For tests."""
    global _script_sha, _last_prune
    _script_sha = None
    _last_prune = 0.0
    _buckets.clear()
