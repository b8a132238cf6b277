"""Health and metrics endpoints."""

import secrets
import time
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from prometheus_fastapi_instrumentator import Instrumentator
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.app.core.config import get_settings
from src.app.core.db import get_session
from src.app.core.logging import get_logger
from src.app.core.redis import get_redis

logger = get_logger(__name__)

_health_cache: dict[str, Any] | None = None
_health_cache_time: float = 0
HEALTH_CACHE_TTL = 10  # seconds


def reset_health_cache() -> None:
    """Reset health cache (for testing)."""
    global _health_cache, _health_cache_time
    _health_cache = None
    _health_cache_time = 0


async def _check_database() -> str:
    try:
        async with get_session() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Database health check failed", error=str(e))
        return f"unhealthy: {e!s}"
    return "healthy"


async def _check_redis() -> str:
    redis = await get_redis()
    if redis is None:
        return "not_configured"
    try:
        await redis.ping()  # type: ignore[misc]
    except (RedisError, OSError) as e:
        return f"unhealthy: {e!s}"
    return "healthy"


def setup_health_endpoint(app: FastAPI) -> None:
    """Configure the health check endpoint."""

    @app.get("/health", include_in_schema=False)
    async def health(request: Request) -> JSONResponse:
        """Database is required; Redis is optional (degraded when down)."""
        global _health_cache, _health_cache_time

        now = time.time()
        channel_stats = request.app.state.channel.stats()

        if _health_cache and (now - _health_cache_time) < HEALTH_CACHE_TTL:
            cached = {**_health_cache, "channel": channel_stats, "cached": True}
            cached["cache_age_seconds"] = round(now - _health_cache_time, 1)
            status_code = 200 if cached["status"] == "healthy" else 503
            return JSONResponse(content=cached, status_code=status_code)

        health_status: dict[str, Any] = {
            "status": "healthy",
            "database": await _check_database(),
            "redis": await _check_redis(),
            "channel": channel_stats,
            "cached": False,
            "timestamp": now,
        }
        if health_status["database"] != "healthy":
            health_status["status"] = "unhealthy"
        elif health_status["redis"].startswith("unhealthy"):
            health_status["status"] = "degraded"

        _health_cache = health_status
        _health_cache_time = now

        status_code = 200 if health_status["status"] == "healthy" else 503
        return JSONResponse(content=health_status, status_code=status_code)


def setup_metrics(app: FastAPI) -> None:
    """Prometheus metrics, optionally behind an X-Metrics-Key header."""
    settings = get_settings()
    instrumentator = Instrumentator(excluded_handlers=["/health", "/metrics"]).instrument(app)

    if not settings.metrics_api_key:
        instrumentator.expose(app, endpoint="/metrics", include_in_schema=False)
        return

    api_key_header = APIKeyHeader(name="X-Metrics-Key", auto_error=False)

    async def verify_metrics_key(api_key: str | None = Depends(api_key_header)) -> None:
        expected = settings.metrics_api_key
        if api_key is None or expected is None or not secrets.compare_digest(api_key, expected):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or missing metrics API key",
            )

    instrumentator.expose(
        app,
        endpoint="/metrics",
        include_in_schema=False,
        dependencies=[Depends(verify_metrics_key)],
    )
