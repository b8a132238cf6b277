"""Application middlewares."""

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.app.core.config import Settings
from src.app.core.rate_limit import global_rate_limit_middleware

from .logging_context import logging_context_middleware

__all__ = [
    "setup_middlewares",
    "logging_context_middleware",
    "global_rate_limit_middleware",
]


def setup_middlewares(app: FastAPI, settings: Settings) -> None:
    """Configure HTTP middlewares. WebSocket scopes bypass the function
    middlewares and bind their own logging context.

    Middleware order matters - the last one added runs first.
    """
    # Global rate limiting, innermost: runs after request_id is bound
    @app.middleware("http")
    async def _global_rate_limit(request, call_next):  # type: ignore[no-untyped-def]
        return await global_rate_limit_middleware(request, call_next)

    # Logging context - binds request_id to structlog context
    @app.middleware("http")
    async def _logging_context(request, call_next):  # type: ignore[no-untyped-def]
        return await logging_context_middleware(request, call_next)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    # Correlation ID - generates/propagates X-Request-ID (outermost)
    app.add_middleware(CorrelationIdMiddleware)
