from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.app.api.middlewares import setup_middlewares
from src.app.api.v1.router import api_router
from src.app.core.config import get_settings
from src.app.core.db import dispose_engine
from src.app.core.exceptions import setup_exception_handlers
from src.app.core.health import setup_health_endpoint, setup_metrics
from src.app.core.logging import get_logger, setup_logging
from src.app.core.rate_limit import limiter
from src.app.core.redis import close_redis
from src.app.realtime import MessagingChannel, SessionGateway
from src.app.services import DatabaseMessageStore

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    logger.info(f"Starting {settings.app_name}", env=settings.app_env)

    yield

    # Close sockets first so no publish races the engine disposal
    logger.info("Shutdown initiated", **app.state.channel.stats())
    await app.state.channel.close()
    await close_redis()
    await dispose_engine()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "projects", "description": "Project state and lifecycle transitions"},
    {"name": "applications", "description": "Accepting and rejecting applications"},
    {"name": "channel", "description": "WebSocket project rooms"},
]


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.debug)

    app = FastAPI(
        title=settings.app_name,
        description="Real-time project rooms with a project lifecycle state machine",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        docs_url="/docs" if settings.enable_openapi else None,
        redoc_url="/redoc" if settings.enable_openapi else None,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
    )

    # Rooms live for the whole process, not per request
    app.state.channel = MessagingChannel(
        DatabaseMessageStore(),
        close_timeout=settings.channel_close_timeout_seconds,
    )
    app.state.gateway = SessionGateway(queue_size=settings.channel_outbound_queue_size)

    setup_exception_handlers(app)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    setup_middlewares(app, settings)

    app.include_router(api_router)

    setup_health_endpoint(app)
    setup_metrics(app)

    return app


app = create_app()
