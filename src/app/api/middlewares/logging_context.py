"""Per-request logging context and access log."""

import time

from asgi_correlation_id import correlation_id
from fastapi import Request, Response
from starlette.middleware.base import RequestResponseEndpoint

from src.app.core.logging import bind_request_context, clear_request_context, get_logger

logger = get_logger("src.app.access")


async def logging_context_middleware(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    """Bind request_id for every log line of the request, then emit one access line."""
    clear_request_context()
    bind_request_context(correlation_id.get())
    started = time.perf_counter()
    try:
        response = await call_next(request)
        if request.url.path not in ("/health", "/metrics"):
            logger.info(
                "Request handled",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
        return response
    finally:
        clear_request_context()
