"""Domain error taxonomy and the HTTP handlers that render it.

Services raise these; routers never translate them by hand. Every
response body carries the request_id so clients can report failures.
"""

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.app.core.logging import get_logger

logger = get_logger(__name__)


class WorkroomError(Exception):
    """Base class for every expected failure surfaced to callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class Unauthenticated(WorkroomError):
    """No credential, or the credential is malformed or expired."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "unauthenticated"


class Forbidden(WorkroomError):
    """Caller is authenticated but lacks rights for the target action."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class NotFound(WorkroomError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class InvalidTransition(WorkroomError):
    """Requested lifecycle change is illegal from the current state."""

    status_code = status.HTTP_409_CONFLICT
    code = "invalid_transition"


class PersistenceFailure(WorkroomError):
    """The store rejected a read or write. Never retried by the core."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "persistence_failure"


class RateLimited(WorkroomError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "rate_limited"


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(WorkroomError)
    async def workroom_error_handler(request: Request, exc: WorkroomError) -> JSONResponse:
        if isinstance(exc, PersistenceFailure):
            logger.error("Persistence failure", path=request.url.path, detail=exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "code": exc.code,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "detail": exc.detail,
                "request_id": correlation_id.get(),
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
