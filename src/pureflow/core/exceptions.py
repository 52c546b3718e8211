"""Domain errors and the JSON error envelope.

Every error body has the shape
``{"success": false, "message": str, "detail": ..., "request_id": ...}``.
The dashboard client shows ``message``; ``detail`` keeps structured validation
errors; clients quote ``request_id`` when reporting a problem.
"""

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.pureflow.core.logging import get_logger

logger = get_logger(__name__)


class InvalidTokenError(Exception):
    """A token failed verification.

    Carries no reason: expired, forged, malformed, unknown and revoked tokens
    all look the same to callers.
    """

    def __init__(self) -> None:
        super().__init__("Invalid or expired token")


class StorageUnavailableError(Exception):
    """The credential store could not complete an operation; see ``__cause__``."""


def error_response(
    status_code: int, detail: object, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {
                "success": False,
                "message": detail if isinstance(detail, str) else "Validation error",
                "detail": detail,
                "request_id": correlation_id.get(),
            }
        ),
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    # FastAPI's HTTPException subclasses Starlette's, so routing 404s and
    # endpoint-raised errors both land here.
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(exc.status_code, exc.detail, exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, exc.errors())

    @app.exception_handler(InvalidTokenError)
    async def invalid_token(request: Request, exc: InvalidTokenError) -> JSONResponse:
        return error_response(status.HTTP_401_UNAUTHORIZED, str(exc))

    @app.exception_handler(StorageUnavailableError)
    async def storage_unavailable(request: Request, exc: StorageUnavailableError) -> JSONResponse:
        logger.error(
            "Credential store unavailable",
            path=request.url.path,
            error=str(exc.__cause__ or exc),
        )
        return error_response(
            status.HTTP_503_SERVICE_UNAVAILABLE, "Database unavailable, try again later"
        )

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception", exc_info=exc, path=request.url.path)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")
