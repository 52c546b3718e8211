"""Application middlewares."""

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.pureflow.core.config import Settings
from src.pureflow.core.security import SecurityHeadersMiddleware

from .logging_context import logging_context_middleware

__all__ = [
    "setup_middlewares",
    "logging_context_middleware",
]


def setup_middlewares(app: FastAPI, settings: Settings) -> None:
    """Configure all application middlewares.

    Starlette wraps each added middleware around the previous ones, so the
    last one added runs first on a request.
    """

    # Logging context - needs the correlation ID set by the middleware below
    @app.middleware("http")
    async def _logging_context(request, call_next):  # type: ignore[no-untyped-def]
        return await logging_context_middleware(request, call_next)

    # HSTS only makes sense once cookies are marked Secure
    hsts = "max-age=31536000; includeSubDomains" if settings.cookie_secure else None
    app.add_middleware(SecurityHeadersMiddleware, hsts=hsts)

    # Correlation ID - generates/propagates X-Request-ID
    app.add_middleware(CorrelationIdMiddleware)

    # CORS - cookies are credentials, so origins must be explicit
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )
