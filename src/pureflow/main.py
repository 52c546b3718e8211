from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.pureflow.api.middlewares import setup_middlewares
from src.pureflow.api.v1.router import api_router
from src.pureflow.core.config import get_settings
from src.pureflow.core.db import dispose_engine
from src.pureflow.core.exceptions import setup_exception_handlers
from src.pureflow.core.health import setup_health_endpoint, setup_metrics
from src.pureflow.core.logging import get_logger, setup_logging
from src.pureflow.core.rate_limit import setup_rate_limiting
from src.pureflow.core.redis import close_redis
from src.pureflow.services import TokenConfig

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info("Starting application", app_name=settings.app_name, env=settings.app_env)

    yield

    await close_redis()
    await dispose_engine()
    # Token config lives exactly as long as the application
    app.state.token_config = None
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "auth", "description": "Session cookies: login, refresh, logout"},
    {"name": "users", "description": "User session administration"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Authentication API for the Pureflow campaign dashboard",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
        lifespan=lifespan,
    )

    app.state.token_config = TokenConfig.from_settings(settings)

    setup_exception_handlers(app)

    setup_rate_limiting(app)

    setup_middlewares(app, settings)

    app.include_router(api_router)

    setup_metrics(app)
    setup_health_endpoint(app)

    return app


app = create_app()
