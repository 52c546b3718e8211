"""Liveness and Prometheus endpoints."""

import secrets
import time

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from prometheus_fastapi_instrumentator import Instrumentator
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.pureflow.core.config import get_settings
from src.pureflow.core.db import get_session
from src.pureflow.core.logging import get_logger
from src.pureflow.core.redis import get_redis

logger = get_logger(__name__)


async def check_database() -> str:
    try:
        async with get_session() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.error("Health check: database unreachable", error=str(e))
        return "unhealthy"
    return "healthy"


async def check_redis() -> str:
    redis = await get_redis()
    if redis is None:
        return "not_configured"
    try:
        await redis.ping()  # type: ignore[misc]
    except (RedisError, OSError) as e:
        logger.warning("Health check: redis unreachable", error=str(e))
        return "unhealthy"
    return "healthy"


def setup_health_endpoint(app: FastAPI) -> None:
    @app.get("/health", include_in_schema=False)
    async def health() -> JSONResponse:
        """503 only when the database is down; a lost Redis just degrades."""
        database = await check_database()
        redis = await check_redis()

        if database != "healthy":
            overall = "unhealthy"
        elif redis == "unhealthy":
            overall = "degraded"
        else:
            overall = "healthy"

        return JSONResponse(
            status_code=503 if overall == "unhealthy" else 200,
            content={
                "status": overall,
                "database": database,
                "redis": redis,
                "timestamp": time.time(),
            },
        )


def setup_metrics(app: FastAPI) -> None:
    """Expose /metrics, guarded by X-Metrics-Key when METRICS_API_KEY is set."""
    instrumentator = Instrumentator(excluded_handlers=["/health", "/metrics"]).instrument(app)
    expected_key = get_settings().metrics_api_key
    if not expected_key:
        instrumentator.expose(app, endpoint="/metrics", include_in_schema=False)
        return

    key_header = APIKeyHeader(name="X-Metrics-Key", auto_error=False)

    async def require_metrics_key(api_key: str | None = Depends(key_header)) -> None:
        if api_key is None or not secrets.compare_digest(api_key, expected_key):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or missing metrics API key",
            )

    instrumentator.expose(
        app,
        endpoint="/metrics",
        include_in_schema=False,
        dependencies=[Depends(require_metrics_key)],
    )
