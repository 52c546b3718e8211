"""Process-wide async engine."""

import ssl
from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from src.pureflow.core.config import Settings, get_settings

# mode -> (check_hostname, verify_mode)
_SSL_MODES: dict[str, tuple[bool, ssl.VerifyMode]] = {
    "prefer": (False, ssl.CERT_NONE),
    "require": (False, ssl.CERT_NONE),
    "verify-ca": (False, ssl.CERT_REQUIRED),
    "verify-full": (True, ssl.CERT_REQUIRED),
}

_engine: AsyncEngine | None = None


def ssl_connect_args(mode: str) -> dict[str, Any]:
    """Translate a libpq-style sslmode into asyncpg ``connect_args``."""
    if mode not in _SSL_MODES:
        return {}
    check_hostname, verify_mode = _SSL_MODES[mode]
    context = ssl.create_default_context()
    context.check_hostname = check_hostname
    context.verify_mode = verify_mode
    return {"ssl": context}


def build_engine(settings: Settings) -> AsyncEngine:
    return create_async_engine(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_pre_ping=True,
        connect_args=ssl_connect_args(settings.database_ssl_mode),
    )


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings())
    return _engine


async def dispose_engine() -> None:
    global _engine
    engine, _engine = _engine, None
    if engine is not None:
        await engine.dispose()
