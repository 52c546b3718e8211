"""Optional Redis client used for the revoked-token blacklist.

Redis is an accelerator only. When REDIS_URL is unset or the server cannot be
reached, ``get_redis()`` returns None and callers use the database alone.
"""

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from src.pureflow.core.config import get_settings
from src.pureflow.core.logging import get_logger

logger = get_logger(__name__)

_pool: ConnectionPool | None = None
_redis: Redis | None = None
_connection_attempted: bool = False


async def get_redis() -> Redis | None:
    """Return the shared client, connecting lazily on first use.

    A failed connection is not retried until ``close_redis()`` resets state.
    """
    global _pool, _redis, _connection_attempted

    if _redis is not None:
        return _redis
    if _connection_attempted:
        return None

    _connection_attempted = True
    settings = get_settings()
    if not settings.redis_url:
        logger.info("Redis not configured, token blacklist disabled")
        return None

    pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=settings.redis_pool_size,
        decode_responses=True,
    )
    client = Redis(connection_pool=pool)
    try:
        await client.ping()  # type: ignore[misc]
    except (RedisError, OSError) as e:
        logger.warning("Redis connection failed, using database only", error=str(e))
        await client.aclose()
        await pool.disconnect()
        return None

    _pool, _redis = pool, client
    logger.info("Redis connected")
    return _redis


async def close_redis() -> None:
    """Close the client and its pool. Called during application shutdown."""
    if _redis is not None:
        await _redis.aclose()
        logger.info("Redis connection closed")
    if _pool is not None:
        await _pool.disconnect()
    reset_redis_state()


def reset_redis_state() -> None:
    """Forget the client without closing it. For tests."""
    global _pool, _redis, _connection_attempted
    _redis = None
    _pool = None
    _connection_attempted = False
