"""Redis mirror of revoked refresh-token hashes.

The database decides whether a token is live; this cache only lets a revoked
token be turned away without a query. Every function degrades to a no-op
answer when Redis is absent.
"""

from collections.abc import Iterable

from src.pureflow.core.redis import get_redis

PREFIX_TOKEN_BLACKLIST = "token_blacklist"


def blacklist_key(token_hash: str) -> str:
    return f"{PREFIX_TOKEN_BLACKLIST}:{token_hash}"


async def blacklist_tokens(token_hashes: Iterable[str], ttl: int) -> int:
    """Mark hashes as revoked for ``ttl`` seconds.

    Returns how many keys were written, 0 without Redis.
    """
    keys = [blacklist_key(token_hash) for token_hash in token_hashes]
    redis = await get_redis() if keys else None
    if redis is None:
        return 0

    async with redis.pipeline(transaction=False) as pipe:
        for key in keys:
            pipe.set(key, "1", ex=ttl)
        await pipe.execute()
    return len(keys)


async def is_token_blacklisted(token_hash: str) -> bool | None:
    """True or False from Redis; None means ask the database."""
    redis = await get_redis()
    if redis is None:
        return None
    return bool(await redis.exists(blacklist_key(token_hash)))
