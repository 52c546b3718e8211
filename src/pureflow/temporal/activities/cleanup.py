"""Refresh token cleanup activity."""

from temporalio import activity

from src.pureflow.core.db import get_session
from src.pureflow.repositories import RefreshTokenRepository


@activity.defn
async def cleanup_refresh_tokens(retention_days: int) -> int:
    """
    Delete refresh tokens that expired, or were revoked, more than
    ``retention_days`` ago.

    Idempotent: a second run finds nothing left to delete.

    Returns:
        Number of tokens deleted
    """
    activity.logger.info(f"Cleaning up refresh tokens older than {retention_days} days")

    async with get_session() as session:
        count = await RefreshTokenRepository(session).cleanup_expired(retention_days)

    activity.logger.info(f"Deleted {count} expired refresh tokens")
    return count
