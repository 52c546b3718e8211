"""Refresh token rows, always addressed by SHA-256 hash."""

from datetime import timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, and_, delete, or_, update
from sqlmodel import col, select

from src.pureflow.models import RefreshToken
from src.pureflow.models.base import utc_now
from src.pureflow.repositories.base import BaseRepository


def active_clause() -> ColumnElement[bool]:
    # Inclusive at expires_at; the manager makes the final expiry call on its own clock
    return and_(col(RefreshToken.revoked).is_(False), col(RefreshToken.expires_at) >= utc_now())


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    model = RefreshToken

    async def get_valid_by_hash(self, token_hash: str) -> RefreshToken | None:
        result = await self.session.execute(
            select(RefreshToken).where(
                col(RefreshToken.token_hash) == token_hash, active_clause()
            )
        )
        return result.scalar_one_or_none()

    async def get_active_hashes_for_user(self, user_id: UUID) -> list[str]:
        result = await self.session.execute(
            select(RefreshToken.token_hash).where(
                col(RefreshToken.user_id) == user_id, active_clause()
            )
        )
        return list(result.scalars().all())

    async def _revoke_where(self, *criteria: Any) -> int:
        stmt = (
            update(RefreshToken)
            .where(col(RefreshToken.revoked).is_(False), *criteria)
            .values(revoked=True, revoked_at=utc_now())
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def revoke_by_hash(self, token_hash: str) -> bool:
        """Flip one token to revoked if nobody else has yet.

        The ``revoked IS false`` guard makes this a compare-and-swap: a second
        concurrent caller waits on the row lock, then updates nothing.
        """
        return await self._revoke_where(col(RefreshToken.token_hash) == token_hash) == 1

    async def revoke_all_for_user(self, user_id: UUID) -> int:
        return await self._revoke_where(col(RefreshToken.user_id) == user_id)

    async def cleanup_expired(self, retention_days: int) -> int:
        """Delete rows that expired, or were revoked, more than ``retention_days`` ago.

        Commits its own work; only the housekeeping activity calls it.
        """
        cutoff = utc_now() - timedelta(days=retention_days)
        result = await self.session.execute(
            delete(RefreshToken).where(
                or_(
                    col(RefreshToken.expires_at) < cutoff,
                    and_(col(RefreshToken.revoked).is_(True), col(RefreshToken.created_at) < cutoff),
                )
            )
        )
        await self.session.commit()
        return result.rowcount or 0  # type: ignore[attr-defined]
