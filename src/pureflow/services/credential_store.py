"""SQL credential store - users and refresh tokens behind the token lifecycle.

The database is the source of truth. Redis, when configured, only caches
revoked token hashes for fast rejection and is written after commit.
"""

from collections.abc import AsyncGenerator, Iterator
from contextlib import asynccontextmanager, contextmanager
from datetime import datetime, timedelta
from uuid import UUID

from redis.exceptions import RedisError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.pureflow.core.cache import blacklist_tokens, is_token_blacklisted
from src.pureflow.core.exceptions import StorageUnavailableError
from src.pureflow.core.logging import get_logger
from src.pureflow.core.security import hash_token
from src.pureflow.models import RefreshToken, User
from src.pureflow.models.base import to_aware_utc, to_naive_utc
from src.pureflow.repositories import RefreshTokenRepository, UserRepository
from src.pureflow.services.token_service import StoredRefreshToken

logger = get_logger(__name__)


@contextmanager
def _storage_errors() -> Iterator[None]:
    """Re-raise driver and connection failures as StorageUnavailableError."""
    try:
        yield
    except IntegrityError:
        raise
    except (SQLAlchemyError, OSError) as e:
        raise StorageUnavailableError(str(e)) from e


class SqlCredentialStore:
    """Credential store on one AsyncSession.

    Writes made inside ``atomic()`` commit together when the block exits and
    roll back together on any exception. Writes outside it commit at once.
    """

    def __init__(
        self,
        session: AsyncSession,
        user_repo: UserRepository,
        token_repo: RefreshTokenRepository,
        blacklist_ttl: timedelta,
    ):
        self.session = session
        self.user_repo = user_repo
        self.token_repo = token_repo
        self.blacklist_ttl = blacklist_ttl
        self._in_unit = False
        self._revoked_hashes: list[str] = []

    @asynccontextmanager
    async def atomic(self) -> AsyncGenerator[None]:
        """Run the block as one transaction. Nested calls join the outer one."""
        if self._in_unit:
            yield
            return

        self._in_unit = True
        try:
            yield
            with _storage_errors():
                await self.session.commit()
        except BaseException:
            self._revoked_hashes.clear()
            await self._rollback()
            raise
        finally:
            self._in_unit = False

        await self._publish_revocations()

    async def _rollback(self) -> None:
        # Called while another exception propagates; that one must win
        try:
            await self.session.rollback()
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Rollback failed", error=str(e))

    async def _end_write(self) -> None:
        if self._in_unit:
            return
        with _storage_errors():
            await self.session.commit()
        await self._publish_revocations()

    async def _publish_revocations(self) -> None:
        hashes, self._revoked_hashes = self._revoked_hashes, []
        if not hashes:
            return
        try:
            await blacklist_tokens(hashes, int(self.blacklist_ttl.total_seconds()))
        except (RedisError, OSError) as e:
            # The database already holds the revocation
            logger.warning(
                "Failed to blacklist tokens in Redis", error=str(e), token_count=len(hashes)
            )

    # Users

    async def find_user_by_email(self, email: str) -> User | None:
        with _storage_errors():
            return await self.user_repo.get_by_email(email)

    async def find_user_by_id(self, user_id: UUID) -> User | None:
        with _storage_errors():
            return await self.user_repo.get_by_id(user_id)

    async def add_user(self, user: User) -> None:
        """Insert a new user.

        Raises:
            ValueError: the email is already registered.
        """
        self.user_repo.add(user)
        try:
            with _storage_errors():
                await self.session.flush()
        except IntegrityError as e:
            if not self._in_unit:
                await self._rollback()
            raise ValueError("User already exists") from e
        await self._end_write()

    async def save_user(self, user: User) -> None:
        self.session.add(user)
        await self._end_write()

    # Refresh tokens

    async def find_active_refresh_token(self, token: str) -> StoredRefreshToken | None:
        token_hash = hash_token(token)

        try:
            if await is_token_blacklisted(token_hash) is True:
                return None
        except (RedisError, OSError) as e:
            logger.warning("Redis blacklist lookup failed, using database", error=str(e))

        with _storage_errors():
            row = await self.token_repo.get_valid_by_hash(token_hash)
        if row is None:
            return None
        return StoredRefreshToken(
            user_id=row.user_id,
            expires_at=to_aware_utc(row.expires_at),
            revoked=row.revoked,
        )

    async def insert_refresh_token(self, user_id: UUID, token: str, expires_at: datetime) -> None:
        self.token_repo.add(
            RefreshToken(
                user_id=user_id,
                token_hash=hash_token(token),
                expires_at=to_naive_utc(expires_at),
            )
        )
        await self._end_write()

    async def revoke_refresh_token(self, token: str) -> bool:
        token_hash = hash_token(token)
        with _storage_errors():
            revoked = await self.token_repo.revoke_by_hash(token_hash)
        if revoked:
            self._revoked_hashes.append(token_hash)
        await self._end_write()
        return revoked

    async def revoke_all_for_user(self, user_id: UUID) -> int:
        with _storage_errors():
            hashes = await self.token_repo.get_active_hashes_for_user(user_id)
            count = await self.token_repo.revoke_all_for_user(user_id)
        self._revoked_hashes.extend(hashes)
        await self._end_write()
        return count
