"""Token lifecycle - issue, verify, rotate and revoke session tokens.

A session is a pair of independent credentials:

- access token: HS256 JWT with the user's identity, verified locally
  (signature + expiry) without touching storage;
- refresh token: opaque random value, persisted through the credential store
  and single-use (every successful refresh revokes it and issues a new one).

The signing secret and all lifetimes come from a ``TokenConfig`` built once by
the application factory. Nothing here reads the environment.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Literal, Protocol
from uuid import UUID

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, ValidationError

from src.pureflow.core.config import Settings
from src.pureflow.core.exceptions import InvalidTokenError
from src.pureflow.core.logging import get_logger
from src.pureflow.core.security import generate_opaque_token
from src.pureflow.models import User, UserRole

logger = get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"


@dataclass(frozen=True)
class TokenLifetimes:
    """Token lifetimes, with and without "remember me"."""

    access_ttl_default: timedelta = timedelta(hours=1)
    access_ttl_remember: timedelta = timedelta(days=7)
    refresh_ttl_default: timedelta = timedelta(days=7)
    refresh_ttl_remember: timedelta = timedelta(days=30)

    def access_ttl(self, remember_me: bool) -> timedelta:
        return self.access_ttl_remember if remember_me else self.access_ttl_default

    def refresh_ttl(self, remember_me: bool) -> timedelta:
        return self.refresh_ttl_remember if remember_me else self.refresh_ttl_default

    @property
    def longest_refresh_ttl(self) -> timedelta:
        return max(self.refresh_ttl_default, self.refresh_ttl_remember)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenLifetimes":
        return cls(
            access_ttl_default=timedelta(seconds=settings.access_token_expire_seconds),
            access_ttl_remember=timedelta(seconds=settings.access_token_remember_seconds),
            refresh_ttl_default=timedelta(days=settings.refresh_token_expire_days),
            refresh_ttl_remember=timedelta(days=settings.refresh_token_remember_days),
        )


@dataclass(frozen=True)
class TokenConfig:
    """Signing material and lifetimes for the token lifecycle manager."""

    secret_key: str = field(repr=False)
    algorithm: str = "HS256"
    lifetimes: TokenLifetimes = field(default_factory=TokenLifetimes)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenConfig":
        return cls(
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            lifetimes=TokenLifetimes.from_settings(settings),
        )


class TokenClaims(BaseModel):
    """Identity proven by a valid access token."""

    model_config = ConfigDict(frozen=True)

    user_id: UUID
    email: str
    name: str
    role: UserRole


class _AccessTokenPayload(BaseModel):
    """Wire format of the access token payload."""

    sub: UUID
    email: str
    name: str
    role: UserRole
    iat: int
    exp: int
    type: Literal["access"]


@dataclass(frozen=True)
class IssuedTokens:
    """A freshly issued session. The refresh token is not yet persisted."""

    access_token: str = field(repr=False)
    refresh_token: str = field(repr=False)
    issued_at: datetime
    access_expires_at: datetime
    refresh_expires_at: datetime

    @property
    def access_max_age(self) -> int:
        return int((self.access_expires_at - self.issued_at).total_seconds())

    @property
    def refresh_max_age(self) -> int:
        return int((self.refresh_expires_at - self.issued_at).total_seconds())


@dataclass(frozen=True)
class StoredRefreshToken:
    """Refresh token row as seen by the manager. ``expires_at`` is aware UTC."""

    user_id: UUID
    expires_at: datetime
    revoked: bool


class CredentialStore(Protocol):
    """Persistence the token lifecycle depends on.

    Implementations hash refresh token values themselves; callers always pass
    the raw value.
    """

    async def find_user_by_email(self, email: str) -> User | None: ...

    async def find_user_by_id(self, user_id: UUID) -> User | None: ...

    async def find_active_refresh_token(self, token: str) -> StoredRefreshToken | None: ...

    async def insert_refresh_token(
        self, user_id: UUID, token: str, expires_at: datetime
    ) -> None: ...

    async def revoke_refresh_token(self, token: str) -> bool:
        """Revoke if active. Returns True only if this call revoked it."""
        ...

    def atomic(self) -> AbstractAsyncContextManager[None]:
        """Group the enclosed writes into one all-or-nothing unit."""
        ...


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TokenLifecycleManager:
    """Issues, verifies, rotates and revokes access/refresh token pairs."""

    def __init__(
        self,
        config: TokenConfig,
        store: CredentialStore,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.config = config
        self.store = store
        self._clock = clock

    def issue(self, user: User, remember_me: bool = False) -> IssuedTokens:
        """Mint a new access/refresh pair for ``user``.

        Pure: the refresh token must still be persisted by the caller.
        """
        now = self._clock()
        lifetimes = self.config.lifetimes

        issued_at = int(now.timestamp())
        expires_at = issued_at + int(lifetimes.access_ttl(remember_me).total_seconds())
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "name": user.name,
            "role": UserRole(user.role).value,
            "iat": issued_at,
            "exp": expires_at,
            "type": ACCESS_TOKEN_TYPE,
        }
        access_token: str = jwt.encode(  # type: ignore[assignment]
            payload,
            self.config.secret_key,
            algorithm=self.config.algorithm,
        )

        return IssuedTokens(
            access_token=access_token,
            refresh_token=generate_opaque_token(),
            issued_at=datetime.fromtimestamp(issued_at, UTC),
            access_expires_at=datetime.fromtimestamp(expires_at, UTC),
            refresh_expires_at=now + lifetimes.refresh_ttl(remember_me),
        )

    async def open_session(self, user: User, remember_me: bool = False) -> IssuedTokens:
        """Issue a pair and persist its refresh token."""
        issued = self.issue(user, remember_me=remember_me)
        async with self.store.atomic():
            await self.store.insert_refresh_token(
                user.id, issued.refresh_token, issued.refresh_expires_at
            )
        return issued

    def verify_access(self, token: str) -> TokenClaims:
        """Check signature and expiry of an access token and return its claims.

        Raises:
            InvalidTokenError: for any bad, malformed or expired token.
        """
        try:
            payload = jwt.decode(
                token,
                self.config.secret_key,
                algorithms=[self.config.algorithm],
                options={"verify_exp": False},
            )
            data = _AccessTokenPayload.model_validate(payload)
        except (JWTError, ValidationError, AttributeError):
            raise InvalidTokenError() from None

        # Expiry is judged against the manager's clock, not the library's
        if self._clock().timestamp() > data.exp:
            raise InvalidTokenError()

        return TokenClaims(
            user_id=data.sub,
            email=data.email,
            name=data.name,
            role=data.role,
        )

    async def verify_refresh(self, token: str) -> UUID:
        """Return the owner of an active refresh token.

        Raises:
            InvalidTokenError: unknown, revoked or expired token.
        """
        record = await self.store.find_active_refresh_token(token)
        if record is None or record.revoked or self._clock() > record.expires_at:
            raise InvalidTokenError()
        return record.user_id

    async def rotate(self, old_token: str, user: User) -> IssuedTokens:
        """Exchange a refresh token for a new pair, revoking the old one.

        Revocation of the old token and persistence of the new one happen in a
        single store unit. Of concurrent rotations presenting the same token,
        only one wins; the others get ``InvalidTokenError``.
        """
        async with self.store.atomic():
            owner_id = await self.verify_refresh(old_token)
            if owner_id != user.id:
                raise InvalidTokenError()
            if not await self.store.revoke_refresh_token(old_token):
                raise InvalidTokenError()
            issued = self.issue(user, remember_me=False)
            await self.store.insert_refresh_token(
                user.id, issued.refresh_token, issued.refresh_expires_at
            )

        logger.info("Refresh token rotated", user_id=str(user.id))
        return issued

    async def revoke(self, token: str) -> None:
        """Revoke a refresh token. Unknown or already revoked tokens are ignored."""
        async with self.store.atomic():
            await self.store.revoke_refresh_token(token)
