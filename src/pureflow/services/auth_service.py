"""Authentication service - login, registration, refresh and logout."""

from typing import Protocol
from uuid import UUID

from src.pureflow.core.exceptions import InvalidTokenError
from src.pureflow.core.logging import get_logger
from src.pureflow.core.security import get_dummy_password_hash, hash_password, verify_password
from src.pureflow.models import User, UserRole
from src.pureflow.models.base import utc_now
from src.pureflow.repositories import normalize_email
from src.pureflow.services.token_service import (
    CredentialStore,
    IssuedTokens,
    TokenLifecycleManager,
)

logger = get_logger(__name__)


class AccountStore(CredentialStore, Protocol):
    """Credential store plus the account writes the auth flows need."""

    async def add_user(self, user: User) -> None: ...

    async def save_user(self, user: User) -> None: ...

    async def revoke_all_for_user(self, user_id: UUID) -> int: ...


class AuthService:
    """Authentication flows on top of the token lifecycle manager."""

    def __init__(self, tokens: TokenLifecycleManager, store: AccountStore):
        self.tokens = tokens
        self.store = store

    async def authenticate(
        self, email: str, password: str, remember_me: bool = False
    ) -> tuple[User, IssuedTokens] | None:
        """Check credentials and open a session.

        Returns None if authentication fails, without saying why.
        """
        user = await self.store.find_user_by_email(email)

        # Always verify a hash so response time does not reveal unknown emails
        password_hash = user.hashed_password if user else get_dummy_password_hash()
        password_valid = verify_password(password, password_hash)

        if user is None or not password_valid or not user.is_active:
            return None

        issued = await self.tokens.open_session(user, remember_me=remember_me)
        logger.info("User logged in", user_id=str(user.id), remember_me=remember_me)
        return user, issued

    async def register(
        self,
        email: str,
        password: str,
        name: str,
        role: UserRole = UserRole.MARKETING,
    ) -> tuple[User, IssuedTokens]:
        """Create an account and open its first session.

        Raises:
            ValueError: the email is already registered.
        """
        if await self.store.find_user_by_email(email) is not None:
            raise ValueError("User already exists")

        user = User(
            email=normalize_email(email),
            hashed_password=hash_password(password),
            name=name,
            role=role.value,
        )
        async with self.store.atomic():
            await self.store.add_user(user)
            issued = await self.tokens.open_session(user)

        logger.info("User registered", user_id=str(user.id), role=user.role)
        return user, issued

    async def refresh(self, refresh_token: str) -> tuple[User, IssuedTokens]:
        """Rotate a refresh token into a new session pair.

        Raises:
            InvalidTokenError: the token is not active or its user is gone.
        """
        user_id = await self.tokens.verify_refresh(refresh_token)
        user = await self.store.find_user_by_id(user_id)
        if user is None or not user.is_active:
            raise InvalidTokenError()
        return user, await self.tokens.rotate(refresh_token, user)

    async def logout(self, refresh_token: str | None) -> None:
        """End the session. Missing or already revoked tokens are fine."""
        if refresh_token:
            await self.tokens.revoke(refresh_token)

    async def current_user(self, access_token: str) -> User:
        """Resolve the user behind an access token.

        Raises:
            InvalidTokenError: bad token, or the user no longer exists or is inactive.
        """
        claims = self.tokens.verify_access(access_token)
        user = await self.store.find_user_by_id(claims.user_id)
        if user is None or not user.is_active:
            raise InvalidTokenError()
        return user

    async def change_password(
        self, user: User, current_password: str, new_password: str
    ) -> IssuedTokens:
        """Replace the password, end every session and open a new one.

        Raises:
            ValueError: the current password does not match.
        """
        if not verify_password(current_password, user.hashed_password):
            raise ValueError("Current password is incorrect")

        user.hashed_password = hash_password(new_password)
        user.updated_at = utc_now()
        async with self.store.atomic():
            await self.store.save_user(user)
            revoked = await self.store.revoke_all_for_user(user.id)
            issued = await self.tokens.open_session(user)

        logger.info("Password changed", user_id=str(user.id), revoked_sessions=revoked)
        return issued

    async def revoke_all_sessions(self, user_id: UUID) -> int | None:
        """Revoke every refresh token of a user.

        Returns the number revoked, or None if the user does not exist.
        """
        if await self.store.find_user_by_id(user_id) is None:
            return None
        async with self.store.atomic():
            count = await self.store.revoke_all_for_user(user_id)
        logger.info("Sessions revoked", target_user_id=str(user_id), count=count)
        return count
