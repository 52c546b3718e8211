"""Password hashing (Argon2id) and opaque refresh-token material."""

import secrets
from functools import lru_cache
from hashlib import sha256

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from src.pureflow.core.config import get_settings

REFRESH_TOKEN_BYTES = 32


def generate_opaque_token() -> str:
    return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Hex SHA-256 digest; the only form in which refresh tokens are persisted."""
    return sha256(token.encode()).hexdigest()


@lru_cache
def _hasher() -> PasswordHasher:
    settings = get_settings()
    return PasswordHasher(
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
    )


def hash_password(password: str) -> str:
    return _hasher().hash(password)


def verify_password(password: str, hashed: str) -> bool:
    try:
        return _hasher().verify(hashed, password)
    except (VerificationError, InvalidHashError):
        return False


@lru_cache
def get_dummy_password_hash() -> str:
    """A throwaway hash checked when the email is unknown, so both paths cost one Argon2 run."""
    return hash_password(secrets.token_urlsafe(16))
