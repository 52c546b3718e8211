"""Data access for users and refresh tokens."""

from src.pureflow.repositories.base import BaseRepository
from src.pureflow.repositories.token import RefreshTokenRepository
from src.pureflow.repositories.user import UserRepository, normalize_email

__all__ = [
    "BaseRepository",
    "RefreshTokenRepository",
    "UserRepository",
    "normalize_email",
]
