"""Shared enums for models."""

from enum import Enum


class UserRole(str, Enum):
    """Dashboard role carried in access tokens."""

    ADMIN = "ADMIN"
    MARKETING = "MARKETING"
