"""Security utilities - crypto and HTTP headers.

Re-exports all security-related functions for convenience.
"""

from src.pureflow.core.security.crypto import (
    generate_opaque_token,
    get_dummy_password_hash,
    hash_password,
    hash_token,
    verify_password,
)
from src.pureflow.core.security.headers import SecurityHeadersMiddleware

__all__ = [
    # Crypto
    "generate_opaque_token",
    "get_dummy_password_hash",
    "hash_password",
    "hash_token",
    "verify_password",
    # Middleware
    "SecurityHeadersMiddleware",
]
