from src.pureflow.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    RevokeSessionsResponse,
)
from src.pureflow.schemas.user import UserRead

__all__ = [
    # Auth
    "AuthResponse",
    "ChangePasswordRequest",
    "LoginRequest",
    "MessageResponse",
    "RegisterRequest",
    "RevokeSessionsResponse",
    # User
    "UserRead",
]
