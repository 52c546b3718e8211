from src.pureflow.services.auth_service import AccountStore, AuthService
from src.pureflow.services.credential_store import SqlCredentialStore
from src.pureflow.services.token_service import (
    CredentialStore,
    IssuedTokens,
    StoredRefreshToken,
    TokenClaims,
    TokenConfig,
    TokenLifecycleManager,
    TokenLifetimes,
)

__all__ = [
    "AccountStore",
    "AuthService",
    "CredentialStore",
    "IssuedTokens",
    "SqlCredentialStore",
    "StoredRefreshToken",
    "TokenClaims",
    "TokenConfig",
    "TokenLifecycleManager",
    "TokenLifetimes",
]
