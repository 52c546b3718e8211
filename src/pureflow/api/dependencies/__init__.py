"""FastAPI dependencies."""

from src.pureflow.api.dependencies.auth import AdminUser, CurrentUser
from src.pureflow.api.dependencies.db import DBSession
from src.pureflow.api.dependencies.repositories import TokenRepo, UserRepo
from src.pureflow.api.dependencies.services import (
    AuthServiceDep,
    CredentialStoreDep,
    TokenConfigDep,
    TokenManagerDep,
    get_credential_store,
)

__all__ = [
    "AdminUser",
    "AuthServiceDep",
    "CredentialStoreDep",
    "CurrentUser",
    "DBSession",
    "TokenConfigDep",
    "TokenManagerDep",
    "TokenRepo",
    "UserRepo",
    "get_credential_store",
]
