"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from src.pureflow.api.dependencies.db import DBSession
from src.pureflow.api.dependencies.repositories import TokenRepo, UserRepo
from src.pureflow.services import (
    AccountStore,
    AuthService,
    SqlCredentialStore,
    TokenConfig,
    TokenLifecycleManager,
)


def get_token_config(request: Request) -> TokenConfig:
    """Token configuration installed on the app by ``create_app``."""
    config: TokenConfig | None = getattr(request.app.state, "token_config", None)
    if config is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is shutting down",
        )
    return config


TokenConfigDep = Annotated[TokenConfig, Depends(get_token_config)]


def get_credential_store(
    session: DBSession,
    user_repo: UserRepo,
    token_repo: TokenRepo,
    config: TokenConfigDep,
) -> AccountStore:
    """Get the SQL credential store bound to the request session."""
    return SqlCredentialStore(
        session,
        user_repo,
        token_repo,
        blacklist_ttl=config.lifetimes.longest_refresh_ttl,
    )


CredentialStoreDep = Annotated[AccountStore, Depends(get_credential_store)]


def get_token_manager(config: TokenConfigDep, store: CredentialStoreDep) -> TokenLifecycleManager:
    return TokenLifecycleManager(config, store)


TokenManagerDep = Annotated[TokenLifecycleManager, Depends(get_token_manager)]


def get_auth_service(tokens: TokenManagerDep, store: CredentialStoreDep) -> AuthService:
    return AuthService(tokens, store)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
