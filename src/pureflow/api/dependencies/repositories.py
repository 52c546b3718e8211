"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.pureflow.api.dependencies.db import DBSession
from src.pureflow.repositories import RefreshTokenRepository, UserRepository


def get_user_repository(session: DBSession) -> UserRepository:
    return UserRepository(session)


def get_token_repository(session: DBSession) -> RefreshTokenRepository:
    return RefreshTokenRepository(session)


UserRepo = Annotated[UserRepository, Depends(get_user_repository)]
TokenRepo = Annotated[RefreshTokenRepository, Depends(get_token_repository)]
