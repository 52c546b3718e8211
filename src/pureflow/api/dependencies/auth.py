"""Authentication and authorization dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from src.pureflow.api.dependencies.services import AuthServiceDep
from src.pureflow.core.config import get_settings
from src.pureflow.core.logging import bind_user_context
from src.pureflow.models import User, UserRole


async def get_current_user(request: Request, service: AuthServiceDep) -> User:
    """Resolve the user from the access token cookie.

    Invalid tokens raise InvalidTokenError, which the app maps to 401.
    """
    settings = get_settings()
    access_token = request.cookies.get(settings.access_cookie_name)
    if not access_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    user = await service.current_user(access_token)
    bind_user_context(user.id, user.role)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def require_admin(current_user: CurrentUser) -> User:
    """Require the current user to hold the ADMIN role."""
    if current_user.role != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


AdminUser = Annotated[User, Depends(require_admin)]
