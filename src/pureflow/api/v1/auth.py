"""Authentication endpoints - session cookies."""

from fastapi import APIRouter, HTTPException, Request, Response, status

from src.pureflow.api.dependencies import AuthServiceDep, CurrentUser
from src.pureflow.core.config import get_settings
from src.pureflow.core.exceptions import InvalidTokenError
from src.pureflow.core.rate_limit import limiter
from src.pureflow.schemas import (
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UserRead,
)
from src.pureflow.services import IssuedTokens

router = APIRouter(prefix="/auth", tags=["auth"])


def set_session_cookies(response: Response, issued: IssuedTokens) -> None:
    """Attach both tokens as HttpOnly cookies living as long as the tokens."""
    settings = get_settings()
    response.set_cookie(
        key=settings.access_cookie_name,
        value=issued.access_token,
        max_age=issued.access_max_age,
        path="/",
        secure=bool(settings.cookie_secure),
        httponly=True,
        samesite="lax",
    )
    response.set_cookie(
        key=settings.refresh_cookie_name,
        value=issued.refresh_token,
        max_age=issued.refresh_max_age,
        path="/",
        secure=bool(settings.cookie_secure),
        httponly=True,
        samesite="lax",
    )


def clear_session_cookies(response: Response) -> None:
    settings = get_settings()
    for name in (settings.access_cookie_name, settings.refresh_cookie_name):
        response.delete_cookie(
            key=name,
            path="/",
            secure=bool(settings.cookie_secure),
            httponly=True,
            samesite="lax",
        )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        409: {"description": "User already exists"},
        422: {"description": "Validation error or weak password"},
    },
)
@limiter.limit("3/hour")
async def register(
    request: Request,
    response: Response,
    register_data: RegisterRequest,
    service: AuthServiceDep,
) -> AuthResponse:
    """Create an account and sign it in."""
    try:
        user, issued = await service.register(
            email=register_data.email,
            password=register_data.password,
            name=register_data.name,
            role=register_data.role,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e

    set_session_cookies(response, issued)
    return AuthResponse(
        message="User registered successfully",
        user=UserRead.model_validate(user),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={401: {"description": "Invalid credentials"}},
)
@limiter.limit("5/minute")
async def login(
    request: Request,
    response: Response,
    login_data: LoginRequest,
    service: AuthServiceDep,
) -> AuthResponse:
    """Authenticate and set session cookies.

    ``remember_me`` extends the access token to 7 days and the refresh token
    to 30 days.
    """
    result = await service.authenticate(
        login_data.email, login_data.password, remember_me=login_data.remember_me
    )
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    user, issued = result
    set_session_cookies(response, issued)
    return AuthResponse(
        message="Authentication successful",
        user=UserRead.model_validate(user),
    )


@router.post(
    "/refresh",
    response_model=AuthResponse,
    responses={401: {"description": "Missing, invalid or expired refresh token"}},
)
@limiter.limit("10/minute")
async def refresh(request: Request, response: Response, service: AuthServiceDep) -> AuthResponse:
    """Rotate the refresh token cookie and issue a new access token.

    The presented refresh token is revoked; replaying it fails.
    """
    settings = get_settings()
    refresh_token = request.cookies.get(settings.refresh_cookie_name)
    if not refresh_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token required",
        )

    try:
        user, issued = await service.refresh(refresh_token)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token",
        ) from None

    set_session_cookies(response, issued)
    return AuthResponse(
        message="Tokens refreshed successfully",
        user=UserRead.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request, response: Response, service: AuthServiceDep) -> MessageResponse:
    """Revoke the refresh token (if any) and clear both cookies."""
    settings = get_settings()
    await service.logout(request.cookies.get(settings.refresh_cookie_name))
    clear_session_cookies(response)
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/me",
    response_model=AuthResponse,
    responses={401: {"description": "Missing, invalid or expired access token"}},
)
async def me(current_user: CurrentUser) -> AuthResponse:
    """Return the signed-in user."""
    return AuthResponse(message="Authenticated", user=UserRead.model_validate(current_user))


@router.post(
    "/change-password",
    response_model=MessageResponse,
    responses={400: {"description": "Current password is incorrect"}},
)
async def change_password(
    response: Response,
    password_data: ChangePasswordRequest,
    current_user: CurrentUser,
    service: AuthServiceDep,
) -> MessageResponse:
    """Change the password, sign out every other session and renew this one."""
    try:
        issued = await service.change_password(
            current_user,
            password_data.current_password,
            password_data.new_password,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    set_session_cookies(response, issued)
    return MessageResponse(message="Password changed successfully")
