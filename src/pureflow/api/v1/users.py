"""User administration endpoints."""

from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from src.pureflow.api.dependencies import AdminUser, AuthServiceDep
from src.pureflow.schemas import RevokeSessionsResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.delete(
    "/{user_id}/sessions",
    response_model=RevokeSessionsResponse,
    responses={
        403: {"description": "Admin access required"},
        404: {"description": "User not found"},
    },
)
async def revoke_user_sessions(
    user_id: UUID, admin: AdminUser, service: AuthServiceDep
) -> RevokeSessionsResponse:
    """Sign a user out everywhere by revoking all of their refresh tokens.

    Access tokens already issued stay valid until they expire.
    """
    count = await service.revoke_all_sessions(user_id)
    if count is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return RevokeSessionsResponse(revoked=count)
