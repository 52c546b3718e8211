from uuid import UUID

from pydantic import BaseModel, ConfigDict

from src.pureflow.models import UserRole


class UserRead(BaseModel):
    """Public view of a user. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str
    role: UserRole
