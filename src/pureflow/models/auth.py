"""Authentication models - refresh token storage."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.pureflow.models.base import utc_now


class RefreshToken(SQLModel, table=True):
    """Refresh token row. Only the SHA256 hash of the opaque value is kept."""

    __tablename__ = "refresh_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    token_hash: str = Field(max_length=255, unique=True, index=True)
    expires_at: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now)
    revoked: bool = Field(default=False)
    revoked_at: datetime | None = Field(default=None)
