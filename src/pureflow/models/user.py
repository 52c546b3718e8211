"""User model - dashboard accounts."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint
from sqlmodel import Field, SQLModel

from src.pureflow.models.base import utc_now
from src.pureflow.models.enums import UserRole


class User(SQLModel, table=True):
    """Dashboard user. Emails are stored lower-cased."""

    __tablename__ = "users"
    __table_args__ = (CheckConstraint("role IN ('ADMIN', 'MARKETING')", name="ck_users_role"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    hashed_password: str = Field(max_length=255)
    name: str = Field(max_length=100)
    role: str = Field(default=UserRole.MARKETING.value, max_length=50)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
