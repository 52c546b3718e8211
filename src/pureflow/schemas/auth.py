from pydantic import BaseModel, EmailStr, Field, field_validator
from zxcvbn import zxcvbn

from src.pureflow.models import UserRole
from src.pureflow.schemas.user import UserRead

# Minimum zxcvbn score (0-4 scale): 3 = "safely unguessable"
MIN_PASSWORD_SCORE = 3


def check_password_strength(password: str) -> str:
    """Reject passwords that zxcvbn scores below MIN_PASSWORD_SCORE."""
    result = zxcvbn(password)
    if result["score"] >= MIN_PASSWORD_SCORE:
        return password

    feedback = result.get("feedback", {})
    warning = feedback.get("warning", "")
    suggestions = feedback.get("suggestions", [])
    if warning:
        raise ValueError(f"Weak password: {warning}")
    if suggestions:
        raise ValueError(f"Weak password: {suggestions[0]}")
    raise ValueError("Password is too weak. Use a longer password with a mix of characters.")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=100)
    remember_me: bool = False


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=100)
    name: str = Field(min_length=1, max_length=100)
    role: UserRole = UserRole.MARKETING

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return check_password_strength(v)

    @field_validator("role")
    @classmethod
    def forbid_admin_self_registration(cls, v: UserRole) -> UserRole:
        if v == UserRole.ADMIN:
            raise ValueError("ADMIN accounts cannot be created via registration")
        return v


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(min_length=1, max_length=100)
    new_password: str = Field(min_length=8, max_length=100)

    @field_validator("new_password")
    @classmethod
    def validate_password_strength(cls, v: str) -> str:
        return check_password_strength(v)


class AuthResponse(BaseModel):
    """Envelope returned by session endpoints. Tokens travel in cookies only."""

    success: bool = True
    message: str
    user: UserRead | None = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class RevokeSessionsResponse(BaseModel):
    success: bool = True
    revoked: int
