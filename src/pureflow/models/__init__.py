"""Model exports.

Import from here: `from src.pureflow.models import User, RefreshToken`
"""

from src.pureflow.models.auth import RefreshToken
from src.pureflow.models.enums import UserRole
from src.pureflow.models.user import User

__all__ = [
    # Enums
    "UserRole",
    # Models
    "RefreshToken",
    "User",
]
