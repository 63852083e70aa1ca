from authsvc.models.refresh_token import RefreshToken, RefreshTokenState
from authsvc.models.user import AuthProvider, User, UserRole, coerce_role

__all__ = [
    "AuthProvider",
    "RefreshToken",
    "RefreshTokenState",
    "User",
    "UserRole",
    "coerce_role",
]
