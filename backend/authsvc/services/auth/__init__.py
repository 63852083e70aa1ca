from .dto import (
    AuthSessionOut,
    AuthTokenConfig,
    GoogleLoginIn,
    IntrospectIn,
    IntrospectionOut,
    LoginIn,
    LogoutIn,
    ProfileOut,
    RefreshIn,
    RegisterIn,
    UserPublicOut,
)
from .rotation import RefreshTokenRotator, RotationOutcome, RotationResult
from .service import AuthService
from .session import SessionBuilder

__all__ = [
    "AuthService",
    "AuthSessionOut",
    "AuthTokenConfig",
    "GoogleLoginIn",
    "IntrospectIn",
    "IntrospectionOut",
    "LoginIn",
    "LogoutIn",
    "ProfileOut",
    "RefreshIn",
    "RefreshTokenRotator",
    "RegisterIn",
    "RotationOutcome",
    "RotationResult",
    "SessionBuilder",
    "UserPublicOut",
]
