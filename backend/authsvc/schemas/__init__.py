"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    GoogleLoginSchema,
    IntrospectionSchema,
    LoginSchema,
    LogoutSchema,
    ProfileSchema,
    RefreshSchema,
    RegisterSchema,
    SessionSchema,
    TokenClaimsSchema,
    ValidateTokenSchema,
)
from .user import RoleChangeSchema, UserSchema

__all__ = [
    "GoogleLoginSchema",
    "IntrospectionSchema",
    "LoginSchema",
    "LogoutSchema",
    "ProfileSchema",
    "RefreshSchema",
    "RegisterSchema",
    "RoleChangeSchema",
    "SessionSchema",
    "TokenClaimsSchema",
    "UserSchema",
    "ValidateTokenSchema",
]
