# authsvc/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for account registration (already schema-validated).

    :param name: Display name.
    :param email: Email address.
    :param password: Raw password (hashed by the model setter).
    :param date_of_birth: Optional birth date.
    :param role: Role string; legacy aliases are accepted.
    """

    name: str
    email: str
    password: str
    date_of_birth: date | None = None
    role: str | None = None


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class GoogleLoginIn:
    id_token: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: External refresh token string ``"<id>.<secret>"``.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: External refresh token string.
    :type refresh_token: str
    :param all_sessions: If True, revoke every session of the owner.
    :type all_sessions: bool
    """

    refresh_token: str
    all_sessions: bool = False


@dataclass(frozen=True, slots=True)
class IntrospectIn:
    token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """
    Public user view returned by every auth endpoint.

    :param id: Opaque user id.
    :param name: Display name.
    :param email: Email address, when known.
    :param role: Role value (``client`` | ``admin``).
    :param date_of_birth: Optional birth date.
    :param has_password: Whether password login is possible.
    :param google_linked: Whether a Google account is linked.
    :param provider: ``local`` or ``google``.
    :param picture_url: Avatar URL, when known.
    :param created_at: Creation timestamp.
    """

    id: str
    name: str
    email: str | None
    role: str
    date_of_birth: date | None = None
    has_password: bool = False
    google_linked: bool = False
    provider: str = "local"
    picture_url: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class AuthSessionOut:
    """
    Output DTO for a freshly built session.

    :param access_token: Signed access JWT.
    :param token_type: Always ``"bearer"``.
    :param expires_in: Access token lifetime in seconds.
    :param refresh_token: External refresh token string.
    :param refresh_token_expires_at: Absolute refresh expiry (UTC).
    :param user: Public user view.
    :param permissions: Permission strings derived from the role.
    """

    access_token: str
    token_type: str
    expires_in: int
    refresh_token: str
    refresh_token_expires_at: datetime
    user: UserPublicOut
    permissions: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ProfileOut:
    user: UserPublicOut
    permissions: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class IntrospectionOut:
    """
    Result of validating an access token.

    :param valid: Always ``True`` (failures raise).
    :param user: Owner of the token.
    :param permissions: Owner permissions.
    :param claims: ``subject``, ``email`` and ``role`` as carried by the token.
    """

    valid: bool
    user: UserPublicOut
    permissions: list[str]
    claims: dict[str, Any]


# ------------------------ Config DTO --------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission and registration configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    :param reuse_policy: ``revoke_family`` or ``revoke_token``.
    :type reuse_policy: str
    :param revoke_on_login: Revoke prior refresh tokens on password login.
    :type revoke_on_login: bool
    :param allow_role_on_register: Let anonymous registrations pick a role
        other than ``client``.
    :type allow_role_on_register: bool
    """

    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=30)
    reuse_policy: str = "revoke_family"
    revoke_on_login: bool = True
    allow_role_on_register: bool = False

    @classmethod
    def from_mapping(cls, config: Any) -> AuthTokenConfig:
        """Build from a Flask config mapping (missing keys fall back to defaults)."""
        return cls(
            access_expires=timedelta(minutes=int(config.get("JWT_ACCESS_TOKEN_MINUTES", 15))),
            refresh_expires=timedelta(days=int(config.get("REFRESH_TOKEN_DAYS", 30))),
            reuse_policy=str(config.get("REFRESH_REUSE_POLICY", "revoke_family")),
            revoke_on_login=bool(config.get("AUTH_REVOKE_ON_LOGIN", True)),
            allow_role_on_register=bool(config.get("AUTH_ALLOW_REGISTER_ROLE", False)),
        )
