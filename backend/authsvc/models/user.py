"""User identity model and the closed role enumeration."""

from __future__ import annotations

import enum
from datetime import date
from typing import Any

from sqlalchemy import CheckConstraint, Date, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import Mapped, mapped_column, validates
from sqlalchemy.types import TypeDecorator

from authsvc.core.extensions import db
from authsvc.security.hashing import password_hasher

from .base import OpaquePKMixin, ReprMixin, TimestampMixin


class UserRole(str, enum.Enum):
    """Roles a user can hold."""

    CLIENT = "client"
    ADMIN = "admin"


class AuthProvider(str, enum.Enum):
    """How the account was last signed into: own password or Google."""

    LOCAL = "local"
    GOOGLE = "google"


# Role names written by earlier releases of the service.
LEGACY_ROLE_ALIASES: dict[str, UserRole] = {
    "user": UserRole.CLIENT,
    "backlog": UserRole.ADMIN,
}


def coerce_role(value: UserRole | str | None, *, strict: bool = True) -> UserRole:
    """
    Map a role name (current or legacy) onto :class:`UserRole`.

    This is the single place where role strings are normalized: the ``role``
    column type and the registration schema both delegate here.

    :param value: Role enum, role name, legacy alias, or ``None`` (→ client).
    :param strict: When ``True`` unknown names raise; when ``False`` they fall
        back to :attr:`UserRole.CLIENT` (used when reading stored rows).
    :raises ValueError: For unknown names in strict mode.
    """
    if value is None:
        return UserRole.CLIENT
    if isinstance(value, UserRole):
        return value
    key = str(value).strip().lower()
    if key in LEGACY_ROLE_ALIASES:
        return LEGACY_ROLE_ALIASES[key]
    try:
        return UserRole(key)
    except ValueError:
        if strict:
            raise ValueError(f"Unknown role: {value!r}") from None
        return UserRole.CLIENT


class RoleType(TypeDecorator[UserRole]):
    """Store :class:`UserRole` as its string value, migrating legacy names on read."""

    impl = String(20)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return None
        return coerce_role(value).value

    def process_result_value(self, value: Any, dialect: Dialect) -> UserRole | None:
        if value is None:
            return None
        return coerce_role(value, strict=False)


class User(OpaquePKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Authentication identity.

    Fields
    ------
    name : str
        Display name.
    email : str | None
        Login email, stored normalized (lowercase, trimmed). ``None`` only for
        Google accounts whose token carried no email claim.
    password_hash : str | None
        Hashed password (write-only setter via ``password``).
    google_id : str | None
        Google subject identifier once the account is linked.
    date_of_birth : date | None
        Optional profile field.
    role : UserRole
        Authorization role, ``client`` by default.
    provider : AuthProvider
        ``local`` for registered accounts, ``google`` once created or linked
        through Google.
    picture_url : str | None
        Avatar URL taken from the Google profile.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str | None] = mapped_column(String(254), nullable=True, unique=True, index=True)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    google_id: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    role: Mapped[UserRole] = mapped_column(
        RoleType(), nullable=False, default=UserRole.CLIENT, server_default=UserRole.CLIENT.value
    )
    provider: Mapped[AuthProvider] = mapped_column(
        SAEnum(
            AuthProvider,
            name="auth_provider",
            native_enum=False,
            create_constraint=True,
            length=20,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=AuthProvider.LOCAL,
        server_default=AuthProvider.LOCAL.value,
    )
    picture_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "password_hash IS NOT NULL OR google_id IS NOT NULL",
            name="credential_present",
        ),
    )

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """Hash and set the password."""
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = password_hasher().hash(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash.

        :returns: ``False`` for Google-only accounts (no hash) and mismatches.
        """
        return password_hasher().verify(raw, self.password_hash)

    @property
    def has_credentials(self) -> bool:
        """At least one way to authenticate is configured."""
        return bool(self.password_hash or self.google_id)

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str | None) -> str | None:
        """
        Normalize and validate email.

        :raises ValueError: If the email is malformed.
        """
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("Email must be a string.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("name")
    def _normalize_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Name is required.")
        return value.strip()

    @validates("role")
    def _normalize_role(self, key: str, value: UserRole | str) -> UserRole:
        return coerce_role(value)
