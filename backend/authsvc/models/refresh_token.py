"""Refresh-token issuance records."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column

from authsvc.core.extensions import db

from .base import OpaquePKMixin, ReprMixin, as_utc, utcnow


class RefreshTokenState(str, enum.Enum):
    """Observable lifecycle state of a stored refresh token."""

    ACTIVE = "active"
    REVOKED = "revoked"  # rotated, logged out, or revoked as a security reaction
    EXPIRED = "expired"


class RefreshToken(OpaquePKMixin, ReprMixin, db.Model):
    """
    One issued refresh credential.

    The external token string is ``"<id>.<secret>"``; only a one-way hash of
    the secret is stored, together with the client that obtained it. Rows are
    never updated except to set ``revoked_at``; rotation inserts a successor
    row instead.
    """

    __tablename__ = "refresh_tokens"

    user_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now(),
    )
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)

    __table_args__ = (CheckConstraint("expires_at > created_at", name="expiry_after_creation"),)

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        """``True`` once ``expires_at`` is at or before ``now``."""
        return as_utc(self.expires_at) <= as_utc(now)

    def is_active(self, now: datetime) -> bool:
        return not self.is_revoked and not self.is_expired(now)

    def state(self, now: datetime) -> RefreshTokenState:
        """Resolve the lifecycle state; revocation wins over expiry."""
        if self.is_revoked:
            return RefreshTokenState.REVOKED
        if self.is_expired(now):
            return RefreshTokenState.EXPIRED
        return RefreshTokenState.ACTIVE
