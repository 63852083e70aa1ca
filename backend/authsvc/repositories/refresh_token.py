"""SQL-backed refresh-token store.

Rows are keyed by an opaque id that travels inside the external token string
``"<id>.<secret>"``. Only a one-way hash of the secret is persisted, and rows
are only ever mutated by setting ``revoked_at`` through a guarded
``UPDATE ... WHERE revoked_at IS NULL``.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import cast

from sqlalchemy import select, update

from authsvc.models.base import new_opaque_id
from authsvc.models.refresh_token import RefreshToken
from authsvc.repositories.base import BaseRepository
from authsvc.security.hashing import SecretHasher, refresh_secret_hasher
from authsvc.services._shared.errors import InvalidTokenError

TOKEN_SEPARATOR = "."
SECRET_BYTES = 48


@dataclass(frozen=True, slots=True)
class IssuedRefreshToken:
    """
    A freshly created refresh credential.

    :ivar id: Opaque row id (not secret).
    :ivar secret: Raw secret; only returned to the client, never stored.
    :ivar expires_at: Absolute expiry (UTC).
    """

    id: str
    secret: str
    expires_at: datetime

    @property
    def token(self) -> str:
        """External token string handed to clients."""
        return f"{self.id}{TOKEN_SEPARATOR}{self.secret}"


def parse_refresh_token(raw: str | None) -> tuple[str, str]:
    """
    Split an external token string into ``(id, secret)``.

    :raises InvalidTokenError: When the separator is missing or either part
        is empty.
    """
    if not raw or not isinstance(raw, str):
        raise InvalidTokenError("Malformed refresh token.")
    token_id, sep, secret = raw.strip().partition(TOKEN_SEPARATOR)
    if not sep or not token_id or not secret:
        raise InvalidTokenError("Malformed refresh token.")
    return token_id, secret


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Create, look up and revoke refresh-token rows inside the caller's transaction."""

    model = RefreshToken

    def __init__(self, session=None, *, hasher: SecretHasher | None = None) -> None:
        super().__init__(session=session)
        self._hasher = hasher

    @property
    def hasher(self) -> SecretHasher:
        return self._hasher or refresh_secret_hasher()

    # ---------------------------- Issue ----------------------------

    def create(
        self,
        user_id: str,
        expires_at: datetime,
        *,
        now: datetime,
        user_agent: str | None = None,
        ip_address: str | None = None,
    ) -> IssuedRefreshToken:
        """
        Insert a new active row for ``user_id``.

        :param user_id: Owner id.
        :param expires_at: Absolute expiry; must be later than ``now``.
        :param now: Creation timestamp.
        :param user_agent: Client user agent, when known.
        :param ip_address: Client address, when known.
        :returns: The issued credential including the raw secret.
        """
        token_id = new_opaque_id()
        secret = secrets.token_hex(SECRET_BYTES)
        self.add(
            RefreshToken(
                id=token_id,
                user_id=user_id,
                token_hash=self.hasher.hash(secret),
                expires_at=expires_at,
                created_at=now,
                revoked_at=None,
                user_agent=user_agent,
                ip_address=ip_address,
            )
        )
        return IssuedRefreshToken(id=token_id, secret=secret, expires_at=expires_at)

    def verify_secret(self, row: RefreshToken, secret: str) -> bool:
        return self.hasher.verify(secret, row.token_hash)

    # ---------------------------- Lookup ----------------------------

    def find_by_id(self, token_id: str, *, for_update: bool = False) -> RefreshToken | None:
        """Point lookup, optionally taking a row lock for the caller's transaction."""
        if for_update:
            return self.get_for_update(token_id)
        return self.get(token_id)

    def list_active_for_user(self, user_id: str, *, now: datetime) -> list[RefreshToken]:
        """Unrevoked, unexpired rows of ``user_id``, newest first."""
        stmt = (
            select(RefreshToken)
            .where(
                RefreshToken.user_id == user_id,
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > now,
            )
            .order_by(RefreshToken.created_at.desc(), RefreshToken.id.asc())
        )
        return cast(list[RefreshToken], list(self.session.execute(stmt).scalars().all()))

    # ---------------------------- Revoke ----------------------------

    def revoke(self, token_id: str, *, now: datetime) -> bool:
        """
        Set ``revoked_at`` if it is still NULL.

        :returns: ``True`` when this call revoked the row; ``False`` when it was
            already revoked (no-op) or does not exist.
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == token_id, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=now)
            .execution_options(synchronize_session="evaluate")
        )
        result = self.session.execute(stmt)
        return bool(result.rowcount)

    def revoke_all_for_user(self, user_id: str, *, now: datetime) -> int:
        """Revoke every unrevoked row of ``user_id``; returns the number affected."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=now)
            .execution_options(synchronize_session="evaluate")
        )
        result = self.session.execute(stmt)
        return int(result.rowcount or 0)
