"""User repository for persistence and credential lookups."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from authsvc.models.user import AuthProvider, User
from authsvc.repositories.base import BaseRepository


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER handles JWT or refresh-token issuance, only DB-level user
    management.
    """

    model = User

    def _sortable_fields(self):
        return {
            "created_at": User.created_at,
            "email": User.email,
            "name": User.name,
        }

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str, *, for_update: bool = False) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :param for_update: Lock the row for the current transaction.
        :returns: User instance or ``None`` when not found.
        """
        stmt = select(User).where(User.email == _normalize_email(email))
        if for_update:
            stmt = stmt.with_for_update()
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def get_by_google_id(self, google_id: str, *, for_update: bool = False) -> User | None:
        """Fetch a user by Google subject identifier."""
        stmt = select(User).where(User.google_id == google_id)
        if for_update:
            stmt = stmt.with_for_update()
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a user with the provided email exists."""
        stmt = select(User.id).where(User.email == _normalize_email(email))
        return bool(self.session.execute(stmt).first())

    def list_newest_first(self) -> list[User]:
        return self.list(sort=["-created_at"])

    # ---------------------------- Writes ----------------------------

    def create(self, **fields) -> User:
        """Build, add and flush a user; the model validators normalize input.

        ``password`` is accepted and routed through the hashing setter.
        """
        password = fields.pop("password", None)
        user = User(**fields)
        if password is not None:
            user.password = password
        if not user.has_credentials:
            raise ValueError("User needs a password or a linked Google account.")
        return self.add(user)

    def link_google(self, user: User, google_id: str, *, picture_url: str | None = None) -> User:
        """Attach a Google subject to an existing account.

        The account switches to the ``google`` provider; an existing avatar is
        only replaced when Google supplies one.
        """
        user.google_id = google_id
        user.provider = AuthProvider.GOOGLE
        if picture_url:
            user.picture_url = picture_url
        self.flush()
        return user

    def authenticate(self, email: str, password: str) -> User | None:
        """Return the user when ``password`` matches, else ``None``.

        Google-only accounts (no password hash) never authenticate here.
        """
        user = self.get_by_email(email)
        if not user or not user.verify_password(password):
            return None
        return user
