"""Factory Boy definition for :class:`authsvc.models.user.User`."""

from __future__ import annotations

import factory

from authsvc.models.user import AuthProvider, User, UserRole
from authsvc.security.hashing import password_hasher
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"


class UserFactory(BaseFactory):
    """
    Build persisted :class:`authsvc.models.user.User` instances.

    Notes
    -----
    - ``password_hash`` is computed at build time because the
      ``credential_present`` check rejects rows without any credential.
    - Pass ``raw_password="..."`` to pick the password, or use the
      ``google_only`` trait for accounts without one.
    """

    class Meta:
        model = User

    class Params:
        raw_password = DEFAULT_PASSWORD
        google_only = factory.Trait(
            password_hash=None,
            google_id=factory.Sequence(lambda n: f"google-sub-{n}"),
            provider=AuthProvider.GOOGLE,
        )
        admin = factory.Trait(role=UserRole.ADMIN)

    name = factory.Faker("name")
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    password_hash = factory.LazyAttribute(lambda o: password_hasher().hash(o.raw_password))
    google_id = None
    role = UserRole.CLIENT
    provider = AuthProvider.LOCAL
