from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from authsvc.services._shared.errors import AuthenticationError


@dataclass(frozen=True, slots=True)
class ExternalIdentity:
    """
    Verified claims of a third-party ID token.

    :param subject: Stable provider user id (``sub``).
    :param email: Email claim, when present.
    :param email_verified: Whether the provider verified ``email``; an
        unverified address is never used to match or store an account.
    :param name: Full name claim.
    :param given_name: Given name claim.
    :param picture: Avatar URL claim.
    """

    subject: str
    email: str | None = None
    email_verified: bool = False
    name: str | None = None
    given_name: str | None = None
    picture: str | None = None

    @property
    def verified_email(self) -> str | None:
        return self.email if self.email_verified else None

    def display_name(self) -> str:
        """Best-effort display name: name, given name, email local part, fallback."""
        for candidate in (self.name, self.given_name):
            if candidate and candidate.strip():
                return candidate.strip()
        if self.email and "@" in self.email:
            local = self.email.split("@", 1)[0].strip()
            if local:
                return local
        return "Google user"


class IdentityProvider(Protocol):
    """Port for verifying third-party ID tokens.

    Implementations raise :class:`AuthenticationError` for invalid tokens and
    :class:`~authsvc.services._shared.errors.ServiceError` when the provider is
    not configured.
    """

    def verify(self, id_token: str) -> ExternalIdentity: ...


class StubIdentityProvider(IdentityProvider):
    """In-memory provider used in tests: only registered tokens verify."""

    def __init__(self, identities: dict[str, ExternalIdentity] | None = None) -> None:
        self._identities: dict[str, ExternalIdentity] = dict(identities or {})

    def register(self, id_token: str, identity: ExternalIdentity) -> None:
        self._identities[id_token] = identity

    def verify(self, id_token: str) -> ExternalIdentity:
        identity = self._identities.get(id_token)
        if identity is None:
            raise AuthenticationError("Invalid Google token")
        return identity
