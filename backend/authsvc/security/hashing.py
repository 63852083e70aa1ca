"""One-way hashing of user passwords and refresh-token secrets.

Both capabilities use :mod:`werkzeug.security` (salted, adaptive cost) but are
separate :class:`SecretHasher` instances so each carries its own cost
parameters: passwords are low-entropy and get the expensive default, refresh
secrets are 48 random bytes and only need a moderate work factor.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app, has_app_context
from werkzeug.security import check_password_hash, generate_password_hash

DEFAULT_PASSWORD_METHOD = "scrypt"
DEFAULT_REFRESH_SECRET_METHOD = "pbkdf2:sha256:100000"


@dataclass(frozen=True, slots=True)
class SecretHasher:
    """
    Salted one-way hasher.

    :param method: ``werkzeug.security`` method string, e.g. ``"scrypt"`` or
        ``"pbkdf2:sha256:600000"`` (the trailing number is the cost factor).
    :param salt_length: Random salt length in characters.
    """

    method: str
    salt_length: int = 16

    def hash(self, secret: str) -> str:
        """
        Hash ``secret`` into a self-describing digest (``method$salt$hash``).

        :raises ValueError: If ``secret`` is empty.
        """
        if not isinstance(secret, str) or not secret:
            raise ValueError("Secret must be a non-empty string.")
        return generate_password_hash(secret, method=self.method, salt_length=self.salt_length)

    def verify(self, secret: str, digest: str | None) -> bool:
        """
        Check ``secret`` against ``digest``.

        Never raises: a missing, malformed or unknown-method digest verifies as
        ``False``.
        """
        if not digest or not isinstance(digest, str) or not isinstance(secret, str):
            return False
        try:
            return bool(check_password_hash(digest, secret))
        except (ValueError, TypeError):
            return False


def _configured(key: str, default: str) -> str:
    if has_app_context():
        return str(current_app.config.get(key) or default)
    return default


def password_hasher() -> SecretHasher:
    """Hasher for user passwords (``PASSWORD_HASH_METHOD``)."""
    return SecretHasher(method=_configured("PASSWORD_HASH_METHOD", DEFAULT_PASSWORD_METHOD))


def refresh_secret_hasher() -> SecretHasher:
    """Hasher for refresh-token secrets (``REFRESH_TOKEN_HASH_METHOD``)."""
    return SecretHasher(
        method=_configured("REFRESH_TOKEN_HASH_METHOD", DEFAULT_REFRESH_SECRET_METHOD),
        salt_length=8,
    )


__all__ = ["SecretHasher", "password_hasher", "refresh_secret_hasher"]
