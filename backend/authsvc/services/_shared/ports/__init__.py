"""
authsvc.services._shared.ports
==============================

Collection of *ports* (hexagonal interfaces) that define the contracts
for authentication infrastructure.

Modules
-------
- :mod:`token_provider`:
    Defines :class:`~.TokenProvider`: abstraction for access-token signing and decoding.

- :mod:`identity_provider`:
    Defines :class:`~.IdentityProvider` and :class:`~.ExternalIdentity`:
    abstraction for verifying third-party (Google) ID tokens.

Design Notes
------------
Concrete adapters (flask-jwt-extended, google-auth) live under
``authsvc.infra``; in-memory doubles live beside the ports for tests.
"""

from __future__ import annotations

from .identity_provider import ExternalIdentity, IdentityProvider, StubIdentityProvider
from .token_provider import StubTokenProvider, TokenProvider

__all__ = [
    "ExternalIdentity",
    "IdentityProvider",
    "StubIdentityProvider",
    "StubTokenProvider",
    "TokenProvider",
]
