"""Concrete adapters for the service-layer ports."""

from __future__ import annotations

from .google.google_id_token_verifier import GoogleIdTokenVerifier
from .jwt.flask_jwt_token_provider import JWTTokenProvider

__all__ = ["GoogleIdTokenVerifier", "JWTTokenProvider"]
