"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from authsvc.repositories.base import BaseRepository, parse_sort_tokens
from authsvc.repositories.refresh_token import (
    IssuedRefreshToken,
    RefreshTokenRepository,
    parse_refresh_token,
)
from authsvc.repositories.user import UserRepository

__all__ = [
    # Base
    "BaseRepository",
    "parse_sort_tokens",
    # Domain
    "IssuedRefreshToken",
    "RefreshTokenRepository",
    "UserRepository",
    "parse_refresh_token",
]
