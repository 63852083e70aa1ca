"""Credential hashing primitives shared by models and services."""

from .hashing import SecretHasher, password_hasher, refresh_secret_hasher

__all__ = ["SecretHasher", "password_hasher", "refresh_secret_hasher"]
