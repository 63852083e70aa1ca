"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Flask, Response, current_app, g, jsonify, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request

from authsvc.core.errors import Forbidden
from authsvc.infra import GoogleIdTokenVerifier, JWTTokenProvider
from authsvc.models.user import UserRole, coerce_role
from authsvc.services._shared.base import ServiceContext
from authsvc.services._shared.ports import IdentityProvider, TokenProvider
from authsvc.services.auth import AuthService
from authsvc.services.users import UserAdminService

F = TypeVar("F", bound=Callable[..., Any])

TOKEN_PROVIDER_KEY = "authsvc.token_provider"
IDENTITY_PROVIDER_KEY = "authsvc.identity_provider"
USER_AGENT_MAX = 512


# ----------------------------- Adapters -----------------------------------


def init_providers(app: Flask) -> None:
    """Install default port adapters; tests may replace them in ``app.extensions``."""
    app.extensions.setdefault(TOKEN_PROVIDER_KEY, JWTTokenProvider())
    app.extensions.setdefault(
        IDENTITY_PROVIDER_KEY,
        GoogleIdTokenVerifier(client_id=app.config.get("GOOGLE_CLIENT_ID")),
    )


def token_provider() -> TokenProvider:
    return cast(TokenProvider, current_app.extensions[TOKEN_PROVIDER_KEY])


def identity_provider() -> IdentityProvider:
    return cast(IdentityProvider, current_app.extensions[IDENTITY_PROVIDER_KEY])


# ----------------------------- Auth ---------------------------------------


def client_context() -> ServiceContext:
    """Build an anonymous :class:`ServiceContext` describing the calling client.

    ``remote_addr`` is already the forwarded client address when ProxyFix is on.
    """
    user_agent = request.headers.get("User-Agent") or None
    return ServiceContext(
        request_id=getattr(g, "request_id", None),
        user_agent=user_agent[:USER_AGENT_MAX] if user_agent else None,
        ip_address=request.remote_addr or None,
    )


def current_context() -> ServiceContext:
    """Build a :class:`ServiceContext` from the verified JWT, when present."""
    actor_id = get_jwt_identity()
    claims = get_jwt() or {}
    ctx = client_context()
    ctx.actor_id = str(actor_id) if actor_id is not None else None
    ctx.actor_role = claims.get("role")
    return ctx


def require_auth(func: F) -> F:
    """Ensure the request carries a valid JWT access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_role(required: UserRole) -> Callable[[F], F]:
    """Ensure the verified JWT carries the requested role claim."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            verify_jwt_in_request(optional=False)
            claims = get_jwt() or {}
            if coerce_role(claims.get("role"), strict=False) is not required:
                raise Forbidden("Insufficient role")
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


# ----------------------------- Services -----------------------------------


def auth_service() -> AuthService:
    return AuthService(
        token_provider=token_provider(),
        identity_provider=identity_provider(),
        ctx=client_context(),
    )


def user_admin_service() -> UserAdminService:
    return UserAdminService(ctx=current_context())


# ----------------------------- Responses ----------------------------------


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
