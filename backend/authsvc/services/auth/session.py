# authsvc/services/auth/session.py
from __future__ import annotations

from datetime import UTC, datetime

from flask import current_app, has_app_context

from authsvc.models.user import AuthProvider, User, coerce_role
from authsvc.repositories.refresh_token import IssuedRefreshToken
from authsvc.services._shared.base import ServiceContext
from authsvc.services._shared.ports.token_provider import TokenProvider
from authsvc.services.auth.dto import AuthSessionOut, AuthTokenConfig, UserPublicOut
from authsvc.services.auth.permissions import permissions_for
from authsvc.uow.base import UnitOfWork

TOKEN_TYPE = "bearer"


def resolve_token_config(cfg: AuthTokenConfig | None) -> AuthTokenConfig:
    """Return ``cfg`` or build one from the active app config (defaults otherwise)."""
    if cfg is not None:
        return cfg
    if has_app_context():
        return AuthTokenConfig.from_mapping(current_app.config)
    return AuthTokenConfig()


def user_public_out(user: User) -> UserPublicOut:
    """Project a :class:`User` row onto its public view."""
    return UserPublicOut(
        id=str(user.id),
        name=user.name,
        email=user.email,
        role=coerce_role(user.role, strict=False).value,
        date_of_birth=user.date_of_birth,
        has_password=user.password_hash is not None,
        google_linked=user.google_id is not None,
        provider=AuthProvider(user.provider or AuthProvider.LOCAL).value,
        picture_url=user.picture_url,
        created_at=user.created_at,
    )


class SessionBuilder:
    """
    Assemble the client-facing session: access JWT, refresh credential, user
    view and permissions.

    :param token_provider: Signs access tokens.
    :param token_cfg: Lifetimes; resolved from app config when omitted.
    :param ctx: Request context; its client user agent and address are stored
        on the refresh tokens this builder creates.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        token_cfg: AuthTokenConfig | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        self.tokens = token_provider
        self.cfg = resolve_token_config(token_cfg)
        self.ctx = ctx or ServiceContext()

    def build(
        self,
        user: User,
        *,
        uow: UnitOfWork | None = None,
        refresh: IssuedRefreshToken | None = None,
        now: datetime | None = None,
    ) -> AuthSessionOut:
        """
        Build a session for ``user``.

        :param user: Authenticated user.
        :param uow: Open unit of work; required when ``refresh`` is not given,
            because a new refresh row is created in it.
        :param refresh: Already issued refresh credential (rotation path).
        :param now: Issue time; defaults to the current UTC time.
        :raises ValueError: When neither ``uow`` nor ``refresh`` is provided.
        """
        if refresh is None:
            if uow is None:
                raise ValueError("SessionBuilder.build needs a unit of work to issue a refresh token.")
            issued_at = now or datetime.now(UTC)
            refresh = uow.refresh_tokens.create(
                str(user.id),
                issued_at + self.cfg.refresh_expires,
                now=issued_at,
                user_agent=self.ctx.user_agent,
                ip_address=self.ctx.ip_address,
            )

        role = coerce_role(user.role, strict=False)
        access = self.tokens.create_access_token(
            identity=str(user.id),
            additional_claims={"email": user.email, "role": role.value},
            expires_delta=self.cfg.access_expires,
        )
        return AuthSessionOut(
            access_token=access,
            token_type=TOKEN_TYPE,
            expires_in=int(self.cfg.access_expires.total_seconds()),
            refresh_token=refresh.token,
            refresh_token_expires_at=refresh.expires_at,
            user=user_public_out(user),
            permissions=permissions_for(role),
        )
