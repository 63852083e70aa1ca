# authsvc/services/auth/service.py
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import cast

from sqlalchemy.exc import IntegrityError

from authsvc.models.user import AuthProvider, UserRole, coerce_role
from authsvc.repositories.refresh_token import parse_refresh_token
from authsvc.services._shared.base import BaseService, ServiceContext
from authsvc.services._shared.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    ServiceError,
    violates,
)
from authsvc.services._shared.ports.identity_provider import IdentityProvider
from authsvc.services._shared.ports.token_provider import TokenProvider
from authsvc.services.auth.dto import (
    AuthSessionOut,
    AuthTokenConfig,
    GoogleLoginIn,
    IntrospectIn,
    IntrospectionOut,
    LoginIn,
    LogoutIn,
    ProfileOut,
    RefreshIn,
    RegisterIn,
)
from authsvc.services.auth.permissions import permissions_for
from authsvc.services.auth.rotation import RefreshTokenRotator
from authsvc.services.auth.session import SessionBuilder, resolve_token_config, user_public_out
from authsvc.uow.base import UnitOfWork

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"


class AuthService(BaseService):
    """
    Authentication lifecycle service.

    Registration, password and Google login, refresh-token rotation, logout,
    profile lookup and access-token introspection. Every use case runs inside
    a single unit of work.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        identity_provider: IdentityProvider | None = None,
        token_cfg: AuthTokenConfig | None = None,
        ctx: ServiceContext | None = None,
        uow_factory: Callable[[], UnitOfWork] | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param token_provider: Adapter for signing/decoding access JWTs.
        :param identity_provider: Adapter verifying Google ID tokens.
        :param token_cfg: Lifetimes and refresh policies.
        :param ctx: Request-scoped context.
        :param uow_factory: Optional read-write unit-of-work factory.
        """
        super().__init__(ctx=ctx, uow_factory=uow_factory)
        self.tokens = token_provider
        self.identity = identity_provider
        self.cfg = resolve_token_config(token_cfg)
        self.sessions = SessionBuilder(token_provider=token_provider, token_cfg=self.cfg, ctx=ctx)
        self.rotator = RefreshTokenRotator(token_cfg=self.cfg, ctx=ctx, uow_factory=uow_factory)

    # ------------------------------------------------------------------ #
    # Register / login
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> AuthSessionOut:
        """
        Create a password account and open its first session.

        Anonymous callers always get ``client`` unless
        ``allow_role_on_register`` is set; admins are promoted afterwards.

        :raises ConflictError: When the email is already registered.
        :raises ServiceError: When the role name is unknown.
        :raises AuthorizationError: When a role other than ``client`` is
            requested and self-assignment is disabled.
        """
        try:
            role = coerce_role(dto.role)
        except ValueError as exc:
            raise ServiceError(str(exc)) from exc
        if role is not UserRole.CLIENT and not self.cfg.allow_role_on_register:
            logger.info(
                "auth.register_rejected",
                extra={"reason": "role_not_allowed", "role": role.value},
            )
            raise AuthorizationError("Only client accounts can be self-registered")

        now = self.now_utc()
        with self.rw_uow() as uow:
            if uow.users.exists_by_email(dto.email):
                raise ConflictError("User", "Email already registered")
            try:
                user = uow.users.create(
                    name=dto.name,
                    email=dto.email,
                    password=dto.password,
                    date_of_birth=dto.date_of_birth,
                    role=role,
                    provider=AuthProvider.LOCAL,
                )
            except IntegrityError as exc:
                if violates(exc, "users.email") or violates(exc, "ix_users_email"):
                    raise ConflictError("User", "Email already registered") from exc
                raise
            uow.refresh_tokens.revoke_all_for_user(user.id, now=now)
            session = self.sessions.build(user, uow=uow, now=now)

        logger.info("auth.registered", extra={"user_id": session.user.id})
        return session

    def login(self, dto: LoginIn) -> AuthSessionOut:
        """
        Authenticate with email and password.

        :raises AuthenticationError: Unknown email, Google-only account, or
            wrong password.
        """
        now = self.now_utc()
        with self.rw_uow() as uow:
            user = uow.users.authenticate(dto.email, dto.password)
            if user is None:
                logger.info("auth.login_failed", extra={"reason": "invalid_credentials"})
                raise AuthenticationError("Invalid credentials")
            if self.cfg.revoke_on_login:
                uow.refresh_tokens.revoke_all_for_user(user.id, now=now)
            session = self.sessions.build(user, uow=uow, now=now)

        logger.info("auth.login", extra={"user_id": session.user.id})
        return session

    def login_with_google(self, dto: GoogleLoginIn) -> AuthSessionOut:
        """
        Sign in with a Google ID token, creating or linking the account.

        Lookup order is Google subject, then email (linking the subject to an
        existing password account), then a new account. All of it, plus the
        session, happens in one transaction. Only an email Google marks as
        verified is used for linking or stored on a new account.

        :raises ServiceError: Google login is not configured.
        :raises AuthenticationError: The ID token does not verify.
        :raises ConflictError: The email belongs to a different Google account,
            or to a local account while Google has not verified it.
        """
        if self.identity is None:
            raise ServiceError("Google login is not configured")
        identity = self.identity.verify(dto.id_token)
        if not identity.subject:
            raise AuthenticationError("Invalid Google token")

        now = self.now_utc()
        with self.rw_uow() as uow:
            user = uow.users.get_by_google_id(identity.subject, for_update=True)
            if user is None and identity.email and not identity.email_verified:
                if uow.users.exists_by_email(identity.email):
                    logger.info("auth.google_link_refused", extra={"reason": "email_unverified"})
                    raise ConflictError("User", "Google has not verified this email")
            elif user is None and identity.email:
                user = uow.users.get_by_email(identity.email, for_update=True)
                if user is not None:
                    if user.google_id and user.google_id != identity.subject:
                        raise ConflictError("User", "Email is linked to another Google account")
                    uow.users.link_google(user, identity.subject, picture_url=identity.picture)
                    if not (user.name or "").strip():
                        user.name = identity.display_name()
            if user is None:
                user = uow.users.create(
                    name=identity.display_name(),
                    email=identity.verified_email,
                    google_id=identity.subject,
                    role=UserRole.CLIENT,
                    provider=AuthProvider.GOOGLE,
                    picture_url=identity.picture,
                )
            session = self.sessions.build(user, uow=uow, now=now)

        logger.info("auth.google_login", extra={"user_id": session.user.id})
        return session

    # ------------------------------------------------------------------ #
    # Refresh / logout
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> AuthSessionOut:
        """
        Rotate a refresh token and emit a new session.

        :raises InvalidTokenError: Malformed, unknown or mismatched token.
        :raises TokenExpiredError: Token past its expiry.
        :raises TokenReusedError: Token already rotated or revoked.
        """
        outcome = self.rotator.rotate(
            dto.refresh_token,
            build=lambda rotated: self.sessions.build(rotated.user, refresh=rotated.issued),
        )
        return cast(AuthSessionOut, outcome.session)

    def logout(self, dto: LogoutIn) -> None:
        """
        Revoke the presented refresh token (and optionally every session).

        Revoking an already revoked token is a no-op.

        :raises InvalidTokenError: Malformed or unknown token, or wrong secret.
        """
        token_id, secret = parse_refresh_token(dto.refresh_token)
        now = self.now_utc()
        with self.rw_uow() as uow:
            row = uow.refresh_tokens.find_by_id(token_id, for_update=True)
            if row is None:
                raise InvalidTokenError()
            if row.is_revoked:
                return
            if not uow.refresh_tokens.verify_secret(row, secret):
                raise InvalidTokenError()
            uow.refresh_tokens.revoke(row.id, now=now)
            revoked = 1
            if dto.all_sessions:
                revoked += uow.refresh_tokens.revoke_all_for_user(row.user_id, now=now)
            user_id = row.user_id

        logger.info("auth.logout", extra={"user_id": user_id, "revoked": revoked})

    # ------------------------------------------------------------------ #
    # Read-only
    # ------------------------------------------------------------------ #

    def profile(self, user_id: str) -> ProfileOut:
        """
        Return the user view and permissions for ``user_id``.

        :raises NotFoundError: When the user does not exist.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return ProfileOut(user=user_public_out(user), permissions=permissions_for(user.role))

    def introspect(self, dto: IntrospectIn) -> IntrospectionOut:
        """
        Validate an access token and describe its owner.

        :raises InvalidTokenError: Bad signature, expired, or not an access token.
        :raises NotFoundError: The token's subject no longer exists.
        """
        claims = self.tokens.decode(dto.token)
        if claims.get("type") != ACCESS_TOKEN_TYPE:
            raise InvalidTokenError("Access token required.")
        subject = str(claims.get("sub"))

        with self.ro_uow() as uow:
            user = uow.users.get(subject)
            if user is None:
                raise NotFoundError("User", subject)
            return IntrospectionOut(
                valid=True,
                user=user_public_out(user),
                permissions=permissions_for(user.role),
                claims={
                    "subject": subject,
                    "email": claims.get("email"),
                    "role": claims.get("role"),
                },
            )
