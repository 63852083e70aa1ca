# authsvc/services/auth/rotation.py
"""Single-use refresh-token rotation.

A presented token is parsed, its row locked, its state checked, and on
success the row is revoked and a successor issued in the same transaction.
Rejections that revoke something (expiry, wrong secret, reuse policy) are
committed before the typed error is raised; a successor row is only ever
written on the success path.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime

from authsvc.models.user import User
from authsvc.repositories.refresh_token import IssuedRefreshToken, parse_refresh_token
from authsvc.services._shared.base import BaseService, ServiceContext
from authsvc.services._shared.errors import (
    InvalidTokenError,
    TokenError,
    TokenExpiredError,
    TokenReusedError,
)
from authsvc.services.auth.dto import AuthSessionOut, AuthTokenConfig
from authsvc.services.auth.session import resolve_token_config
from authsvc.uow.base import UnitOfWork

logger = logging.getLogger(__name__)

REVOKE_FAMILY = "revoke_family"
REVOKE_TOKEN = "revoke_token"


class RotationResult(str, enum.Enum):
    """Decided outcome of one rotation attempt."""

    OK = "ok"
    NOT_FOUND = "not_found"
    REUSED = "reused"
    EXPIRED = "expired"
    SECRET_MISMATCH = "secret_mismatch"
    USER_MISSING = "user_missing"
    RACE_LOST = "race_lost"


_REJECTIONS: dict[RotationResult, type[TokenError]] = {
    RotationResult.NOT_FOUND: InvalidTokenError,
    RotationResult.REUSED: TokenReusedError,
    RotationResult.EXPIRED: TokenExpiredError,
    RotationResult.SECRET_MISMATCH: InvalidTokenError,
    RotationResult.USER_MISSING: InvalidTokenError,
    RotationResult.RACE_LOST: TokenReusedError,
}


@dataclass(frozen=True, slots=True)
class RotationOutcome:
    """
    Successful rotation.

    :param user: Owner of the rotated token.
    :param issued: Successor refresh credential.
    :param session: Session built before commit, when a builder was given.
    """

    user: User
    issued: IssuedRefreshToken
    session: AuthSessionOut | None = None


class RefreshTokenRotator(BaseService):
    """
    Rotation engine over the refresh-token store.

    :param token_cfg: Refresh lifetime and reuse policy.
    :param ctx: Optional request context.
    :param uow_factory: Optional read-write unit-of-work factory.
    """

    def __init__(
        self,
        *,
        token_cfg: AuthTokenConfig | None = None,
        ctx: ServiceContext | None = None,
        uow_factory: Callable[[], UnitOfWork] | None = None,
    ) -> None:
        super().__init__(ctx=ctx, uow_factory=uow_factory)
        self.cfg = resolve_token_config(token_cfg)

    def rotate(
        self,
        raw_token: str,
        *,
        build: Callable[[RotationOutcome], AuthSessionOut] | None = None,
    ) -> RotationOutcome:
        """
        Exchange a refresh token for its successor.

        :param raw_token: External token string ``"<id>.<secret>"``.
        :param build: Turns the outcome into a client session inside the
            transaction; if it raises, the rotation is rolled back and the
            presented token stays active.
        :returns: Owner and successor credential (and the built session).
        :raises InvalidTokenError: Malformed, unknown, wrong secret, or orphaned.
        :raises TokenExpiredError: Past ``expires_at``; the row is revoked.
        :raises TokenReusedError: Already revoked or rotated, or a concurrent
            rotation won the race.
        """
        token_id, secret = parse_refresh_token(raw_token)
        now = self.now_utc()

        with self.rw_uow() as uow:
            result, outcome = self._rotate_locked(uow, token_id, secret, now)
            if outcome is not None and build is not None:
                outcome = replace(outcome, session=build(outcome))

        if result is RotationResult.OK and outcome is not None:
            logger.info(
                "refresh.rotated",
                extra={"user_id": outcome.user.id, "token_id": token_id},
            )
            return outcome

        if result is not RotationResult.REUSED:
            logger.info(
                "refresh.rejected reason=%s",
                result.value,
                extra={"token_id": token_id, "reason": result.value},
            )
        raise _REJECTIONS[result]()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _rotate_locked(
        self,
        uow: UnitOfWork,
        token_id: str,
        secret: str,
        now: datetime,
    ) -> tuple[RotationResult, RotationOutcome | None]:
        store = uow.refresh_tokens
        row = store.find_by_id(token_id, for_update=True)
        if row is None:
            return RotationResult.NOT_FOUND, None

        if row.is_revoked:
            self._handle_reuse(uow, row.user_id, token_id, now)
            return RotationResult.REUSED, None

        if row.is_expired(now):
            store.revoke(row.id, now=now)
            return RotationResult.EXPIRED, None

        if not store.verify_secret(row, secret):
            store.revoke(row.id, now=now)
            return RotationResult.SECRET_MISMATCH, None

        user = uow.users.get(row.user_id)
        if user is None:
            store.revoke(row.id, now=now)
            return RotationResult.USER_MISSING, None

        # Guarded update: zero rows means another rotation consumed it first.
        if not store.revoke(row.id, now=now):
            return RotationResult.RACE_LOST, None

        issued = store.create(
            user.id,
            now + self.cfg.refresh_expires,
            now=now,
            user_agent=self.ctx.user_agent,
            ip_address=self.ctx.ip_address,
        )
        return RotationResult.OK, RotationOutcome(user=user, issued=issued)

    def _handle_reuse(self, uow: UnitOfWork, user_id: str, token_id: str, now: datetime) -> None:
        revoked = 0
        if self.cfg.reuse_policy == REVOKE_FAMILY:
            revoked = uow.refresh_tokens.revoke_all_for_user(user_id, now=now)
        logger.warning(
            "refresh.rejected reason=reused",
            extra={
                "user_id": user_id,
                "token_id": token_id,
                "reason": RotationResult.REUSED.value,
                "policy": self.cfg.reuse_policy,
                "revoked": revoked,
            },
        )
