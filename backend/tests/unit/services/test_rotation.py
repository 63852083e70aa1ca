"""Tests for single-use refresh-token rotation."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy import delete, func, select

from authsvc.models.refresh_token import RefreshToken
from authsvc.models.user import User
from authsvc.repositories.refresh_token import RefreshTokenRepository
from authsvc.services._shared.errors import (
    InvalidTokenError,
    TokenExpiredError,
    TokenReusedError,
)
from authsvc.services.auth.dto import AuthTokenConfig
from authsvc.services.auth.rotation import REVOKE_TOKEN, RefreshTokenRotator, RotationOutcome
from tests.factories.refresh_token import RefreshTokenFactory, external_token
from tests.factories.user import UserFactory
from tests.helpers.utils import reload


@pytest.fixture()
def rotator(uow_factory) -> RefreshTokenRotator:
    return RefreshTokenRotator(token_cfg=AuthTokenConfig(), uow_factory=uow_factory)


@pytest.fixture()
def alice(session) -> User:
    return UserFactory(name="Alice", email="alice@example.com")


def _token_count(session, user_id: str) -> int:
    return session.scalar(
        select(func.count()).select_from(RefreshToken).where(RefreshToken.user_id == user_id)
    )


class TestRotate:
    def test_chain_of_rotations(self, rotator, session, alice):
        t0 = RefreshTokenFactory(user_id=alice.id)

        first = rotator.rotate(external_token(t0))
        second = rotator.rotate(first.issued.token)

        assert isinstance(first, RotationOutcome)
        assert first.user.id == alice.id
        assert first.issued.id != t0.id
        assert second.issued.id != first.issued.id

        assert reload(session, RefreshToken, t0.id).is_revoked
        assert reload(session, RefreshToken, first.issued.id).is_revoked
        assert not reload(session, RefreshToken, second.issued.id).is_revoked
        assert _token_count(session, alice.id) == 3

    def test_successor_expiry_follows_configured_lifetime(self, uow_factory, alice):
        rotator = RefreshTokenRotator(
            token_cfg=AuthTokenConfig(refresh_expires=timedelta(days=7)), uow_factory=uow_factory
        )
        t0 = RefreshTokenFactory(user_id=alice.id)
        before = datetime.now(UTC)

        outcome = rotator.rotate(external_token(t0))

        assert before + timedelta(days=7) <= outcome.issued.expires_at
        assert outcome.issued.expires_at <= datetime.now(UTC) + timedelta(days=7)

    def test_reuse_revokes_the_family(self, rotator, session, alice, caplog):
        t0 = RefreshTokenFactory(user_id=alice.id)
        t1 = rotator.rotate(external_token(t0)).issued

        with caplog.at_level(logging.WARNING), pytest.raises(TokenReusedError):
            rotator.rotate(external_token(t0))

        assert reload(session, RefreshToken, t1.id).is_revoked
        assert any("reason=reused" in r.getMessage() for r in caplog.records)
        with pytest.raises(TokenReusedError):
            rotator.rotate(t1.token)

    def test_reuse_with_token_policy_keeps_successor(self, uow_factory, session, alice):
        rotator = RefreshTokenRotator(
            token_cfg=AuthTokenConfig(reuse_policy=REVOKE_TOKEN), uow_factory=uow_factory
        )
        t0 = RefreshTokenFactory(user_id=alice.id)
        t1 = rotator.rotate(external_token(t0)).issued

        with pytest.raises(TokenReusedError):
            rotator.rotate(external_token(t0))

        assert not reload(session, RefreshToken, t1.id).is_revoked
        assert rotator.rotate(t1.token).user.id == alice.id

    def test_only_one_of_many_attempts_succeeds(self, rotator, session, alice):
        t0 = RefreshTokenFactory(user_id=alice.id)
        raw = external_token(t0)

        successes, reused = 0, 0
        for _ in range(5):
            try:
                rotator.rotate(raw)
                successes += 1
            except TokenReusedError:
                reused += 1

        assert (successes, reused) == (1, 4)

    def test_expired_token_is_rejected_and_revoked(self, rotator, session, alice):
        now = datetime.now(UTC)
        row = RefreshTokenFactory(
            user_id=alice.id,
            created_at=now - timedelta(days=2),
            expires_at=now - timedelta(seconds=1),
        )

        with pytest.raises(TokenExpiredError):
            rotator.rotate(external_token(row))

        assert reload(session, RefreshToken, row.id).is_revoked
        assert _token_count(session, alice.id) == 1

    def test_wrong_secret_is_rejected_and_revokes_the_row(self, rotator, session, alice):
        row = RefreshTokenFactory(user_id=alice.id)

        with pytest.raises(InvalidTokenError):
            rotator.rotate(external_token(row, "guessed-secret"))

        assert reload(session, RefreshToken, row.id).is_revoked
        with pytest.raises(TokenReusedError):
            rotator.rotate(external_token(row))

    def test_unknown_token(self, rotator):
        with pytest.raises(InvalidTokenError):
            rotator.rotate("0" * 32 + ".whatever")

    @pytest.mark.parametrize("raw", ["", "no-separator", ".secret-only", "id-only."])
    def test_malformed_token(self, rotator, raw):
        with pytest.raises(InvalidTokenError):
            rotator.rotate(raw)

    def test_deleted_owner_is_rejected(self, rotator, session, alice):
        row = RefreshTokenFactory(user_id=alice.id)
        session.execute(delete(User).where(User.id == alice.id))
        session.commit()

        with pytest.raises(InvalidTokenError):
            rotator.rotate(external_token(row))

        assert reload(session, RefreshToken, row.id).is_revoked

    def test_lost_race_issues_nothing(self, rotator, session, alice, monkeypatch):
        row = RefreshTokenFactory(user_id=alice.id)
        monkeypatch.setattr(RefreshTokenRepository, "revoke", lambda self, token_id, *, now: False)

        with pytest.raises(TokenReusedError):
            rotator.rotate(external_token(row))

        assert _token_count(session, alice.id) == 1
