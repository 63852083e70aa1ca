"""Unit tests for the refresh-token store."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from authsvc.models.refresh_token import RefreshToken
from authsvc.models.base import as_utc
from authsvc.repositories.refresh_token import (
    IssuedRefreshToken,
    RefreshTokenRepository,
    parse_refresh_token,
)
from authsvc.services._shared.errors import InvalidTokenError
from tests.factories.refresh_token import DEFAULT_SECRET, RefreshTokenFactory
from tests.factories.user import UserFactory
from tests.helpers.utils import reload


@pytest.fixture()
def repo(session) -> RefreshTokenRepository:
    return RefreshTokenRepository(session=session)


@pytest.fixture()
def now() -> datetime:
    return datetime.now(UTC)


class TestParseRefreshToken:
    def test_splits_on_first_separator(self):
        assert parse_refresh_token("abc.def.ghi") == ("abc", "def.ghi")

    @pytest.mark.parametrize("raw", [None, "", "abc", ".secret", "id.", "."])
    def test_malformed_tokens(self, raw):
        with pytest.raises(InvalidTokenError):
            parse_refresh_token(raw)


class TestRefreshTokenRepository:
    def test_create_stores_only_a_hash(self, repo, session, now):
        user = UserFactory()
        issued = repo.create(user.id, now + timedelta(days=30), now=now)
        session.commit()

        assert isinstance(issued, IssuedRefreshToken)
        assert issued.token == f"{issued.id}.{issued.secret}"
        assert len(issued.secret) == 96

        row = reload(session, RefreshToken, issued.id)
        assert row.user_id == user.id
        assert row.revoked_at is None
        assert issued.secret not in row.token_hash
        assert repo.verify_secret(row, issued.secret)
        assert not repo.verify_secret(row, issued.secret[:-1])
        assert row.user_agent is None
        assert row.ip_address is None

    def test_create_records_client_metadata(self, repo, session, now):
        user = UserFactory()
        issued = repo.create(
            user.id,
            now + timedelta(days=30),
            now=now,
            user_agent="curl/8.5.0",
            ip_address="2001:db8::1",
        )
        session.commit()

        row = reload(session, RefreshToken, issued.id)
        assert row.user_agent == "curl/8.5.0"
        assert row.ip_address == "2001:db8::1"

    def test_issued_secrets_are_unique(self, repo, now):
        user = UserFactory()
        first = repo.create(user.id, now + timedelta(days=1), now=now)
        second = repo.create(user.id, now + timedelta(days=1), now=now)
        assert first.id != second.id
        assert first.secret != second.secret

    def test_find_by_id(self, repo):
        row = RefreshTokenFactory()
        assert repo.find_by_id(row.id).id == row.id
        assert repo.find_by_id(row.id, for_update=True).id == row.id
        assert repo.find_by_id("missing") is None

    def test_verify_secret_against_factory_row(self, repo):
        row = RefreshTokenFactory()
        assert repo.verify_secret(row, DEFAULT_SECRET)
        assert not repo.verify_secret(row, "other")

    def test_revoke_is_guarded_and_keeps_first_timestamp(self, repo, session, now):
        row = RefreshTokenFactory()

        assert repo.revoke(row.id, now=now) is True
        session.commit()
        assert repo.revoke(row.id, now=now + timedelta(minutes=5)) is False
        session.commit()

        stored = reload(session, RefreshToken, row.id)
        assert as_utc(stored.revoked_at) == now

    def test_revoke_unknown_id(self, repo, now):
        assert repo.revoke("does-not-exist", now=now) is False

    def test_revoke_all_for_user(self, repo, session, now):
        user = UserFactory()
        other = UserFactory()
        RefreshTokenFactory.create_batch(3, user_id=user.id)
        RefreshTokenFactory(user_id=user.id, revoked=True)
        RefreshTokenFactory(user_id=other.id)

        assert repo.revoke_all_for_user(user.id, now=now) == 3
        assert repo.revoke_all_for_user(user.id, now=now) == 0
        session.commit()

        assert repo.list_active_for_user(user.id, now=now) == []
        assert len(repo.list_active_for_user(other.id, now=now)) == 1

    def test_list_active_skips_revoked_and_expired(self, repo, now):
        user = UserFactory()
        older = RefreshTokenFactory(user_id=user.id, created_at=now - timedelta(hours=2))
        newer = RefreshTokenFactory(user_id=user.id, created_at=now - timedelta(hours=1))
        RefreshTokenFactory(user_id=user.id, revoked=True)
        RefreshTokenFactory(user_id=user.id, expired=True)

        active = repo.list_active_for_user(user.id, now=now)
        assert [r.id for r in active] == [newer.id, older.id]
