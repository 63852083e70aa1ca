from __future__ import annotations

from authsvc.models.user import User, UserRole
from tests.factories.user import UserFactory
from tests.helpers.utils import reload


class TestSetRole:
    def test_promotes_user(self, app, session):
        user = UserFactory(email="boss@example.com")

        result = app.test_cli_runner().invoke(args=["auth", "set-role", "boss@example.com", "admin"])

        assert result.exit_code == 0, result.output
        assert "boss@example.com is now admin." in result.output
        assert reload(session, User, user.id).role is UserRole.ADMIN

    def test_accepts_legacy_alias(self, app, session):
        user = UserFactory(email="legacy@example.com", admin=True)

        result = app.test_cli_runner().invoke(args=["auth", "set-role", "legacy@example.com", "user"])

        assert result.exit_code == 0, result.output
        assert reload(session, User, user.id).role is UserRole.CLIENT

    def test_unknown_user(self, app):
        result = app.test_cli_runner().invoke(args=["auth", "set-role", "ghost@example.com", "admin"])
        assert result.exit_code != 0
        assert "No user with email" in result.output

    def test_unknown_role(self, app):
        UserFactory(email="x@example.com")
        result = app.test_cli_runner().invoke(args=["auth", "set-role", "x@example.com", "emperor"])
        assert result.exit_code != 0
        assert "Unknown role" in result.output
