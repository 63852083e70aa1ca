"""HTTP-level tests for the authentication endpoints."""

from __future__ import annotations

import pytest

from authsvc.api.deps import IDENTITY_PROVIDER_KEY
from authsvc.models.refresh_token import RefreshToken
from authsvc.models.user import User
from authsvc.services._shared.ports import ExternalIdentity, StubIdentityProvider
from tests.factories.user import DEFAULT_PASSWORD, UserFactory
from tests.helpers.utils import assert_problem, bearer, reload

BASE = "/api/v1/auth"
STRONG_PASSWORD = "Str0ng!pass"


def _register(client, **overrides):
    payload = {
        "name": "Alice Example",
        "email": "alice@example.com",
        "password": STRONG_PASSWORD,
        "confirm_password": STRONG_PASSWORD,
    }
    payload.update(overrides)
    return client.post(f"{BASE}/register", json=payload)


def _login(client, email: str, password: str = DEFAULT_PASSWORD):
    return client.post(f"{BASE}/login", json={"email": email, "password": password})


class TestRegisterEndpoint:
    def test_register_returns_a_session(self, client):
        resp = _register(client, date_of_birth="1990-05-17")

        assert resp.status_code == 201, resp.get_json()
        data = resp.get_json()["data"]
        assert data["token_type"] == "bearer"
        assert data["expires_in"] == 15 * 60
        assert data["access_token"] and data["refresh_token"]
        assert data["user"]["email"] == "alice@example.com"
        assert data["user"]["role"] == "client"
        assert data["user"]["date_of_birth"] == "1990-05-17"
        assert "password" not in data["user"]
        assert "auth:login" in data["permissions"]

    def test_duplicate_email(self, client):
        UserFactory(email="alice@example.com")
        assert_problem(_register(client), 409, "conflict")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"password": "weak", "confirm_password": "weak"},
            {"confirm_password": "Different!1"},
            {"email": "not-an-email"},
            {"name": " "},
            {"role": "superuser"},
        ],
    )
    def test_invalid_payload(self, client, overrides):
        body = assert_problem(_register(client, **overrides), 422, "validation_error")
        assert body["details"]["errors"]

    @pytest.mark.parametrize("role", ["admin", "backlog"])
    def test_self_assigned_admin_is_forbidden(self, client, session, role):
        assert_problem(_register(client, role=role), 403, "forbidden")
        assert session.query(User).filter_by(email="alice@example.com").count() == 0

    def test_forbidden_role_leaves_admin_routes_closed(self, client):
        _register(client, role="admin")
        tokens = _register(client, email="other@example.com").get_json()["data"]

        resp = client.get("/api/v1/users", headers=bearer(tokens["access_token"]))
        assert_problem(resp, 403, "forbidden")

    def test_register_records_the_client(self, client, session):
        resp = client.post(
            f"{BASE}/register",
            json={
                "name": "Alice Example",
                "email": "alice@example.com",
                "password": STRONG_PASSWORD,
                "confirm_password": STRONG_PASSWORD,
            },
            headers={"User-Agent": "authsvc-tests/1.0"},
            environ_base={"REMOTE_ADDR": "203.0.113.7"},
        )

        assert resp.status_code == 201, resp.get_json()
        token_id = resp.get_json()["data"]["refresh_token"].split(".", 1)[0]
        row = reload(session, RefreshToken, token_id)
        assert row.user_agent == "authsvc-tests/1.0"
        assert row.ip_address == "203.0.113.7"

    def test_request_id_is_echoed(self, client):
        resp = _register(client, email="rid@example.com")
        assert resp.headers.get("X-Request-ID")


class TestLoginEndpoint:
    def test_login(self, client):
        user = UserFactory(email="bob@example.com")
        resp = _login(client, "bob@example.com")

        assert resp.status_code == 200
        assert resp.get_json()["data"]["user"]["id"] == user.id

    def test_bad_credentials(self, client):
        UserFactory(email="bob@example.com")
        assert_problem(_login(client, "bob@example.com", "nope"), 401, "unauthorized")

    def test_missing_fields(self, client):
        assert_problem(client.post(f"{BASE}/login", json={}), 422, "validation_error")


class TestGoogleEndpoint:
    @pytest.fixture()
    def google(self, app, monkeypatch) -> StubIdentityProvider:
        stub = StubIdentityProvider()
        monkeypatch.setitem(app.extensions, IDENTITY_PROVIDER_KEY, stub)
        return stub

    def test_google_login_creates_account(self, client, google):
        google.register(
            "tok",
            ExternalIdentity(
                subject="g-1",
                email="g@example.com",
                email_verified=True,
                name="Gee",
                picture="https://lh3.googleusercontent.com/a/gee",
            ),
        )

        resp = client.post(f"{BASE}/google", json={"id_token": "tok"})

        assert resp.status_code == 200, resp.get_json()
        user = resp.get_json()["data"]["user"]
        assert user["google_linked"] is True
        assert user["has_password"] is False
        assert user["provider"] == "google"
        assert user["picture_url"] == "https://lh3.googleusercontent.com/a/gee"
        assert user["email"] == "g@example.com"

    def test_unverified_email_cannot_take_over_an_account(self, client, google):
        UserFactory(email="owner@example.com")
        google.register("tok", ExternalIdentity(subject="g-2", email="owner@example.com"))

        resp = client.post(f"{BASE}/google", json={"id_token": "tok"})

        assert_problem(resp, 409, "conflict")

    def test_invalid_google_token(self, client, google):
        assert_problem(client.post(f"{BASE}/google", json={"id_token": "bad"}), 401, "unauthorized")


class TestRefreshEndpoint:
    def test_rotation_and_reuse(self, client, session):
        UserFactory(email="r@example.com")
        first = _login(client, "r@example.com").get_json()["data"]

        resp = client.post(f"{BASE}/refresh", json={"refresh_token": first["refresh_token"]})
        assert resp.status_code == 200
        second = resp.get_json()["data"]
        assert second["refresh_token"] != first["refresh_token"]

        reused = client.post(f"{BASE}/refresh", json={"refresh_token": first["refresh_token"]})
        assert_problem(reused, 401, "token_reused")

        successor_id = second["refresh_token"].split(".", 1)[0]
        assert reload(session, RefreshToken, successor_id).is_revoked

    def test_malformed_refresh_token(self, client):
        resp = client.post(f"{BASE}/refresh", json={"refresh_token": "garbage"})
        assert_problem(resp, 401, "invalid_token")


class TestLogoutEndpoint:
    def test_logout(self, client):
        UserFactory(email="l@example.com")
        tokens = _login(client, "l@example.com").get_json()["data"]

        resp = client.post(f"{BASE}/logout", json={"refresh_token": tokens["refresh_token"]})
        assert resp.status_code == 204

        again = client.post(f"{BASE}/logout", json={"refresh_token": tokens["refresh_token"]})
        assert again.status_code == 204

        refreshed = client.post(f"{BASE}/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert_problem(refreshed, 401, "token_reused")


class TestProfileEndpoints:
    def test_me(self, client):
        user = UserFactory(email="me@example.com")
        tokens = _login(client, "me@example.com").get_json()["data"]

        resp = client.get(f"{BASE}/me", headers=bearer(tokens["access_token"]))

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["user"]["id"] == user.id
        assert data["permissions"] == tokens["permissions"]

    def test_me_requires_a_token(self, client):
        assert_problem(client.get(f"{BASE}/me"), 401, "unauthorized")

    def test_me_rejects_a_bad_token(self, client):
        assert_problem(client.get(f"{BASE}/me", headers=bearer("x.y.z")), 401, "invalid_token")

    def test_validate(self, client):
        UserFactory(email="v@example.com")
        tokens = _login(client, "v@example.com").get_json()["data"]

        resp = client.post(f"{BASE}/validate", json={"token": tokens["access_token"]})

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["valid"] is True
        assert data["claims"]["email"] == "v@example.com"
        assert data["claims"]["role"] == "client"

    def test_validate_invalid_token(self, client):
        assert_problem(client.post(f"{BASE}/validate", json={"token": "x"}), 401, "invalid_token")
