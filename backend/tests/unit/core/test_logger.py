from __future__ import annotations

import json
import logging

from authsvc.core.logger import JSONFormatter, RequestIdFilter, ensure_request_id


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "authsvc.test", logging.INFO, __file__, 1, "refresh.rotated", None, None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_includes_known_extras_only(self):
        record = _record(user_id="u1", reason="ok", password="hunter2")
        RequestIdFilter().filter(record)

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "refresh.rotated"
        assert payload["level"] == "INFO"
        assert payload["user_id"] == "u1"
        assert payload["reason"] == "ok"
        assert "password" not in payload
        assert payload["request_id"] is None

    def test_role_changes_carry_role_and_actor(self):
        record = _record(user_id="u1", role="admin", actor_id="a1")
        RequestIdFilter().filter(record)

        payload = json.loads(JSONFormatter().format(record))

        assert payload["role"] == "admin"
        assert payload["actor_id"] == "a1"


class TestRequestId:
    def test_incoming_header_is_reused(self, app):
        with app.test_request_context(headers={"X-Request-ID": "abc-123"}):
            assert ensure_request_id() == "abc-123"
            assert ensure_request_id() == "abc-123"

    def test_generated_when_missing(self, app):
        with app.test_request_context():
            first = ensure_request_id()
            assert first
            assert ensure_request_id() == first

    def test_response_carries_request_id(self, client):
        resp = client.get("/api/v1/health", headers={"X-Request-ID": "trace-me"})
        assert resp.headers["X-Request-ID"] == "trace-me"

    def test_each_request_gets_its_own_id(self, client):
        first = client.get("/api/v1/health", headers={"X-Request-ID": "first-call"})
        second = client.get("/api/v1/health", headers={"X-Request-ID": "second-call"})
        third = client.get("/api/v1/health")

        assert first.headers["X-Request-ID"] == "first-call"
        assert second.headers["X-Request-ID"] == "second-call"
        assert third.headers["X-Request-ID"] not in {"first-call", "second-call"}
