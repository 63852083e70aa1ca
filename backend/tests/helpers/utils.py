"""Tiny helpers shared across test modules."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any


@contextmanager
def not_raises(exception: type[BaseException]):
    """Context manager asserting that an exception is *not* raised.

    Parameters
    ----------
    exception: type[BaseException]
        Exception type that should not be raised within the context.

    Yields
    ------
    None
        Control enters the managed block when the exception is absent.
    """
    try:
        yield
    except exception as exc:  # pragma: no cover
        raise AssertionError(f"Did raise {exception}: {exc}") from exc


def reload(session, model, pk: Any):
    """Drop cached state and read ``model`` row ``pk`` back from the database."""
    session.expire_all()
    return session.get(model, pk)


def bearer(token: str) -> dict[str, str]:
    """Authorization header for an access token."""
    return {"Authorization": f"Bearer {token}"}


def assert_problem(resp, status: int, code: str) -> dict[str, Any]:
    """Assert an RFC 7807 error response and return its body."""
    assert resp.status_code == status, resp.get_json()
    assert resp.mimetype == "application/problem+json"
    body = resp.get_json()
    assert body["status"] == status
    assert body["code"] == code
    return body
