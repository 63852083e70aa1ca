from __future__ import annotations

import pytest

from authsvc.core import errors as api_errors
from authsvc.services._shared.base import BaseService
from authsvc.services._shared.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    ServiceError,
    TokenExpiredError,
    TokenReusedError,
)


@pytest.mark.parametrize(
    ("exc", "status", "code"),
    [
        (NotFoundError("User", "x"), 404, "not_found"),
        (ConflictError("User", "dup"), 409, "conflict"),
        (InvalidTokenError(), 401, "invalid_token"),
        (TokenExpiredError(), 401, "token_expired"),
        (TokenReusedError(), 401, "token_reused"),
        (AuthenticationError(), 401, "unauthorized"),
        (AuthorizationError(), 403, "forbidden"),
        (ServiceError("nope"), 400, "bad_request"),
    ],
)
def test_service_errors_translate_to_api_errors(exc, status, code):
    translated = BaseService.translate_exceptions(exc)
    assert isinstance(translated, api_errors.APIError)
    assert translated.status_code == status
    assert translated.code == code


def test_non_service_errors_pass_through():
    exc = KeyError("k")
    assert BaseService.translate_exceptions(exc) is exc


def test_problem_shape(app):
    with app.test_request_context("/api/v1/auth/refresh"):
        err = api_errors.Unauthorized("Refresh token has already been used.", code="token_reused")
        problem = err.to_problem()

    assert problem["status"] == 401
    assert problem["title"] == "Unauthorized"
    assert problem["code"] == "token_reused"
    assert problem["instance"] == "/api/v1/auth/refresh"
    assert problem["request_id"]
