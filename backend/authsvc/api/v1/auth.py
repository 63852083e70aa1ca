"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, request
from flask_jwt_extended import get_jwt_identity

from authsvc.api.deps import auth_service, json_response, require_auth, timing
from authsvc.schemas import (
    GoogleLoginSchema,
    IntrospectionSchema,
    LoginSchema,
    LogoutSchema,
    ProfileSchema,
    RefreshSchema,
    RegisterSchema,
    SessionSchema,
    ValidateTokenSchema,
)
from authsvc.services.auth import (
    GoogleLoginIn,
    IntrospectIn,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
)

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
google_schema = GoogleLoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
validate_schema = ValidateTokenSchema()
session_schema = SessionSchema()
profile_schema = ProfileSchema()
introspection_schema = IntrospectionSchema()


def _body() -> dict:
    return request.get_json(silent=True) or {}


@bp.post("/register")
@timing
def register():
    """Register a new account and open its first session."""

    data = register_schema.load(_body())
    session = auth_service().register(
        RegisterIn(
            name=data["name"],
            email=data["email"],
            password=data["password"],
            date_of_birth=data.get("date_of_birth"),
            role=data.get("role"),
        )
    )
    return json_response({"data": session_schema.dump(session)}, status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue a session."""

    data = login_schema.load(_body())
    session = auth_service().login(LoginIn(email=data["email"], password=data["password"]))
    return json_response({"data": session_schema.dump(session)})


@bp.post("/google")
@timing
def google_login():
    """Sign in with a Google ID token."""

    data = google_schema.load(_body())
    session = auth_service().login_with_google(GoogleLoginIn(id_token=data["id_token"]))
    return json_response({"data": session_schema.dump(session)})


@bp.post("/refresh")
@timing
def refresh():
    """Rotate a refresh token."""

    data = refresh_schema.load(_body())
    session = auth_service().refresh(RefreshIn(refresh_token=data["refresh_token"]))
    return json_response({"data": session_schema.dump(session)})


@bp.post("/logout")
@timing
def logout():
    data = logout_schema.load(_body())
    auth_service().logout(
        LogoutIn(refresh_token=data["refresh_token"], all_sessions=data["all_sessions"])
    )
    return "", 204


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the authenticated user profile and permissions."""

    profile = auth_service().profile(str(get_jwt_identity()))
    return json_response({"data": profile_schema.dump(profile)})


@bp.post("/validate")
@timing
def validate_token():
    """Introspect an access token."""

    data = validate_schema.load(_body())
    result = auth_service().introspect(IntrospectIn(token=data["token"]))
    return json_response({"data": introspection_schema.dump(result)})
