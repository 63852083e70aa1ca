"""User administration endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from authsvc.api.deps import json_response, require_auth, require_role, timing, user_admin_service
from authsvc.models.user import UserRole
from authsvc.schemas import ProfileSchema, RoleChangeSchema, UserSchema
from authsvc.services.users import RoleChangeIn

bp = Blueprint("users", __name__)

user_schema = UserSchema()
users_schema = UserSchema(many=True)
profile_schema = ProfileSchema()
role_change_schema = RoleChangeSchema()


@bp.get("")
@require_role(UserRole.ADMIN)
@timing
def list_users():
    """List all users, newest first."""

    users = user_admin_service().list_users()
    return json_response({"data": users_schema.dump(users)})


@bp.get("/<string:user_id>")
@require_auth
@timing
def get_user(user_id: str):
    """Return a user; only the user themselves or an admin may read it."""

    profile = user_admin_service().get_user(user_id)
    return json_response({"data": profile_schema.dump(profile)})


@bp.patch("/<string:user_id>/role")
@require_role(UserRole.ADMIN)
@timing
def change_role(user_id: str):
    data = role_change_schema.load(request.get_json(silent=True) or {})
    user = user_admin_service().change_role(RoleChangeIn(user_id=user_id, role=data["role"]))
    return json_response({"data": user_schema.dump(user)})
