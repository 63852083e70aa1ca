"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

import re
from typing import Any

from marshmallow import (
    EXCLUDE,
    Schema,
    ValidationError,
    fields,
    validate,
    validates,
    validates_schema,
)

from authsvc.models.user import coerce_role

from .user import UserSchema

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[^\da-zA-Z]).{8,}$")
PASSWORD_MESSAGE = (
    "Password must be at least 8 characters and contain an uppercase letter, "
    "a lowercase letter, a digit and a symbol."
)


class RegisterSchema(Schema):
    """Input payload for account registration."""

    class Meta:
        unknown = EXCLUDE

    name = fields.String(required=True, validate=validate.Length(min=2, max=120))
    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(
        required=True,
        load_only=True,
        validate=[
            validate.Length(max=128),
            validate.Regexp(PASSWORD_PATTERN, error=PASSWORD_MESSAGE),
        ],
    )
    confirm_password = fields.String(required=True, load_only=True)
    date_of_birth = fields.Date(load_default=None, allow_none=True)
    role = fields.String(load_default=None, allow_none=True)

    @validates("name")
    def validate_name(self, value: str, **_: Any) -> None:
        if len(value.strip()) < 2:
            raise ValidationError("Name must have at least 2 characters.")

    @validates("role")
    def validate_role(self, value: str | None, **_: Any) -> None:
        if value is None:
            return
        try:
            coerce_role(value)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

    @validates_schema
    def passwords_match(self, data: dict[str, Any], **_: Any) -> None:
        if data.get("password") != data.get("confirm_password"):
            raise ValidationError("Passwords do not match.", field_name="confirm_password")


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, load_only=True, validate=validate.Length(min=1))


class GoogleLoginSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    id_token = fields.String(required=True, validate=validate.Length(min=1))


class RefreshSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class LogoutSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(required=True, validate=validate.Length(min=1))
    all_sessions = fields.Boolean(load_default=False)


class ValidateTokenSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    token = fields.String(required=True, validate=validate.Length(min=1))


class SessionSchema(Schema):
    """Response payload for a freshly issued session."""

    access_token = fields.String(required=True)
    token_type = fields.String(required=True)
    expires_in = fields.Integer(required=True)
    refresh_token = fields.String(required=True)
    refresh_token_expires_at = fields.DateTime(required=True)
    user = fields.Nested(UserSchema, required=True)
    permissions = fields.List(fields.String(), required=True)


class ProfileSchema(Schema):
    """Response payload exposing the authenticated user and permissions."""

    user = fields.Nested(UserSchema, required=True)
    permissions = fields.List(fields.String(), required=True)


class TokenClaimsSchema(Schema):
    subject = fields.String(required=True)
    email = fields.String(allow_none=True)
    role = fields.String(allow_none=True)


class IntrospectionSchema(Schema):
    valid = fields.Boolean(required=True)
    user = fields.Nested(UserSchema, required=True)
    permissions = fields.List(fields.String(), required=True)
    claims = fields.Nested(TokenClaimsSchema, required=True)
