"""User resource schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validates

from authsvc.models.user import coerce_role


class UserSchema(Schema):
    """Public representation of a user entity."""

    id = fields.String(required=True)
    name = fields.String(required=True)
    email = fields.Email(allow_none=True)
    role = fields.String(required=True)
    date_of_birth = fields.Date(allow_none=True)
    has_password = fields.Boolean()
    google_linked = fields.Boolean()
    provider = fields.String()
    picture_url = fields.String(allow_none=True)
    created_at = fields.DateTime(allow_none=True)


class RoleChangeSchema(Schema):
    """Payload for promoting or demoting a user."""

    class Meta:
        unknown = EXCLUDE

    role = fields.String(required=True)

    @validates("role")
    def validate_role(self, value: str, **_: Any) -> None:
        try:
            coerce_role(value)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
