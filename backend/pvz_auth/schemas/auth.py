"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from pvz_auth.services.auth.dto import UserRole


class RegisterSchema(Schema):
    """Input payload for account registration."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))
    role = fields.Enum(UserRole, by_value=True, required=True)


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class DummyLoginSchema(Schema):
    """Input payload for a role-only test login."""

    role = fields.Enum(UserRole, by_value=True, required=True)


class TokenResponseSchema(Schema):
    """Response payload containing an access token."""

    token = fields.String(required=True)


class UserSchema(Schema):
    """Public representation of a registered user."""

    id = fields.UUID(required=True)
    email = fields.Email(required=True)
    role = fields.Enum(UserRole, by_value=True, required=True)


class ClaimsSchema(Schema):
    """Verified access-token claims of the caller."""

    user_id = fields.String(attribute="subject", required=True)
    role = fields.String(required=True)
    issued_at = fields.AwareDateTime(required=True)
    expires_at = fields.AwareDateTime(required=True)
