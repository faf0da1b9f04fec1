"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    ClaimsSchema,
    DummyLoginSchema,
    LoginSchema,
    RegisterSchema,
    TokenResponseSchema,
    UserSchema,
)

__all__ = [
    "ClaimsSchema",
    "DummyLoginSchema",
    "LoginSchema",
    "RegisterSchema",
    "TokenResponseSchema",
    "UserSchema",
]
