"""Service layer public API.

Callers import from :mod:`pvz_auth.services` without knowing the internal
structure.

Re-exports
----------
- Base primitives: :class:`BaseService`, :class:`ServiceContext`
- Errors: :class:`AuthError`, :class:`AuthErrorKind`
- Authentication service: :class:`AuthService`, :class:`RefreshTokenFactory`
  and its DTOs
"""

from __future__ import annotations

from ._shared.base import BaseService
from ._shared.context import ServiceContext, claims_from, with_claims
from ._shared.errors import AuthError, AuthErrorKind
from .auth.dto import (
    AccessTokenClaims,
    AuthTokenConfig,
    LoginIn,
    RefreshIn,
    RefreshToken,
    RegisterIn,
    TokenPairOut,
    UserOut,
    UserRole,
)
from .auth.refresh_tokens import RefreshTokenFactory
from .auth.service import AuthService

__all__ = [
    "BaseService",
    "ServiceContext",
    "claims_from",
    "with_claims",
    "AuthError",
    "AuthErrorKind",
    "AuthService",
    "RefreshTokenFactory",
    "AccessTokenClaims",
    "AuthTokenConfig",
    "LoginIn",
    "RefreshIn",
    "RefreshToken",
    "RegisterIn",
    "TokenPairOut",
    "UserOut",
    "UserRole",
]
