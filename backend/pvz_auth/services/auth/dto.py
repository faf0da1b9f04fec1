# pvz_auth/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID

# ----------------------------- Domain values ------------------------------ #


class UserRole(str, Enum):
    """Roles known to the pickup-point backend."""

    EMPLOYEE = "employee"
    MODERATOR = "moderator"


@dataclass(frozen=True, slots=True)
class AccessTokenClaims:
    """
    Decoded claims of a verified access token.

    :param subject: User identifier (string form of the user UUID).
    :type subject: str
    :param role: Role granted to the bearer.
    :type role: str
    :param issued_at: Issuance instant (UTC).
    :type issued_at: datetime
    :param expires_at: Expiry instant (UTC).
    :type expires_at: datetime
    :param token_id: Unique token id (``jti``), for traceability only.
    :type token_id: str
    """

    subject: str
    role: str
    issued_at: datetime
    expires_at: datetime
    token_id: str

    @property
    def user_id(self) -> str:
        return self.subject


@dataclass(frozen=True, slots=True)
class RefreshToken:
    """
    In-flight refresh token value.

    ``token`` is the plaintext and only exists at issuance time or when a
    client presents it; stores receive the object but persist only
    ``token_hash`` and ``fingerprint`` plus metadata.

    :param token: Plaintext opaque value ("" for records read back from a store).
    :param user_id: Owner user id (string form).
    :param user_agent: Client user agent bound at issuance.
    :param ip: Client IP bound at issuance.
    :param created_at: Issuance instant (UTC).
    :param expires_at: Absolute expiry (UTC).
    :param token_hash: One-way digest of ``token``, the storage lookup key.
    :param fingerprint: Binding digest of token + client context + secret.
    :param revoked: Whether the record was revoked (rotation or logout).
    """

    token: str
    user_id: str
    user_agent: str
    ip: str
    created_at: datetime
    expires_at: datetime
    token_hash: bytes = b""
    fingerprint: str = ""
    revoked: bool = False

    def __repr__(self) -> str:
        # Keep the plaintext out of logs and tracebacks.
        return (
            f"RefreshToken(user_id={self.user_id!r}, ip={self.ip!r}, "
            f"expires_at={self.expires_at.isoformat()}, revoked={self.revoked})"
        )

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True, slots=True)
class UserRoleAndRefreshToken:
    """Read-side join of the owner's role and a stored refresh record."""

    role: UserRole
    refresh_token: RefreshToken


@dataclass(frozen=True, slots=True)
class UserView:
    """
    Read-model of a user as returned by the user store.

    :param id: User UUID.
    :param email: Normalized login email.
    :param password_hash: Hash produced by the password collaborator.
    :param role: Assigned role.
    :param created_at: Creation instant.
    """

    id: UUID
    email: str
    password_hash: str
    role: UserRole
    created_at: datetime | None = None


# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    :param user_agent: Client user agent.
    :type user_agent: str
    :param ip: Client IP address.
    :type ip: str
    """

    email: str
    password: str
    user_agent: str = ""
    ip: str = ""

    def __repr__(self) -> str:
        return f"LoginIn(email={self.email!r}, ip={self.ip!r})"


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh and logout.

    :param refresh_token: Plaintext refresh token presented by the client.
    :type refresh_token: str
    :param user_agent: User agent of the presenting request.
    :type user_agent: str
    :param ip: IP address of the presenting request.
    :type ip: str
    """

    refresh_token: str
    user_agent: str = ""
    ip: str = ""

    def __repr__(self) -> str:
        return f"RefreshIn(ip={self.ip!r}, user_agent={self.user_agent!r})"


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param email: Login email.
    :param password: Raw password.
    :param role: Requested role.
    """

    email: str
    password: str
    role: UserRole

    def __repr__(self) -> str:
        return f"RegisterIn(email={self.email!r}, role={self.role.value!r})"


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Refresh token; its plaintext goes to the cookie.
    :type refresh_token: RefreshToken
    """

    access_token: str
    refresh_token: RefreshToken


@dataclass(frozen=True, slots=True)
class UserOut:
    """Public representation of a registered user."""

    id: UUID
    email: str
    role: UserRole


# ------------------------------- Config DTO ------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    :param timeout: Deadline applied to every service operation.
    :type timeout: timedelta
    """

    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(hours=720)
    timeout: timedelta = timedelta(seconds=5)
