"""Row <-> value-object conversion shared by the SQL stores."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

from pvz_auth.models import RefreshTokenRecord, User
from pvz_auth.services.auth.dto import RefreshToken, UserView


def as_utc(dt: datetime) -> datetime:
    """SQLite drops tzinfo; label naive values as UTC (no conversion)."""
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=UTC)


def user_view(row: User) -> UserView:
    return UserView(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        role=row.role,
        created_at=as_utc(row.created_at) if row.created_at else None,
    )


def refresh_token(row: RefreshTokenRecord) -> RefreshToken:
    # The plaintext is not stored, so it cannot be returned.
    return RefreshToken(
        token="",
        user_id=str(row.user_id),
        user_agent=row.user_agent,
        ip=row.ip_address,
        created_at=as_utc(row.created_at),
        expires_at=as_utc(row.expires_at),
        token_hash=bytes(row.token_hash),
        fingerprint=row.fingerprint,
        revoked=bool(row.revoked),
    )


def refresh_record(token: RefreshToken) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        token_hash=token.token_hash,
        fingerprint=token.fingerprint,
        user_id=UUID(str(token.user_id)),
        user_agent=token.user_agent,
        ip_address=token.ip,
        created_at=token.created_at,
        expires_at=token.expires_at,
        revoked=token.revoked,
    )
