"""Refresh-token repository: hashed lookups and conditional revocation."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import Select, false, select, update
from sqlalchemy.engine import CursorResult
from sqlalchemy.orm import joinedload

from pvz_auth.models.refresh_token import RefreshTokenRecord
from pvz_auth.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshTokenRecord]):
    """Persistence-only repository for :class:`RefreshTokenRecord`."""

    model = RefreshTokenRecord

    def _default_eagerload(self, stmt: Select[Any]) -> Select[Any]:
        # 1:1 owner, needed for the role on every lookup
        return stmt.options(joinedload(RefreshTokenRecord.user))

    def get_by_hash(self, token_hash: bytes) -> RefreshTokenRecord | None:
        """Fetch a record (with its owner) by token hash."""
        stmt = self._default_eagerload(
            select(RefreshTokenRecord).where(RefreshTokenRecord.token_hash == token_hash)
        )
        result = self.session.execute(stmt).scalars().first()
        return cast(RefreshTokenRecord | None, result)

    def revoke_if_active(self, token_hash: bytes) -> int:
        """
        Flip ``revoked`` on the record only if it is still active.

        The ``revoked = false`` predicate makes concurrent rotations of one
        record serialize on the row: exactly one of them sees a row count of 1.

        :returns: Number of rows affected (0 or 1).
        """
        stmt = (
            update(RefreshTokenRecord)
            .where(
                RefreshTokenRecord.token_hash == token_hash,
                RefreshTokenRecord.revoked == false(),
            )
            .values(revoked=True)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult[Any], self.session.execute(stmt))
        return int(result.rowcount or 0)

    def exists_hash(self, token_hash: bytes) -> bool:
        stmt = select(RefreshTokenRecord.id).where(RefreshTokenRecord.token_hash == token_hash)
        return self.session.execute(stmt).first() is not None
