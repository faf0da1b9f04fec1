# pvz_auth/infra/sql/session_store.py
from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy.exc import IntegrityError

from pvz_auth.infra.sql import _convert
from pvz_auth.services._shared.context import ServiceContext
from pvz_auth.services._shared.errors import ConflictError, violates
from pvz_auth.services._shared.ports import RotationResult, SessionStore
from pvz_auth.services.auth.dto import RefreshToken, UserRoleAndRefreshToken
from pvz_auth.uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)

ROTATION_ISOLATION = "READ COMMITTED"
_UQ_TOKEN_HASH = "uq_refresh_tokens_token_hash"


class SQLSessionStore(SessionStore):
    """
    Relational session store over the ``refresh_tokens`` table.

    Every call opens its own unit of work bounded by the context deadline
    (``SET LOCAL statement_timeout`` on PostgreSQL).

    :param uow_factory: Builds a :class:`SQLAlchemyUnitOfWork`; injectable for tests.
    """

    def __init__(
        self, uow_factory: Callable[..., SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork
    ) -> None:
        self._uow_factory = uow_factory

    def _uow(self, ctx: ServiceContext, **kwargs) -> SQLAlchemyUnitOfWork:
        return self._uow_factory(statement_timeout=ctx.remaining(), **kwargs)

    def save(self, token: RefreshToken, *, ctx: ServiceContext) -> None:
        ctx.check("sql.sessions.save")
        with self._uow(ctx) as uow:
            try:
                uow.refresh_tokens.add(_convert.refresh_record(token))
            except IntegrityError as exc:
                if violates(exc, _UQ_TOKEN_HASH) or violates(exc, "refresh_tokens.token_hash"):
                    raise ConflictError("RefreshToken", "token hash already exists") from exc
                raise

    def find_by_hash(
        self, token_hash: bytes, *, ctx: ServiceContext
    ) -> UserRoleAndRefreshToken | None:
        ctx.check("sql.sessions.find_by_hash")
        with self._uow(ctx) as uow:
            row = uow.refresh_tokens.get_by_hash(token_hash)
            if row is None or row.user is None:
                return None
            return UserRoleAndRefreshToken(
                role=row.user.role, refresh_token=_convert.refresh_token(row)
            )

    def revoke_and_insert(
        self, old_hash: bytes, new_token: RefreshToken, *, ctx: ServiceContext
    ) -> RotationResult:
        """
        Revoke ``old_hash`` and insert ``new_token`` in one transaction.

        The revoke is a conditional UPDATE (``revoked = false``); when it hits
        no row the transaction writes nothing and the reason is reported.
        """
        op = "sql.sessions.revoke_and_insert"
        ctx.check(op)
        with self._uow(ctx, isolation_level=ROTATION_ISOLATION) as uow:
            if uow.refresh_tokens.revoke_if_active(old_hash) == 0:
                if uow.refresh_tokens.exists_hash(old_hash):
                    log.info("rotation lost: record already revoked")
                    return RotationResult.REVOKED
                return RotationResult.NOT_FOUND
            # Raising here rolls back the revoke as well.
            ctx.check(op)
            try:
                uow.refresh_tokens.add(_convert.refresh_record(new_token))
            except IntegrityError as exc:
                if violates(exc, _UQ_TOKEN_HASH) or violates(exc, "refresh_tokens.token_hash"):
                    raise ConflictError("RefreshToken", "token hash already exists") from exc
                raise
            return RotationResult.OK

    def revoke(self, token_hash: bytes, *, ctx: ServiceContext) -> bool:
        ctx.check("sql.sessions.revoke")
        with self._uow(ctx) as uow:
            return uow.refresh_tokens.revoke_if_active(token_hash) == 1
