"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pvz_auth.core.extensions import db
from pvz_auth.repositories import RefreshTokenRepository, UserRepository
from pvz_auth.uow.base import UnitOfWork

log = logging.getLogger(__name__)

_ISOLATION_LEVELS = ("READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE", "READ UNCOMMITTED")


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=self.session)
        self.refresh_tokens = RefreshTokenRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    Parameters
    ----------
    session:
        Session to use; defaults to the Flask-scoped ``db.session``.
    isolation_level:
        Optional ``SET TRANSACTION ISOLATION LEVEL`` applied on entry.
    statement_timeout:
        Optional per-transaction statement timeout in seconds.

    Notes
    -----
    *PostgreSQL*: isolation and ``SET LOCAL statement_timeout`` are applied.
    *MySQL/MariaDB*: isolation only.
    *SQLite*: neither is supported; the directives are skipped.
    """

    def __init__(
        self,
        *,
        session: Session | None = None,
        isolation_level: str | None = None,
        statement_timeout: float | None = None,
    ) -> None:
        super().__init__(session=session if session is not None else db.session)
        self.isolation_level = isolation_level
        self.statement_timeout = statement_timeout

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        if self.isolation_level is None and self.statement_timeout is None:
            # No-op: the session is lazily started on the first statement.
            return self

        dialect = self.session.get_bind().dialect.name
        try:
            if self.isolation_level and dialect in ("postgresql", "mysql", "mariadb"):
                iso = self.isolation_level.upper().strip()
                if iso not in _ISOLATION_LEVELS:
                    raise ValueError(f"Unknown isolation level {iso!r}")
                # Must be the first statement of the transaction.
                self.session.execute(text(f"SET TRANSACTION ISOLATION LEVEL {iso}"))
            if self.statement_timeout is not None and dialect == "postgresql":
                millis = max(1, int(self.statement_timeout * 1000))
                self.session.execute(text(f"SET LOCAL statement_timeout = {millis}"))
        except SQLAlchemyError as exc:
            log.warning("SET TRANSACTION directives failed (%s); using session defaults.", exc)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
