"""SQLAlchemy-backed :class:`UserStore`."""

from __future__ import annotations

from collections.abc import Callable
from uuid import UUID

from sqlalchemy.exc import IntegrityError

from pvz_auth.infra.sql import _convert
from pvz_auth.models import User
from pvz_auth.services._shared.context import ServiceContext
from pvz_auth.services._shared.errors import ConflictError, violates
from pvz_auth.services._shared.ports import UserStore
from pvz_auth.services.auth.dto import UserRole, UserView
from pvz_auth.uow import SQLAlchemyUnitOfWork


class SQLUserStore(UserStore):
    """Read and create users through a per-call unit of work."""

    def __init__(
        self, uow_factory: Callable[..., SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork
    ) -> None:
        self._uow_factory = uow_factory

    def get_by_email(self, email: str, *, ctx: ServiceContext) -> UserView | None:
        ctx.check("sql.users.get_by_email")
        with self._uow_factory(statement_timeout=ctx.remaining()) as uow:
            row = uow.users.get_by_email(email)
            return _convert.user_view(row) if row is not None else None

    def create(self, user: UserView, *, ctx: ServiceContext) -> UserView:
        ctx.check("sql.users.create")
        with self._uow_factory(statement_timeout=ctx.remaining()) as uow:
            row = User(id=user.id, email=user.email, password_hash=user.password_hash, role=user.role)
            try:
                uow.users.add(row)
            except IntegrityError as exc:
                # PostgreSQL names the constraint, SQLite names the column.
                if violates(exc, "uq_users_email") or violates(exc, "users.email"):
                    raise ConflictError("User", "email already registered") from exc
                raise
            # created_at is filled by the database default
            uow.session.refresh(row)
            return _convert.user_view(row)

    def role_of(self, user_id: str, ctx: ServiceContext) -> UserRole | None:
        """Return the role of ``user_id``; joins Redis session records to users."""
        ctx.check("sql.users.role_of")
        try:
            key = UUID(str(user_id))
        except ValueError:
            return None
        with self._uow_factory(statement_timeout=ctx.remaining()) as uow:
            row = uow.users.get(key)
            return row.role if row is not None else None
