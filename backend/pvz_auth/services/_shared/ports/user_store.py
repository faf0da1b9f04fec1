from __future__ import annotations

import threading
from dataclasses import replace
from datetime import UTC, datetime
from typing import Protocol

from pvz_auth.services._shared.context import ServiceContext
from pvz_auth.services._shared.errors import ConflictError
from pvz_auth.services.auth.dto import UserView


class UserStore(Protocol):
    """
    Credential storage owned outside the authentication core.

    Lookups return ``None`` for unknown users; callers decide how to report it.
    """

    def get_by_email(self, email: str, *, ctx: ServiceContext) -> UserView | None:
        """Fetch a user by normalized email."""

    def create(self, user: UserView, *, ctx: ServiceContext) -> UserView:
        """
        Persist a new user.

        :raises ConflictError: If the email is already registered.
        """


class InMemoryUserStore(UserStore):
    """Dictionary-backed user store for unit tests."""

    def __init__(self) -> None:
        self._by_email: dict[str, UserView] = {}
        self._by_id: dict[str, UserView] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _norm(email: str) -> str:
        return email.strip().lower()

    def get_by_email(self, email: str, *, ctx: ServiceContext) -> UserView | None:
        ctx.check("memory.users.get_by_email")
        return self._by_email.get(self._norm(email))

    def create(self, user: UserView, *, ctx: ServiceContext) -> UserView:
        ctx.check("memory.users.create")
        key = self._norm(user.email)
        with self._lock:
            if key in self._by_email:
                raise ConflictError("User", "email already registered")
            stored = replace(user, email=key, created_at=user.created_at or datetime.now(UTC))
            self._by_email[key] = stored
            self._by_id[str(stored.id)] = stored
            return stored

    def get(self, user_id: str) -> UserView | None:
        """Fetch a user by id (test helper, not part of the port)."""
        return self._by_id.get(str(user_id))
