from __future__ import annotations

import threading
from dataclasses import replace
from enum import Enum, auto
from typing import Protocol

from pvz_auth.services._shared.context import ServiceContext
from pvz_auth.services._shared.errors import ConflictError
from pvz_auth.services.auth.dto import RefreshToken, UserRoleAndRefreshToken

from .user_store import InMemoryUserStore


class RotationResult(Enum):
    """Outcome of an atomic revoke-and-insert attempt."""

    OK = auto()
    NOT_FOUND = auto()
    REVOKED = auto()


class SessionStore(Protocol):
    """
    Durable storage of hashed/fingerprinted refresh-token records.

    Records are keyed by ``token_hash`` (unique) and never deleted; a rotated
    or logged-out record stays behind with ``revoked=True`` as an audit trail.
    The plaintext ``RefreshToken.token`` is never persisted.

    Every method takes the caller's :class:`ServiceContext` and MUST stop with
    :class:`~pvz_auth.services._shared.errors.OperationTimeout` once its
    deadline has passed.
    """

    def save(self, token: RefreshToken, *, ctx: ServiceContext) -> None:
        """
        Insert a brand-new, non-revoked record.

        :raises ConflictError: If ``token_hash`` already exists.
        """

    def find_by_hash(
        self, token_hash: bytes, *, ctx: ServiceContext
    ) -> UserRoleAndRefreshToken | None:
        """
        Look up a record joined with its owner's role.

        :returns: The join, or ``None`` if no record (or owner) exists. The
            returned ``RefreshToken.token`` is always empty.
        """

    def revoke_and_insert(
        self, old_hash: bytes, new_token: RefreshToken, *, ctx: ServiceContext
    ) -> RotationResult:
        """
        Atomically revoke ``old_hash`` and insert ``new_token``.

        Both changes happen in one unit or not at all. Only a currently
        non-revoked record can be revoked, so of two concurrent rotations of
        the same record exactly one returns ``OK``.

        :returns: ``OK``, or ``NOT_FOUND`` / ``REVOKED`` with nothing written.
        """

    def revoke(self, token_hash: bytes, *, ctx: ServiceContext) -> bool:
        """Revoke a single record. :returns: True if it was active before."""


class InMemorySessionStore(SessionStore):
    """
    In-memory session store with atomic rotation behavior.

    .. note::
       Uses a threading lock to emulate transactional atomicity in unit tests.
    """

    def __init__(self, users: InMemoryUserStore) -> None:
        self._users = users
        self._by_hash: dict[bytes, RefreshToken] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _strip(token: RefreshToken) -> RefreshToken:
        return replace(token, token="")

    def save(self, token: RefreshToken, *, ctx: ServiceContext) -> None:
        ctx.check("memory.sessions.save")
        with self._lock:
            if token.token_hash in self._by_hash:
                raise ConflictError("RefreshToken", "token hash already exists")
            self._by_hash[token.token_hash] = self._strip(token)

    def find_by_hash(
        self, token_hash: bytes, *, ctx: ServiceContext
    ) -> UserRoleAndRefreshToken | None:
        ctx.check("memory.sessions.find_by_hash")
        record = self._by_hash.get(token_hash)
        if record is None:
            return None
        user = self._users.get(record.user_id)
        if user is None:
            return None
        return UserRoleAndRefreshToken(role=user.role, refresh_token=record)

    def revoke_and_insert(
        self, old_hash: bytes, new_token: RefreshToken, *, ctx: ServiceContext
    ) -> RotationResult:
        ctx.check("memory.sessions.revoke_and_insert")
        with self._lock:
            old = self._by_hash.get(old_hash)
            if old is None:
                return RotationResult.NOT_FOUND
            if old.revoked:
                return RotationResult.REVOKED
            if new_token.token_hash in self._by_hash:
                raise ConflictError("RefreshToken", "token hash already exists")
            self._by_hash[old_hash] = replace(old, revoked=True)
            self._by_hash[new_token.token_hash] = self._strip(new_token)
            return RotationResult.OK

    def revoke(self, token_hash: bytes, *, ctx: ServiceContext) -> bool:
        ctx.check("memory.sessions.revoke")
        with self._lock:
            record = self._by_hash.get(token_hash)
            if record is None or record.revoked:
                return False
            self._by_hash[token_hash] = replace(record, revoked=True)
            return True

    # ------------------------- test helpers -------------------------

    def get(self, token_hash: bytes) -> RefreshToken | None:
        return self._by_hash.get(token_hash)
