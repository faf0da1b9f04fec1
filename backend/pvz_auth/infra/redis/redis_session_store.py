# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

import redis  # type: ignore[import-untyped]

from pvz_auth.services._shared.context import ServiceContext
from pvz_auth.services._shared.errors import ConflictError
from pvz_auth.services._shared.ports import RotationResult, SessionStore
from pvz_auth.services.auth.dto import RefreshToken, UserRole, UserRoleAndRefreshToken

RoleLookup = Callable[[str, ServiceContext], UserRole | None]


@dataclass(slots=True)
class RedisSessionStore(SessionStore):
    """
    Redis-backed session store with atomic rotation.

    One hash per record under ``rt:<hex token_hash>``. Keys carry no TTL:
    revoked and expired records stay behind like rows of the SQL store, and
    expiry is judged from the stored ``expires_at``. The owner's role is not
    kept in Redis and is resolved through ``role_of`` on lookup.

    :param r: A Redis client (already connected).
    :param role_of: Returns the role of a user id, or ``None`` if unknown;
        called with the caller's context so it honours the same deadline.
    """

    r: redis.Redis
    role_of: RoleLookup

    # -------------------- helpers --------------------

    @staticmethod
    def _k(token_hash: bytes) -> str:
        return f"rt:{token_hash.hex()}"

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        # Naive -> label as UTC (no conversion)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return int(dt.timestamp())

    @classmethod
    def _mapping(cls, token: RefreshToken) -> dict[str, str]:
        return {
            "user_id": token.user_id,
            "fingerprint": token.fingerprint,
            "user_agent": token.user_agent,
            "ip": token.ip,
            "created_at": str(cls._to_ts(token.created_at)),
            "expires_at": str(cls._to_ts(token.expires_at)),
            "revoked": "1" if token.revoked else "0",
        }

    @staticmethod
    def _from_hash(token_hash: bytes, h: dict[bytes, bytes]) -> RefreshToken:
        def _b(key: bytes, default: str = "") -> str:
            v = h.get(key)
            return v.decode() if v is not None else default

        return RefreshToken(
            token="",
            user_id=_b(b"user_id"),
            user_agent=_b(b"user_agent"),
            ip=_b(b"ip"),
            created_at=datetime.fromtimestamp(int(_b(b"created_at", "0")), tz=UTC),
            expires_at=datetime.fromtimestamp(int(_b(b"expires_at", "0")), tz=UTC),
            token_hash=token_hash,
            fingerprint=_b(b"fingerprint"),
            revoked=_b(b"revoked", "0") == "1",
        )

    # -------------------- API ------------------------

    def save(self, token: RefreshToken, *, ctx: ServiceContext) -> None:
        """
        Insert the record *before* the plaintext is handed to the client.

        :raises ConflictError: If a record with the same hash exists.
        """
        op = "redis.sessions.save"
        key = self._k(token.token_hash)
        while True:
            ctx.check(op)
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    if p.exists(key):
                        p.unwatch()
                        raise ConflictError("RefreshToken", "token hash already exists")
                    p.multi()
                    p.hset(key, mapping=self._mapping(token))
                    p.execute()
                return
            except redis.WatchError:
                continue

    def find_by_hash(
        self, token_hash: bytes, *, ctx: ServiceContext
    ) -> UserRoleAndRefreshToken | None:
        ctx.check("redis.sessions.find_by_hash")
        h = self.r.hgetall(self._k(token_hash))
        if not h:
            return None
        record = self._from_hash(token_hash, h)
        role = self.role_of(record.user_id, ctx)
        if role is None:
            return None
        return UserRoleAndRefreshToken(role=role, refresh_token=record)

    def revoke_and_insert(
        self, old_hash: bytes, new_token: RefreshToken, *, ctx: ServiceContext
    ) -> RotationResult:
        """
        Atomically revoke ``old_hash`` and create the new record.

        Uses WATCH/MULTI/EXEC (optimistic locking): if the old record changes
        between the read and EXEC the loop starts over and sees the new state,
        so a concurrent rotation ends up as ``REVOKED``.
        """
        op = "redis.sessions.revoke_and_insert"
        k_old = self._k(old_hash)
        k_new = self._k(new_token.token_hash)

        # Retry loop for optimistic locking in case of concurrent modifications
        while True:
            ctx.check(op)
            try:
                with self.r.pipeline() as p:
                    p.watch(k_old, k_new)

                    revoked = p.hget(k_old, "revoked")
                    if revoked is None:
                        p.unwatch()
                        return RotationResult.NOT_FOUND
                    if revoked.decode() == "1":
                        p.unwatch()
                        return RotationResult.REVOKED
                    if p.exists(k_new):
                        p.unwatch()
                        raise ConflictError("RefreshToken", "token hash already exists")

                    p.multi()
                    p.hset(k_old, "revoked", "1")
                    p.hset(k_new, mapping=self._mapping(new_token))
                    p.execute()
                return RotationResult.OK
            except redis.WatchError:
                # Concurrent modification detected; re-read and decide again
                continue

    def revoke(self, token_hash: bytes, *, ctx: ServiceContext) -> bool:
        ctx.check("redis.sessions.revoke")
        key = self._k(token_hash)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    revoked = p.hget(key, "revoked")
                    if revoked is None or revoked.decode() == "1":
                        p.unwatch()
                        return False
                    p.multi()
                    p.hset(key, "revoked", "1")
                    p.execute()
                return True
            except redis.WatchError:
                continue

    # ------------------------- test helpers -------------------------

    def get(self, token_hash: bytes) -> RefreshToken | None:
        h = self.r.hgetall(self._k(token_hash))
        return self._from_hash(token_hash, h) if h else None
