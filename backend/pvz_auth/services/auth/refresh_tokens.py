"""Opaque refresh-token generation, hashing and client binding."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta

from pvz_auth.services.auth.dto import RefreshToken

# 32 bytes -> 256 bits of entropy per token
TOKEN_BYTES = 32

_FIELD_SEP = b"\n"


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RefreshTokenFactory:
    """
    Generate refresh tokens and derive their storage hash and fingerprint.

    ``hash`` is a plain SHA-256 of the plaintext and only serves as the
    lookup key. ``fingerprint`` is an HMAC-SHA256 keyed by the server secret
    over the plaintext and the client context (user agent, IP); it is the
    binding check and is recomputed from whatever the client presents.

    :param secret: Server-held fingerprint secret.
    :param ttl: Lifetime of newly generated tokens.
    :param clock: Source of "now" (UTC); injectable for tests.
    """

    def __init__(
        self,
        *,
        secret: str | bytes,
        ttl: timedelta,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ValueError("Refresh token secret must not be empty.")
        self._secret = secret.encode() if isinstance(secret, str) else bytes(secret)
        self.ttl = ttl
        self._clock = clock

    def generate(self, user_id: str, user_agent: str, ip: str) -> RefreshToken:
        """Draw a fresh 256-bit token for the given owner and client context."""
        now = self._clock()
        return RefreshToken(
            token=secrets.token_urlsafe(TOKEN_BYTES),
            user_id=str(user_id),
            user_agent=user_agent,
            ip=ip,
            created_at=now,
            expires_at=now + self.ttl,
        )

    @staticmethod
    def hash(plaintext: str) -> bytes:
        """Return the SHA-256 digest of ``plaintext``."""
        return hashlib.sha256(plaintext.encode()).digest()

    def fingerprint(self, token: RefreshToken) -> str:
        """Return the hex binding digest of token, user agent, IP and secret."""
        message = _FIELD_SEP.join(
            (token.token.encode(), token.user_agent.encode(), token.ip.encode())
        )
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def seal(self, token: RefreshToken) -> RefreshToken:
        """Return ``token`` with ``token_hash`` and ``fingerprint`` filled in."""
        return replace(token, token_hash=self.hash(token.token), fingerprint=self.fingerprint(token))

    @staticmethod
    def matches(presented_fingerprint: str, stored_fingerprint: str) -> bool:
        """Constant-time fingerprint comparison."""
        return hmac.compare_digest(presented_fingerprint.encode(), stored_fingerprint.encode())
