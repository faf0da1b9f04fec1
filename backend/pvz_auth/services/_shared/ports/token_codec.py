from __future__ import annotations

from typing import Protocol

from pvz_auth.services.auth.dto import AccessTokenClaims


class AccessTokenCodec(Protocol):
    """
    Port for issuing and verifying access tokens.

    Implementations hold their key material as instance state; there is no
    process-wide key registry.
    """

    def generate_access_token(self, user_id: str, role: str) -> str:
        """
        Sign a fresh token for ``user_id`` / ``role``.

        :raises AuthError: ``TOKEN_SIGNING`` if the token cannot be signed.
        """

    def get_token_claims(self, token: str) -> AccessTokenClaims:
        """
        Verify ``token`` and return its claims. Side-effect free.

        :raises AuthError: ``INVALID_TOKEN`` for bad signature, structure or
            algorithm; ``EXPIRED_TOKEN`` for a valid but expired token.
        """
