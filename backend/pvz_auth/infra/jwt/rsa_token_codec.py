# pvz_auth/infra/jwt/rsa_token_codec.py
from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any
from uuid import uuid4

import jwt
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey
from cryptography.hazmat.primitives.serialization import load_pem_private_key, load_pem_public_key

from pvz_auth.services._shared.errors import AuthError, AuthErrorKind
from pvz_auth.services.auth.dto import AccessTokenClaims

SIGNING_ALGORITHM = "RS256"
# Verification accepts the RSA family only; HMAC and "none" are rejected.
ACCEPTED_ALGORITHMS = ("RS256", "RS384", "RS512")
REQUIRED_CLAIMS = ("exp", "iat", "sub", "jti")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RSATokenCodec:
    """
    Access-token codec backed by PyJWT with an RSA key pair.

    Keys are held as instance fields; build one codec at application start
    (see :meth:`from_pem_files`) and hand it to whoever needs it.

    :param private_key: Signing key.
    :param public_key: Verification key.
    :param access_ttl: Lifetime of issued tokens.
    :param clock: Source of "now" used for ``iat``/``exp``.
    """

    def __init__(
        self,
        private_key: RSAPrivateKey,
        public_key: RSAPublicKey,
        *,
        access_ttl: timedelta = timedelta(minutes=15),
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._private_key = private_key
        self._public_key = public_key
        self.access_ttl = access_ttl
        self._clock = clock

    @classmethod
    def from_pem_files(
        cls,
        private_key_path: str | Path,
        public_key_path: str | Path,
        *,
        access_ttl: timedelta = timedelta(minutes=15),
    ) -> RSATokenCodec:
        """
        Load a PEM key pair from disk.

        :raises ValueError: If either file does not hold an RSA key.
        :raises OSError: If a file cannot be read.
        """
        private_key = load_pem_private_key(Path(private_key_path).read_bytes(), password=None)
        public_key = load_pem_public_key(Path(public_key_path).read_bytes())
        if not isinstance(private_key, RSAPrivateKey) or not isinstance(public_key, RSAPublicKey):
            raise ValueError("JWT keys must be RSA keys in PEM format.")
        return cls(private_key, public_key, access_ttl=access_ttl)

    # ------------------------------ issuing --------------------------------

    def generate_access_token(self, user_id: str, role: str) -> str:
        now = self._clock()
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "role": role,
            "iat": int(now.timestamp()),
            "exp": int((now + self.access_ttl).timestamp()),
            "jti": str(uuid4()),
        }
        try:
            return jwt.encode(payload, self._private_key, algorithm=SIGNING_ALGORITHM)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise AuthError("jwt.generate_access_token", AuthErrorKind.TOKEN_SIGNING, exc) from exc

    # ---------------------------- verification -----------------------------

    def get_token_claims(self, token: str) -> AccessTokenClaims:
        op = "jwt.get_token_claims"
        try:
            payload = jwt.decode(
                token,
                self._public_key,
                algorithms=list(ACCEPTED_ALGORITHMS),
                options={"require": list(REQUIRED_CLAIMS)},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthError(op, AuthErrorKind.EXPIRED_TOKEN, exc) from exc
        except jwt.PyJWTError as exc:
            raise AuthError(op, AuthErrorKind.INVALID_TOKEN, exc) from exc

        role = payload.get("role")
        if not isinstance(role, str) or not role:
            raise AuthError(op, AuthErrorKind.INVALID_TOKEN)

        try:
            return AccessTokenClaims(
                subject=str(payload["sub"]),
                role=role,
                issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=UTC),
                expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
                token_id=str(payload["jti"]),
            )
        except (TypeError, ValueError) as exc:
            raise AuthError(op, AuthErrorKind.INVALID_TOKEN, exc) from exc
