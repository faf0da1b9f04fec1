# pvz_auth/services/auth/service.py
from __future__ import annotations

import logging
from uuid import uuid4

from pvz_auth.services._shared.base import BaseService
from pvz_auth.services._shared.context import ServiceContext
from pvz_auth.services._shared.errors import AuthError, AuthErrorKind, ConflictError
from pvz_auth.services._shared.ports import (
    AccessTokenCodec,
    PasswordHasher,
    RotationResult,
    SessionStore,
    UserStore,
)
from pvz_auth.services.auth.dto import (
    AccessTokenClaims,
    AuthTokenConfig,
    LoginIn,
    RefreshIn,
    RefreshToken,
    RegisterIn,
    TokenPairOut,
    UserOut,
    UserRole,
    UserView,
)
from pvz_auth.services.auth.refresh_tokens import RefreshTokenFactory

log = logging.getLogger(__name__)


class AuthService(BaseService):
    """
    Authentication lifecycle service (register / login / refresh / logout).

    Access tokens are issued and verified through an :class:`AccessTokenCodec`;
    refresh tokens are opaque values produced by :class:`RefreshTokenFactory`
    and tracked server-side by hash in a :class:`SessionStore`.

    Refresh-token lineage
    ---------------------
    ``Active -> Revoked`` on rotation or logout, ``Active -> Expired`` checked
    lazily when the token is presented. Both end states are terminal: a
    record is never revalidated.

    Every failure of login/refresh is reported as ``WRONG_CREDENTIALS`` without
    saying which check failed; infrastructure problems become ``UNEXPECTED``.
    """

    def __init__(
        self,
        *,
        token_codec: AccessTokenCodec,
        refresh_tokens: RefreshTokenFactory,
        sessions: SessionStore,
        users: UserStore,
        passwords: PasswordHasher,
        token_cfg: AuthTokenConfig | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its collaborators.

        :param token_codec: Signs and verifies access tokens.
        :param refresh_tokens: Generates, hashes and fingerprints refresh tokens.
        :param sessions: Stateful store of refresh records (atomic rotation).
        :param users: Credential lookup / user creation.
        :param passwords: Password hashing and comparison.
        :param token_cfg: Lifetimes and operation timeout.
        :param ctx: Request-scoped context.
        """
        self.cfg = token_cfg or AuthTokenConfig()
        super().__init__(ctx=ctx, timeout=self.cfg.timeout)
        self.tokens = token_codec
        self._refresh_tokens = refresh_tokens
        self.sessions = sessions
        self.users = users
        self.passwords = passwords

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def register_user(self, dto: RegisterIn) -> UserOut:
        """
        Create a user with a hashed password.

        :raises AuthError: ``EMAIL_ALREADY_EXISTS`` on duplicate email.
        """
        op = "auth.register_user"
        ctx = self.operation_context()
        with self.guard(op):
            password_hash = self.passwords.hash(dto.password)
            try:
                user = self.users.create(
                    UserView(
                        id=uuid4(),
                        email=dto.email,
                        password_hash=password_hash,
                        role=dto.role,
                    ),
                    ctx=ctx,
                )
            except ConflictError as exc:
                raise AuthError(op, AuthErrorKind.EMAIL_ALREADY_EXISTS, exc) from exc

        log.info("user registered user_id=%s role=%s", user.id, user.role.value)
        return UserOut(id=user.id, email=user.email, role=user.role)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login_user(self, dto: LoginIn) -> TokenPairOut:
        """
        Authenticate credentials and issue a fresh token pair.

        The refresh record is persisted before the pair is returned, so no
        token ever exists on the client without its server-side row.

        :raises AuthError: ``WRONG_CREDENTIALS`` for unknown email or bad
            password; ``UNEXPECTED`` for signing/persistence failures.
        """
        op = "auth.login_user"
        ctx = self.operation_context()
        with self.guard(op):
            user = self.users.get_by_email(dto.email, ctx=ctx)
            # Unknown email and wrong password are indistinguishable to callers.
            if user is None or not self._password_matches(user, dto.password):
                raise AuthError(op, AuthErrorKind.WRONG_CREDENTIALS)

            access = self.tokens.generate_access_token(str(user.id), user.role.value)
            refresh = self._refresh_tokens.seal(
                self._refresh_tokens.generate(str(user.id), dto.user_agent, dto.ip)
            )
            ctx.check(op)
            self.sessions.save(refresh, ctx=ctx)

        log.info("login succeeded user_id=%s", user.id)
        return TokenPairOut(access_token=access, refresh_token=refresh)

    def dummy_login(self, role: UserRole) -> str:
        """Issue an access token for a throwaway user id with ``role``."""
        op = "auth.dummy_login"
        with self.guard(op):
            return self.tokens.generate_access_token(str(uuid4()), role.value)

    # ------------------------------------------------------------------ #
    # Refresh with atomic rotation
    # ------------------------------------------------------------------ #

    def refresh_tokens(self, dto: RefreshIn) -> TokenPairOut:
        """
        Rotate a refresh token and emit a new token pair.

        Security
        --------
        - The record is found by the hash of the presented plaintext.
        - The fingerprint is recomputed from the *presenting* request's user
          agent and IP and compared in constant time with the stored one.
        - Revoked or expired records fail.
        - The old record is revoked and the new one inserted atomically; if a
          concurrent rotation got there first, this call fails closed.
        """
        op = "auth.refresh_tokens"
        ctx = self.operation_context()
        with self.guard(op):
            stored = self._lookup_presented(op, dto, ctx)
            record = stored.refresh_token

            if record.revoked or record.is_expired(self.now_utc()):
                log.warning("refresh rejected: inactive record user_id=%s", record.user_id)
                raise AuthError(op, AuthErrorKind.WRONG_CREDENTIALS)

            access = self.tokens.generate_access_token(record.user_id, stored.role.value)
            new_refresh = self._refresh_tokens.seal(
                self._refresh_tokens.generate(record.user_id, dto.user_agent, dto.ip)
            )

            ctx.check(op)
            result = self.sessions.revoke_and_insert(record.token_hash, new_refresh, ctx=ctx)
            if result is not RotationResult.OK:
                log.warning(
                    "refresh rejected: rotation result=%s user_id=%s", result.name, record.user_id
                )
                raise AuthError(op, AuthErrorKind.WRONG_CREDENTIALS)

        log.info("refresh token rotated user_id=%s", record.user_id)
        return TokenPairOut(access_token=access, refresh_token=new_refresh)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: RefreshIn) -> None:
        """
        Revoke the presented refresh-token lineage.

        Idempotent: unknown, mismatched or already revoked tokens are ignored.
        """
        op = "auth.logout"
        ctx = self.operation_context()
        with self.guard(op):
            try:
                stored = self._lookup_presented(op, dto, ctx)
            except AuthError as exc:
                if exc.kind is AuthErrorKind.WRONG_CREDENTIALS:
                    return
                raise
            revoked = self.sessions.revoke(stored.refresh_token.token_hash, ctx=ctx)

        log.info("logout user_id=%s revoked=%s", stored.refresh_token.user_id, revoked)

    # ------------------------------------------------------------------ #
    # Access-token verification
    # ------------------------------------------------------------------ #

    def authenticate(self, token: str) -> AccessTokenClaims:
        """
        Verify a bearer access token.

        :raises AuthError: ``NOT_AUTHENTICATED`` for an empty token,
            ``INVALID_TOKEN`` / ``EXPIRED_TOKEN`` from the codec.
        """
        op = "auth.authenticate"
        if not token:
            raise AuthError(op, AuthErrorKind.NOT_AUTHENTICATED)
        try:
            return self.tokens.get_token_claims(token)
        except AuthError as exc:
            if exc.kind in (AuthErrorKind.INVALID_TOKEN, AuthErrorKind.EXPIRED_TOKEN):
                raise AuthError(op, exc.kind, exc) from exc
            raise AuthError(op, AuthErrorKind.UNEXPECTED, exc) from exc

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _password_matches(self, user: UserView, plain: str) -> bool:
        try:
            return bool(self.passwords.compare(user.password_hash, plain))
        except Exception:
            # A corrupt stored hash must not become an oracle; it is a failed login.
            log.warning("password comparison failed user_id=%s", user.id, exc_info=True)
            return False

    def _lookup_presented(self, op: str, dto: RefreshIn, ctx: ServiceContext):
        """
        Resolve the stored record for a presented token and check its binding.

        :raises AuthError: ``WRONG_CREDENTIALS`` if the hash is unknown or the
            fingerprint does not match.
        """
        if not dto.refresh_token:
            raise AuthError(op, AuthErrorKind.WRONG_CREDENTIALS)

        token_hash = self._refresh_tokens.hash(dto.refresh_token)
        stored = self.sessions.find_by_hash(token_hash, ctx=ctx)
        if stored is None:
            log.warning("%s rejected: unknown refresh token", op)
            raise AuthError(op, AuthErrorKind.WRONG_CREDENTIALS)

        now = self.now_utc()
        presented = RefreshToken(
            token=dto.refresh_token,
            user_id=stored.refresh_token.user_id,
            user_agent=dto.user_agent,
            ip=dto.ip,
            created_at=now,
            expires_at=now,
        )
        # NOTE: binding uses the presenting request's user agent and IP, so a
        # client whose IP changes since issuance fails closed.
        if not self._refresh_tokens.matches(
            self._refresh_tokens.fingerprint(presented), stored.refresh_token.fingerprint
        ):
            log.warning("%s rejected: fingerprint mismatch", op)
            raise AuthError(op, AuthErrorKind.WRONG_CREDENTIALS)
        return stored
