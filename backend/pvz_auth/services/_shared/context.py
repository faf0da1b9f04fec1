"""Request-scoped context carried explicitly through the service layer.

A :class:`ServiceContext` is created once per inbound request by the delivery
layer and passed down the call chain. It carries the correlation id, the
deadline of the current operation and, after authentication, the decoded
access-token claims. Contexts are immutable: every ``with_*`` helper returns
a new instance, so nothing is shared between concurrent requests.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from datetime import timedelta

from pvz_auth.services._shared.errors import AuthError, AuthErrorKind, OperationTimeout
from pvz_auth.services.auth.dto import AccessTokenClaims


@dataclass(frozen=True, slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data.

    :param request_id: Correlation id for logging/tracing.
    :param deadline: ``time.monotonic()`` instant after which work must stop.
    :param claims: Verified access-token claims of the caller, if any.
    """

    request_id: str | None = None
    deadline: float | None = None
    claims: AccessTokenClaims | None = None

    # ------------------------------ deadline -------------------------------

    def with_timeout(self, timeout: timedelta | float) -> ServiceContext:
        """Return a copy whose deadline is at most ``timeout`` from now."""
        seconds = timeout.total_seconds() if isinstance(timeout, timedelta) else float(timeout)
        deadline = time.monotonic() + seconds
        if self.deadline is not None:
            deadline = min(deadline, self.deadline)
        return replace(self, deadline=deadline)

    def remaining(self) -> float | None:
        """Seconds left before the deadline (``None`` when unbounded)."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self, op: str = "context") -> None:
        """
        Fail fast when the deadline has passed.

        :raises OperationTimeout: If no time budget is left.
        """
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise OperationTimeout(f"{op}: deadline exceeded")

    # ------------------------------- claims --------------------------------

    def with_claims(self, claims: AccessTokenClaims) -> ServiceContext:
        return replace(self, claims=claims)


def with_claims(ctx: ServiceContext, claims: AccessTokenClaims) -> ServiceContext:
    """Attach verified claims to ``ctx`` and return the derived context."""
    return ctx.with_claims(claims)


def claims_from(ctx: ServiceContext | None) -> AccessTokenClaims:
    """
    Read the claims attached by the authentication layer.

    :raises AuthError: ``CLAIMS_NOT_PRESENT`` when authentication did not run
        for this request. This is a programming error, not a client failure.
    """
    if ctx is None or ctx.claims is None:
        raise AuthError("context.claims_from", AuthErrorKind.CLAIMS_NOT_PRESENT)
    return ctx.claims


__all__ = ["ServiceContext", "claims_from", "with_claims"]
