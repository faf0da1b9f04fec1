# pvz_auth/services/_shared/base.py
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime, timedelta

from pvz_auth.services._shared.context import ServiceContext
from pvz_auth.services._shared.errors import AuthError, AuthErrorKind, OperationTimeout

log = logging.getLogger(__name__)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Hold the request-scoped :class:`ServiceContext`.
    * Derive a per-operation context bounded by the configured timeout.
    * Guarantee that no raw infrastructure error leaves a service operation:
      everything unexpected is logged and wrapped as ``UNEXPECTED``.

    Notes
    -----
    - Services never talk HTTP; the API layer translates :class:`AuthError`.
    - Stores own their transactions; services only orchestrate.
    """

    DEFAULT_TIMEOUT = timedelta(seconds=5)

    def __init__(
        self, *, ctx: ServiceContext | None = None, timeout: timedelta | None = None
    ) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context (request id, claims).
        :type ctx: ServiceContext | None
        :param timeout: Deadline applied to each public operation.
        :type timeout: timedelta | None
        """
        self.ctx = ctx or ServiceContext()
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    # -------------------------- Context helpers -----------------------------

    def operation_context(self) -> ServiceContext:
        """Return the caller's context bounded by this service's timeout."""
        return self.ctx.with_timeout(self.timeout)

    @staticmethod
    def now_utc() -> datetime:
        return datetime.now(UTC)

    # -------------------------- Error handling ------------------------------

    @contextmanager
    def guard(self, op: str) -> Iterator[None]:
        """
        Wrap the body of operation ``op`` with the service error policy.

        * :class:`AuthError` raised for ``op`` itself passes through untouched.
        * Anything else (adapter errors, signing failures, timeouts,
          persistence errors) is logged with full detail and re-raised as
          ``AuthError(op, UNEXPECTED)``.
        """
        try:
            yield
        except AuthError as exc:
            if exc.op == op:
                raise
            log.error(
                "%s failed: %r request_id=%s", op, exc, self.ctx.request_id, exc_info=True
            )
            raise AuthError(op, AuthErrorKind.UNEXPECTED, exc) from exc
        except OperationTimeout as exc:
            log.error("%s timed out after %s request_id=%s", op, self.timeout, self.ctx.request_id)
            raise AuthError(op, AuthErrorKind.UNEXPECTED, exc) from exc
        except Exception as exc:
            log.error(
                "%s failed unexpectedly request_id=%s", op, self.ctx.request_id, exc_info=True
            )
            raise AuthError(op, AuthErrorKind.UNEXPECTED, exc) from exc
