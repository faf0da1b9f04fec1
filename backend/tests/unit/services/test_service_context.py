# tests/unit/services/test_service_context.py
from __future__ import annotations

import time
from datetime import UTC, datetime, timedelta

import pytest
from pvz_auth.services._shared.base import BaseService
from pvz_auth.services._shared.context import ServiceContext, claims_from, with_claims
from pvz_auth.services._shared.errors import (
    AuthError,
    AuthErrorKind,
    OperationTimeout,
)
from pvz_auth.services.auth.dto import AccessTokenClaims


def _claims() -> AccessTokenClaims:
    now = datetime.now(UTC)
    return AccessTokenClaims(
        subject="8b9d3c1e-0000-4000-8000-000000000001",
        role="moderator",
        issued_at=now,
        expires_at=now + timedelta(minutes=15),
        token_id="jti-1",
    )


# ------------------------------- Claims ----------------------------------- #
def test_claims_round_trip_through_context():
    claims = _claims()
    base = ServiceContext(request_id="req-1")

    ctx = with_claims(base, claims)

    assert claims_from(ctx) is claims
    assert ctx.request_id == "req-1"
    # The base context is left untouched.
    assert base.claims is None


@pytest.mark.parametrize("ctx", [None, ServiceContext()], ids=["no-context", "no-claims"])
def test_claims_from_without_claims(ctx):
    with pytest.raises(AuthError) as excinfo:
        claims_from(ctx)
    assert excinfo.value.kind is AuthErrorKind.CLAIMS_NOT_PRESENT
    assert excinfo.value.is_internal


# ------------------------------ Deadlines --------------------------------- #
def test_unbounded_context_never_times_out():
    ctx = ServiceContext()
    assert ctx.remaining() is None
    ctx.check("noop")


def test_with_timeout_keeps_the_earlier_deadline():
    outer = ServiceContext().with_timeout(timedelta(seconds=1))
    inner = outer.with_timeout(60)

    assert inner.deadline == outer.deadline
    assert 0 < inner.remaining() <= 1


def test_check_raises_once_deadline_passed():
    ctx = ServiceContext(deadline=time.monotonic() - 0.01)

    assert ctx.remaining() == 0.0
    with pytest.raises(OperationTimeout, match="store.save"):
        ctx.check("store.save")


# ------------------------------ BaseService ------------------------------- #
class _Svc(BaseService):
    def run(self, exc: Exception) -> None:
        with self.guard("svc.run"):
            raise exc


def test_guard_passes_own_auth_errors_through():
    own = AuthError("svc.run", AuthErrorKind.WRONG_CREDENTIALS)
    with pytest.raises(AuthError) as excinfo:
        _Svc().run(own)
    assert excinfo.value is own


@pytest.mark.parametrize(
    "exc",
    [
        RuntimeError("boom"),
        OperationTimeout("late"),
        AuthError("jwt.generate_access_token", AuthErrorKind.TOKEN_SIGNING),
    ],
    ids=["runtime", "timeout", "foreign-auth-error"],
)
def test_guard_wraps_everything_else_as_unexpected(exc):
    with pytest.raises(AuthError) as excinfo:
        _Svc(ctx=ServiceContext(request_id="r")).run(exc)
    assert excinfo.value.op == "svc.run"
    assert excinfo.value.kind is AuthErrorKind.UNEXPECTED
    assert excinfo.value.__cause__ is exc
