"""Shared API helpers: authentication decorators, service wiring and cookies."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from pvz_auth.core.logger import ensure_request_id
from pvz_auth.factory import get_auth_components
from pvz_auth.services._shared.context import ServiceContext, claims_from, with_claims
from pvz_auth.services._shared.errors import AuthError, AuthErrorKind
from pvz_auth.services.auth.dto import RefreshToken, UserRole
from pvz_auth.services.auth.service import AuthService

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "bearer "


# ------------------------------ Context ------------------------------------


def current_context() -> ServiceContext:
    """Return the per-request :class:`ServiceContext`, creating it on first use."""
    ctx = g.get("service_ctx")
    if ctx is None:
        ctx = ServiceContext(request_id=ensure_request_id())
        g.service_ctx = ctx
    return ctx


def client_context() -> tuple[str, str]:
    """Return ``(user_agent, ip)`` of the current request."""
    return request.headers.get("User-Agent", ""), request.remote_addr or ""


def get_auth_service() -> AuthService:
    """Build an :class:`AuthService` bound to this request's context."""
    c = get_auth_components()
    return AuthService(
        token_codec=c.token_codec,
        refresh_tokens=c.refresh_tokens,
        sessions=c.sessions,
        users=c.users,
        passwords=c.passwords,
        token_cfg=c.token_cfg,
        ctx=current_context(),
    )


# ---------------------------- Authentication --------------------------------


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        return ""
    return header[len(BEARER_PREFIX) :].strip()


def require_auth(func: F) -> F:
    """Verify the bearer access token and attach its claims to the request context."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        claims = get_auth_service().authenticate(_bearer_token())
        g.service_ctx = with_claims(current_context(), claims)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_roles(*roles: UserRole) -> Callable[[F], F]:
    """Allow the request only if the caller's role is one of ``roles``.

    Must be applied *below* :func:`require_auth`.
    """
    allowed = {r.value for r in roles}

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            claims = claims_from(current_context())
            if claims.role not in allowed:
                raise AuthError("api.require_roles", AuthErrorKind.NOT_AUTHORIZED)
            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


# ------------------------------ Cookies ------------------------------------


def refresh_cookie_path() -> str:
    return f"{current_app.config.get('API_BASE_PREFIX', '/api')}/v1/tokens"


def read_refresh_cookie() -> str:
    return request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"], "")


def set_refresh_cookie(response: Response, token: RefreshToken) -> Response:
    """Attach the refresh plaintext as an HttpOnly, SameSite=Strict cookie."""
    remaining = int((token.expires_at - datetime.now(UTC)).total_seconds())
    response.set_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        token.token,
        max_age=max(0, remaining),
        path=refresh_cookie_path(),
        secure=bool(current_app.config.get("REFRESH_COOKIE_SECURE", True)),
        httponly=True,
        samesite="Strict",
    )
    return response


def clear_refresh_cookie(response: Response) -> Response:
    response.delete_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        path=refresh_cookie_path(),
        secure=bool(current_app.config.get("REFRESH_COOKIE_SECURE", True)),
        httponly=True,
        samesite="Strict",
    )
    return response


# ------------------------------ Responses ----------------------------------


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def no_store(response: Response) -> Response:
    """Forbid caching of responses that carry credentials."""
    response.headers["Cache-Control"] = "no-store"
    response.headers["Pragma"] = "no-cache"
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
