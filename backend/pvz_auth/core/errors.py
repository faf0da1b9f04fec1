"""Centralized JSON (RFC 7807) error handling for the API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from pvz_auth.core.logger import ensure_request_id
from pvz_auth.services._shared.errors import AuthError, AuthErrorKind

log = logging.getLogger(__name__)

#: Authentication outcome -> HTTP status. Kinds missing here are internal (500).
AUTH_STATUS: dict[AuthErrorKind, HTTPStatus] = {
    AuthErrorKind.WRONG_CREDENTIALS: HTTPStatus.BAD_REQUEST,
    AuthErrorKind.INVALID_TOKEN: HTTPStatus.UNAUTHORIZED,
    AuthErrorKind.EXPIRED_TOKEN: HTTPStatus.UNAUTHORIZED,
    AuthErrorKind.NOT_AUTHENTICATED: HTTPStatus.UNAUTHORIZED,
    AuthErrorKind.NOT_AUTHORIZED: HTTPStatus.FORBIDDEN,
    AuthErrorKind.EMAIL_ALREADY_EXISTS: HTTPStatus.CONFLICT,
}


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        413: "payload_too_large",
        415: "unsupported_media_type",
        422: "unprocessable_entity",
        429: "too_many_requests",
        500: "internal_server_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def _as_problem(
    *,
    status: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict.

    :param status: HTTP status code.
    :param code: Stable machine-consumable error code.
    :param message: Human-readable error summary (safe for clients).
    :param details: Optional safe, structured details.
    :returns: Problem+JSON dictionary.
    :rtype: dict
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": message,
        "instance": request.path if request else None,
        "code": code,
    }
    if details:
        problem["details"] = details
    # Always attach correlation id
    problem["request_id"] = ensure_request_id()
    return problem


def _problem_response(problem: dict[str, Any]) -> Response:
    """Return a Flask response with ``application/problem+json`` media type."""
    resp = jsonify(problem)
    resp.mimetype = "application/problem+json"
    return resp


def auth_problem(err: AuthError) -> tuple[dict[str, Any], int]:
    """
    Translate an :class:`AuthError` into a problem dict and status.

    Internal kinds become an opaque 500: neither the kind nor the cause is
    echoed to the client.
    """
    status = AUTH_STATUS.get(err.kind, HTTPStatus.INTERNAL_SERVER_ERROR)
    if status >= 500:
        problem = _as_problem(
            status=status, code="internal_server_error", message="Unexpected error"
        )
    else:
        problem = _as_problem(status=status, code=err.kind.name.lower(), message=err.kind.value)
    return problem, int(status)


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Guarantees RFC 7807 responses for all handled errors.
    - Ensures a correlation ``request_id`` is present on every error.
    - Emits 5xx with ``exc_info`` for traceability; 4xx as warnings.
    """

    @app.errorhandler(AuthError)
    def handle_auth_error(err: AuthError):
        problem, status = auth_problem(err)
        extra = {"op": err.op, "kind": err.kind.name, "status": status}
        if status >= 500:
            log.error(
                "AuthError: op=%s kind=%s request_id=%s",
                err.op,
                err.kind.name,
                problem["request_id"],
                exc_info=err,
                extra=extra,
            )
        else:
            log.warning(
                "AuthError: op=%s kind=%s request_id=%s",
                err.op,
                err.kind.name,
                problem["request_id"],
                extra=extra,
            )
        resp = _problem_response(problem)
        if status == HTTPStatus.UNAUTHORIZED:
            resp.headers["WWW-Authenticate"] = 'Bearer realm="api"'
        return resp, status

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        error_code = _http_status_to_code(status)
        # Werkzeug may provide HTML-ish description; normalize for clients
        message = (err.description or error_code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        problem = _as_problem(status=status, code=error_code, message=message)
        level = log.error if status >= 500 else log.warning
        level(
            "HTTPException: code=%s status=%s detail=%s request_id=%s",
            error_code,
            status,
            message,
            problem.get("request_id"),
        )
        return _problem_response(problem), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        problem = _as_problem(
            status=HTTPStatus.UNPROCESSABLE_ENTITY,
            code="validation_error",
            message="Validation failed",
            details={"errors": err.messages},
        )
        log.warning("ValidationError: request_id=%s", problem.get("request_id"))
        return _problem_response(problem), HTTPStatus.UNPROCESSABLE_ENTITY

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        # E.g., transient DB connectivity outside the service layer (health check)
        problem = _as_problem(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            code="service_unavailable",
            message="Service temporarily unavailable",
        )
        log.error("OperationalError: request_id=%s", problem.get("request_id"), exc_info=True)
        return _problem_response(problem), HTTPStatus.SERVICE_UNAVAILABLE

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        # Unexpected server-side error; never leak internal details
        problem = _as_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            code="internal_server_error",
            message="Unexpected error",
        )
        log.error("Unhandled exception: request_id=%s", problem.get("request_id"), exc_info=True)
        return _problem_response(problem), HTTPStatus.INTERNAL_SERVER_ERROR
