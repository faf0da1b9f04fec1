"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between stores,
the token codec and the authentication service.

The translation to HTTP responses (RFC 7807) is handled by
``pvz_auth/core/errors.py``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :param constraint_name: Constraint to match (e.g. ``'uq_users_email'``).
    :returns: True if the IntegrityError mentions the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from stores, adapters or services.
    - The API layer translates them to problem responses.
    """

    pass


class OperationTimeout(TimeoutError):
    """Raised when an operation exceeds the deadline of its context."""


# --------------------------------------------------------------------------- #
# Store-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :param detail: Short human-readable explanation.
    """

    entity: str
    detail: str

    def __str__(self) -> str:  # pragma: no cover
        return f"Conflict on {self.entity}: {self.detail}"


# --------------------------------------------------------------------------- #
# Authentication errors
# --------------------------------------------------------------------------- #


class AuthErrorKind(str, Enum):
    """Closed set of outcomes the authentication core reports to callers."""

    WRONG_CREDENTIALS = "wrong credentials"
    INVALID_TOKEN = "invalid jwt"
    EXPIRED_TOKEN = "jwt expired"
    NOT_AUTHENTICATED = "not authenticated"
    NOT_AUTHORIZED = "not authorized"
    EMAIL_ALREADY_EXISTS = "email already exists"
    TOKEN_SIGNING = "failed jwt creation"
    CLAIMS_NOT_PRESENT = "failed to get JWT claims from context"
    UNEXPECTED = "unexpected error"

    def __str__(self) -> str:
        return self.value


class AuthError(ServiceError):
    """
    Authentication failure tagged with an operation id and a kind.

    :param op: Operation identifier, e.g. ``"auth.refresh_tokens"``.
    :param kind: One of :class:`AuthErrorKind`.
    :param cause: Lower-level exception being wrapped, if any.
    """

    def __init__(self, op: str, kind: AuthErrorKind, cause: BaseException | None = None) -> None:
        super().__init__(op, kind)
        self.op = op
        self.kind = kind
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @property
    def is_internal(self) -> bool:
        """True for kinds that must surface as opaque server errors."""
        return self.kind in _INTERNAL_KINDS

    def __str__(self) -> str:
        if self.cause is None:
            return f"{self.op}: {self.kind}"
        return f"{self.op}: {self.kind}: {self.cause}"

    def __repr__(self) -> str:
        return f"AuthError(op={self.op!r}, kind={self.kind.name})"


_INTERNAL_KINDS = frozenset(
    {
        AuthErrorKind.UNEXPECTED,
        AuthErrorKind.TOKEN_SIGNING,
        AuthErrorKind.CLAIMS_NOT_PRESENT,
    }
)
