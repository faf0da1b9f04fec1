"""Password hashing adapter built on :mod:`werkzeug.security`."""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash


class WerkzeugPasswordHasher:
    """
    Hash and verify passwords with werkzeug's salted KDF helpers.

    :param method: Hash method string understood by werkzeug
        (e.g. ``"scrypt"`` or ``"pbkdf2:sha256"``).
    """

    def __init__(self, method: str = "scrypt") -> None:
        self.method = method

    def hash(self, plain: str) -> str:
        if not isinstance(plain, str) or not plain:
            raise ValueError("Password must be a non-empty string.")
        return generate_password_hash(plain, method=self.method)

    def compare(self, hashed: str, plain: str) -> bool:
        if not hashed:
            return False
        # ``check_password_hash`` is untyped; coerce for mypy.
        return bool(check_password_hash(hashed, plain))
