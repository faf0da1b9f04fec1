from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """Port for one-way password hashing and verification."""

    def hash(self, plain: str) -> str:
        """Return a salted hash of ``plain``. Never returns the input."""

    def compare(self, hashed: str, plain: str) -> bool:
        """
        Check ``plain`` against ``hashed``.

        :returns: ``True`` on match, ``False`` on mismatch.
        :raises ValueError: If ``hashed`` is malformed.
        """
