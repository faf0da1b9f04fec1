"""
pvz_auth.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts the
authentication service depends on.

Modules
-------
- :mod:`token_codec`:
    Defines :class:`~.AccessTokenCodec`: signing and verification of access tokens.

- :mod:`session_store`:
    Defines :class:`~.SessionStore` and :class:`~.RotationResult`: persistence
    of hashed refresh-token records with atomic revoke-and-insert.

- :mod:`user_store`:
    Defines :class:`~.UserStore`: credential lookup and user creation.

- :mod:`password_hasher`:
    Defines :class:`~.PasswordHasher`: one-way password hashing.

Concrete adapters (SQLAlchemy, Redis, werkzeug, PyJWT) live under
``pvz_auth.infra``; the in-memory doubles here back the unit tests.
"""

from __future__ import annotations

from .password_hasher import PasswordHasher
from .session_store import InMemorySessionStore, RotationResult, SessionStore
from .token_codec import AccessTokenCodec
from .user_store import InMemoryUserStore, UserStore

__all__ = [
    "AccessTokenCodec",
    "PasswordHasher",
    "SessionStore",
    "RotationResult",
    "InMemorySessionStore",
    "UserStore",
    "InMemoryUserStore",
]
