"""SQLAlchemy models; importing this package registers all tables on ``db.metadata``."""

from __future__ import annotations

from .refresh_token import RefreshTokenRecord
from .user import User

__all__ = ["RefreshTokenRecord", "User"]
