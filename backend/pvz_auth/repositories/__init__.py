"""Repository package exposing persistence-layer access for the models."""

from __future__ import annotations

from pvz_auth.repositories.base import BaseRepository
from pvz_auth.repositories.refresh_token import RefreshTokenRepository
from pvz_auth.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
