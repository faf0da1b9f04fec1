"""API v1 blueprint package bundling versioned routes."""

from __future__ import annotations

from flask import Blueprint

API_VERSION = "v1"

# Import blueprints *only here* to keep imports localized and avoid cycles.
from .account import bp as account_bp  # noqa: E402
from .auth import bp as auth_bp  # noqa: E402
from .health import bp as health_bp  # noqa: E402
from .tokens import bp as tokens_bp  # noqa: E402

# Each tuple: (blueprint, url_prefix_relative_to_version)
REGISTRY: list[tuple[Blueprint, str]] = [
    (health_bp, ""),  # -> /api/v1/healthz
    (auth_bp, ""),  # -> /api/v1/login, /register, /dummyLogin
    (tokens_bp, "/tokens"),  # -> /api/v1/tokens/refresh, /logout (refresh cookie path)
    (account_bp, ""),  # -> /api/v1/me, /moderation/ping
]
