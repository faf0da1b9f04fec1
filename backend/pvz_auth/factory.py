"""Application factory wiring Flask extensions, auth components and blueprints."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from flask import Flask, current_app

from pvz_auth.core.config import BaseConfig, check_secrets, get_config
from pvz_auth.core.logger import configure_logging
from pvz_auth.core.logger import init_app as init_logging
from pvz_auth.infra.jwt.rsa_token_codec import RSATokenCodec
from pvz_auth.infra.security.password_hasher import WerkzeugPasswordHasher
from pvz_auth.infra.sql.session_store import SQLSessionStore
from pvz_auth.infra.sql.user_store import SQLUserStore
from pvz_auth.services._shared.ports import AccessTokenCodec, PasswordHasher, SessionStore, UserStore
from pvz_auth.services.auth.dto import AuthTokenConfig
from pvz_auth.services.auth.refresh_tokens import RefreshTokenFactory

EXTENSION_KEY = "pvz_auth"

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AuthComponents:
    """Process-wide, immutable auth collaborators built once per app."""

    token_codec: AccessTokenCodec
    refresh_tokens: RefreshTokenFactory
    sessions: SessionStore
    users: UserStore
    passwords: PasswordHasher
    token_cfg: AuthTokenConfig


def build_auth_components(app: Flask) -> AuthComponents:
    """
    Load keys and build the stores selected by configuration.

    :raises OSError: If the key files cannot be read.
    :raises ValueError: If the keys are not RSA, or the store name is unknown.
    """
    cfg = app.config
    token_cfg = AuthTokenConfig(
        access_expires=timedelta(seconds=int(cfg["ACCESS_TOKEN_TTL"])),
        refresh_expires=timedelta(seconds=int(cfg["REFRESH_TOKEN_TTL"])),
        timeout=timedelta(seconds=int(cfg["APP_TIMEOUT"])),
    )
    codec = RSATokenCodec.from_pem_files(
        cfg["JWT_PRIVATE_KEY_PATH"],
        cfg["JWT_PUBLIC_KEY_PATH"],
        access_ttl=token_cfg.access_expires,
    )
    refresh_tokens = RefreshTokenFactory(
        secret=cfg["REFRESH_TOKEN_SECRET"], ttl=token_cfg.refresh_expires
    )

    users = SQLUserStore()
    store_name = str(cfg.get("SESSION_STORE", "sql")).lower()
    sessions: SessionStore
    if store_name == "sql":
        sessions = SQLSessionStore()
    elif store_name == "redis":
        from pvz_auth.core.extensions import get_redis
        from pvz_auth.infra.redis.redis_session_store import RedisSessionStore

        sessions = RedisSessionStore(r=get_redis(app), role_of=users.role_of)
    else:
        raise ValueError(f"Unknown SESSION_STORE {store_name!r}; expected 'sql' or 'redis'.")

    return AuthComponents(
        token_codec=codec,
        refresh_tokens=refresh_tokens,
        sessions=sessions,
        users=users,
        passwords=WerkzeugPasswordHasher(),
        token_cfg=token_cfg,
    )


def get_auth_components(app: Flask | None = None) -> AuthComponents:
    """Return the components built for ``app`` (default: the current app)."""
    target = app if app is not None else current_app
    components = target.extensions.get(EXTENSION_KEY)
    if components is None:
        raise RuntimeError("Auth components are not initialized (missing JWT keys?).")
    return components


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application."""

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)
    check_secrets(app.config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Proxy headers if running behind a reverse proxy
    from pvz_auth.core import proxy

    proxy.init_app(app)

    from pvz_auth.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from pvz_auth.core import cors

    cors.init_app(app)

    try:
        app.extensions[EXTENSION_KEY] = build_auth_components(app)
    except FileNotFoundError as exc:
        # Lets `flask auth gen-keys` run on a fresh checkout; auth routes answer 500.
        log.error("JWT key pair not found (%s); run `flask auth gen-keys`.", exc.filename)

    from pvz_auth.api import init_app as init_api

    init_api(app)

    from pvz_auth.core import errors

    errors.init_app(app)

    from pvz_auth import cli as app_cli

    app_cli.init_app(app)

    return app
