"""Application factory wiring of the auth components."""

from __future__ import annotations

import fakeredis
import pytest
import redis
from pvz_auth.core.config import DEFAULT_REFRESH_TOKEN_SECRET, TestingConfig
from pvz_auth.factory import create_app, get_auth_components
from pvz_auth.infra.redis.redis_session_store import RedisSessionStore
from pvz_auth.infra.sql.session_store import SQLSessionStore


def _config(private_path, public_path, **overrides):
    attrs = {
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "JWT_PRIVATE_KEY_PATH": str(private_path),
        "JWT_PUBLIC_KEY_PATH": str(public_path),
        "LOG_LEVEL": "WARNING",
        **overrides,
    }
    return type("FactoryTestConfig", (TestingConfig,), attrs)


def test_sql_store_is_the_default(app):
    components = get_auth_components(app)
    assert isinstance(components.sessions, SQLSessionStore)
    assert components.token_cfg.refresh_expires.total_seconds() == app.config["REFRESH_TOKEN_TTL"]


def test_redis_store_selected_by_config(key_files, monkeypatch):
    monkeypatch.setattr(
        redis.Redis, "from_url", staticmethod(lambda url, **kw: fakeredis.FakeRedis())
    )

    app = create_app(_config(*key_files, SESSION_STORE="redis", REDIS_URL="redis://fake:6379/0"))

    assert isinstance(get_auth_components(app).sessions, RedisSessionStore)


def test_redis_store_requires_url(key_files):
    with pytest.raises(RuntimeError, match="REDIS_URL"):
        create_app(_config(*key_files, SESSION_STORE="redis", REDIS_URL=None))


def test_unknown_store_is_rejected(key_files):
    with pytest.raises(ValueError, match="SESSION_STORE"):
        create_app(_config(*key_files, SESSION_STORE="memcached"))


def test_missing_keys_keep_app_bootable(tmp_path):
    app = create_app(_config(tmp_path / "missing.pem", tmp_path / "missing.pub.pem"))

    with pytest.raises(RuntimeError):
        get_auth_components(app)

    response = app.test_client().post("/api/v1/dummyLogin", json={"role": "employee"})
    assert response.status_code == 500
    assert response.get_json()["code"] == "internal_server_error"


def test_production_refuses_default_refresh_secret(key_files):
    with pytest.raises(RuntimeError, match="REFRESH_TOKEN_SECRET"):
        create_app(
            _config(
                *key_files,
                REQUIRE_REFRESH_SECRET=True,
                REFRESH_TOKEN_SECRET=DEFAULT_REFRESH_TOKEN_SECRET,
            )
        )


def test_production_starts_with_private_refresh_secret(key_files):
    app = create_app(
        _config(*key_files, REQUIRE_REFRESH_SECRET=True, REFRESH_TOKEN_SECRET="a-private-secret")
    )
    assert app.config["REFRESH_TOKEN_SECRET"] == "a-private-secret"
