"""Configuration selection and environment parsing."""

from __future__ import annotations

import pytest
from pvz_auth.core.config import (
    DEFAULT_REFRESH_TOKEN_SECRET,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    check_secrets,
    env_bool,
    env_int,
    get_config,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("development", DevelopmentConfig),
        ("Testing", TestingConfig),
        ("production", ProductionConfig),
        ("bogus", DevelopmentConfig),
    ],
)
def test_get_config_from_app_env(monkeypatch, value, expected):
    monkeypatch.setenv("APP_ENV", value)
    assert get_config() is expected


def test_get_config_defaults_to_development(monkeypatch):
    monkeypatch.delenv("APP_ENV", raising=False)
    assert get_config() is DevelopmentConfig


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("1", True), ("YES", True), ("on", True), ("0", False), ("nope", False)],
)
def test_env_bool(monkeypatch, raw, expected):
    monkeypatch.setenv("FLAG", raw)
    assert env_bool("FLAG") is expected


def test_env_bool_default(monkeypatch):
    monkeypatch.delenv("FLAG", raising=False)
    assert env_bool("FLAG", True) is True


def test_env_int(monkeypatch):
    monkeypatch.setenv("TTL", "60")
    assert env_int("TTL", 5) == 60
    monkeypatch.setenv("TTL", " ")
    assert env_int("TTL", 5) == 5
    monkeypatch.setenv("TTL", "soon")
    with pytest.raises(ValueError, match="TTL"):
        env_int("TTL", 5)


def test_production_forces_secure_cookie():
    assert ProductionConfig.REFRESH_COOKIE_SECURE is True
    assert TestingConfig.SESSION_STORE == "sql"


@pytest.mark.parametrize("secret", [DEFAULT_REFRESH_TOKEN_SECRET, "", None])
def test_production_rejects_placeholder_refresh_secret(secret):
    with pytest.raises(RuntimeError, match="REFRESH_TOKEN_SECRET"):
        check_secrets({"REQUIRE_REFRESH_SECRET": True, "REFRESH_TOKEN_SECRET": secret})


def test_private_refresh_secret_passes():
    check_secrets({"REQUIRE_REFRESH_SECRET": True, "REFRESH_TOKEN_SECRET": "s3cr3t-value"})


def test_placeholder_secret_allowed_outside_production():
    assert ProductionConfig.REQUIRE_REFRESH_SECRET is True
    assert DevelopmentConfig.REQUIRE_REFRESH_SECRET is False
    check_secrets(
        {"REQUIRE_REFRESH_SECRET": False, "REFRESH_TOKEN_SECRET": DEFAULT_REFRESH_TOKEN_SECRET}
    )
