"""Flask CLI commands: key generation and user bootstrap."""

from __future__ import annotations

import stat

from pvz_auth.core.config import TestingConfig
from pvz_auth.factory import create_app
from pvz_auth.infra.jwt.rsa_token_codec import RSATokenCodec
from pvz_auth.repositories import UserRepository
from pvz_auth.services.auth.dto import UserRole


def _keyless_app(tmp_path):
    attrs = {
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "JWT_PRIVATE_KEY_PATH": str(tmp_path / "keys" / "private.pem"),
        "JWT_PUBLIC_KEY_PATH": str(tmp_path / "keys" / "public.pem"),
        "LOG_LEVEL": "WARNING",
    }
    return create_app(type("CliTestConfig", (TestingConfig,), attrs))


def test_gen_keys_writes_usable_pair(tmp_path):
    app = _keyless_app(tmp_path)
    private_path = tmp_path / "keys" / "private.pem"
    public_path = tmp_path / "keys" / "public.pem"

    with app.app_context():
        result = app.test_cli_runner().invoke(args=["auth", "gen-keys"])

    assert result.exit_code == 0, result.output
    assert stat.S_IMODE(private_path.stat().st_mode) == 0o600
    codec = RSATokenCodec.from_pem_files(private_path, public_path)
    assert codec.get_token_claims(codec.generate_access_token("u-1", "employee")).role == "employee"


def test_gen_keys_refuses_to_overwrite(tmp_path):
    app = _keyless_app(tmp_path)
    with app.app_context():
        runner = app.test_cli_runner()
        assert runner.invoke(args=["auth", "gen-keys"]).exit_code == 0
        again = runner.invoke(args=["auth", "gen-keys"])
        forced = runner.invoke(args=["auth", "gen-keys", "--force"])

    assert again.exit_code != 0
    assert "--force" in again.output
    assert forced.exit_code == 0


def test_create_user(app, session):
    result = app.test_cli_runner().invoke(
        args=[
            "auth",
            "create-user",
            "--email",
            "Boss@Example.com",
            "--role",
            "moderator",
            "--password",
            "long-password",
        ]
    )

    assert result.exit_code == 0, result.output
    assert "boss@example.com" in result.output
    user = UserRepository(session=session).get_by_email("boss@example.com")
    assert user is not None
    assert user.role is UserRole.MODERATOR
    assert user.password_hash != "long-password"


def test_create_user_duplicate_email(app, session):
    args = ["auth", "create-user", "--email", "dup@example.com", "--password", "long-password"]
    runner = app.test_cli_runner()

    assert runner.invoke(args=args).exit_code == 0
    duplicate = runner.invoke(args=args)

    assert duplicate.exit_code == 1
    assert "email already exists" in duplicate.output
