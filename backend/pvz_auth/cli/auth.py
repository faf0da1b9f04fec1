"""Flask CLI commands for key material and user bootstrap."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from flask import current_app
from flask.cli import with_appcontext

from pvz_auth.factory import get_auth_components
from pvz_auth.services._shared.errors import AuthError
from pvz_auth.services.auth.dto import RegisterIn, UserRole
from pvz_auth.services.auth.service import AuthService

LOGGER = logging.getLogger(__name__)


@click.group("auth")
def auth_cli() -> None:
    """Authentication maintenance commands."""


@auth_cli.command("gen-keys")
@click.option("--bits", default=2048, show_default=True, type=click.IntRange(min=2048))
@click.option("--force", is_flag=True, help="Overwrite existing key files.")
@with_appcontext
def gen_keys(bits: int, force: bool) -> None:
    """Generate the RSA key pair at JWT_PRIVATE_KEY_PATH / JWT_PUBLIC_KEY_PATH."""
    private_path = Path(current_app.config["JWT_PRIVATE_KEY_PATH"])
    public_path = Path(current_app.config["JWT_PUBLIC_KEY_PATH"])
    if not force and (private_path.exists() or public_path.exists()):
        raise click.UsageError(f"{private_path} or {public_path} exists; pass --force to replace.")

    key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    private_path.parent.mkdir(parents=True, exist_ok=True)
    public_path.parent.mkdir(parents=True, exist_ok=True)
    private_path.write_bytes(private_pem)
    private_path.chmod(0o600)
    public_path.write_bytes(public_pem)
    LOGGER.info("generated RSA-%d key pair", bits)
    click.echo(f"Wrote {private_path} and {public_path}. Restart the app to load them.")


@auth_cli.command("create-user")
@click.option("--email", required=True)
@click.option(
    "--role",
    type=click.Choice([r.value for r in UserRole]),
    default=UserRole.EMPLOYEE.value,
    show_default=True,
)
@click.password_option()
@with_appcontext
def create_user(email: str, role: str, password: str) -> None:
    """Register a user from the command line."""

    c = get_auth_components()
    service = AuthService(
        token_codec=c.token_codec,
        refresh_tokens=c.refresh_tokens,
        sessions=c.sessions,
        users=c.users,
        passwords=c.passwords,
        token_cfg=c.token_cfg,
    )
    try:
        user = service.register_user(RegisterIn(email=email, password=password, role=UserRole(role)))
    except AuthError as exc:
        raise click.ClickException(str(exc.kind)) from exc
    click.echo(f"Created {user.role.value} {user.email} ({user.id})")
