# tests/unit/infra/test_rsa_token_codec.py
from __future__ import annotations

import base64
import hashlib
import hmac
import json
from datetime import UTC, datetime, timedelta

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from pvz_auth.infra.jwt.rsa_token_codec import RSATokenCodec
from pvz_auth.services._shared.errors import AuthError, AuthErrorKind

USER_ID = "3f0e8a52-5b7c-4c4e-9a53-1f6a2d1c0b11"


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _segment(obj: dict) -> str:
    return _b64(json.dumps(obj, separators=(",", ":")).encode())


def _claims_payload(**overrides) -> dict:
    now = int(datetime.now(UTC).timestamp())
    payload = {"sub": USER_ID, "role": "employee", "iat": now, "exp": now + 600, "jti": "abc"}
    payload.update(overrides)
    return {k: v for k, v in payload.items() if v is not None}


def _assert_kind(excinfo: pytest.ExceptionInfo[AuthError], kind: AuthErrorKind) -> None:
    assert excinfo.value.kind is kind
    assert excinfo.value.op == "jwt.get_token_claims"


# ------------------------------ Round trip -------------------------------- #
def test_generated_token_verifies_with_expected_claims(codec):
    token = codec.generate_access_token(USER_ID, "moderator")
    claims = codec.get_token_claims(token)

    assert claims.subject == USER_ID
    assert claims.role == "moderator"
    assert claims.expires_at - claims.issued_at == timedelta(minutes=15)
    assert claims.token_id
    assert jwt.get_unverified_header(token)["alg"] == "RS256"


def test_each_token_gets_a_distinct_jti(codec):
    a = codec.get_token_claims(codec.generate_access_token(USER_ID, "employee"))
    b = codec.get_token_claims(codec.generate_access_token(USER_ID, "employee"))
    assert a.token_id != b.token_id


def test_ttl_is_configurable(rsa_private_key):
    codec = RSATokenCodec(
        rsa_private_key, rsa_private_key.public_key(), access_ttl=timedelta(minutes=1)
    )
    claims = codec.get_token_claims(codec.generate_access_token(USER_ID, "employee"))
    assert claims.expires_at - claims.issued_at == timedelta(minutes=1)


# ------------------------------- Rejections -------------------------------- #
def test_expired_token(rsa_private_key, codec):
    issued_earlier = RSATokenCodec(
        rsa_private_key,
        rsa_private_key.public_key(),
        clock=lambda: datetime.now(UTC) - timedelta(hours=1),
    )
    token = issued_earlier.generate_access_token(USER_ID, "employee")

    with pytest.raises(AuthError) as excinfo:
        codec.get_token_claims(token)
    _assert_kind(excinfo, AuthErrorKind.EXPIRED_TOKEN)


def test_tampered_payload(codec):
    header, _, signature = codec.generate_access_token(USER_ID, "employee").split(".")
    forged = f"{header}.{_segment(_claims_payload(role='moderator'))}.{signature}"

    with pytest.raises(AuthError) as excinfo:
        codec.get_token_claims(forged)
    _assert_kind(excinfo, AuthErrorKind.INVALID_TOKEN)


def test_hmac_token_signed_with_public_key_is_rejected(rsa_private_key, codec):
    public_pem = rsa_private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    signing_input = f"{_segment({'alg': 'HS256', 'typ': 'JWT'})}.{_segment(_claims_payload())}"
    signature = hmac.new(public_pem, signing_input.encode(), hashlib.sha256).digest()

    with pytest.raises(AuthError) as excinfo:
        codec.get_token_claims(f"{signing_input}.{_b64(signature)}")
    _assert_kind(excinfo, AuthErrorKind.INVALID_TOKEN)


def test_unsigned_token_is_rejected(codec):
    token = f"{_segment({'alg': 'none', 'typ': 'JWT'})}.{_segment(_claims_payload())}."

    with pytest.raises(AuthError) as excinfo:
        codec.get_token_claims(token)
    _assert_kind(excinfo, AuthErrorKind.INVALID_TOKEN)


def test_token_from_another_key_is_rejected(codec):
    other = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    token = jwt.encode(_claims_payload(), other, algorithm="RS256")

    with pytest.raises(AuthError) as excinfo:
        codec.get_token_claims(token)
    _assert_kind(excinfo, AuthErrorKind.INVALID_TOKEN)


@pytest.mark.parametrize(
    "overrides",
    [{"role": None}, {"role": ""}, {"jti": None}, {"sub": None}, {"exp": None}],
    ids=["no-role", "empty-role", "no-jti", "no-sub", "no-exp"],
)
def test_missing_claims(rsa_private_key, codec, overrides):
    token = jwt.encode(_claims_payload(**overrides), rsa_private_key, algorithm="RS256")

    with pytest.raises(AuthError) as excinfo:
        codec.get_token_claims(token)
    _assert_kind(excinfo, AuthErrorKind.INVALID_TOKEN)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_tokens(codec, token):
    with pytest.raises(AuthError) as excinfo:
        codec.get_token_claims(token)
    _assert_kind(excinfo, AuthErrorKind.INVALID_TOKEN)


# ------------------------------ Key loading ------------------------------- #
def test_from_pem_files(key_files):
    private_path, public_path = key_files
    codec = RSATokenCodec.from_pem_files(
        private_path, public_path, access_ttl=timedelta(minutes=5)
    )
    claims = codec.get_token_claims(codec.generate_access_token(USER_ID, "employee"))
    assert claims.expires_at - claims.issued_at == timedelta(minutes=5)


def test_from_pem_files_rejects_non_rsa_keys(tmp_path):
    key = ec.generate_private_key(ec.SECP256R1())
    private_path = tmp_path / "ec.pem"
    public_path = tmp_path / "ec.pub.pem"
    private_path.write_bytes(
        key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    public_path.write_bytes(
        key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )

    with pytest.raises(ValueError):
        RSATokenCodec.from_pem_files(private_path, public_path)


def test_from_pem_files_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        RSATokenCodec.from_pem_files(tmp_path / "nope.pem", tmp_path / "nope.pub")
