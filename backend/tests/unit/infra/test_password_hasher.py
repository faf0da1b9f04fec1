# tests/unit/infra/test_password_hasher.py
from __future__ import annotations

import pytest
from pvz_auth.infra.security.password_hasher import WerkzeugPasswordHasher


@pytest.fixture()
def hasher() -> WerkzeugPasswordHasher:
    return WerkzeugPasswordHasher(method="pbkdf2:sha256:1000")


def test_hash_then_compare(hasher):
    hashed = hasher.hash("s3cret-pass")

    assert hashed != "s3cret-pass"
    assert hashed.startswith("pbkdf2:sha256:1000$")
    assert hasher.compare(hashed, "s3cret-pass") is True
    assert hasher.compare(hashed, "other-pass") is False


def test_hash_is_salted(hasher):
    assert hasher.hash("same") != hasher.hash("same")


def test_empty_password_is_rejected(hasher):
    with pytest.raises(ValueError):
        hasher.hash("")


def test_empty_stored_hash_never_matches(hasher):
    assert hasher.compare("", "anything") is False
