"""Factory Boy definition for :class:`pvz_auth.models.user.User`."""

from __future__ import annotations

import uuid

from pvz_auth.infra.security.password_hasher import WerkzeugPasswordHasher
from pvz_auth.models.user import User
from pvz_auth.services.auth.dto import UserRole

import factory
from tests.factories import BaseFactory

# Cheap KDF settings: tests hash many passwords
TEST_HASHER = WerkzeugPasswordHasher(method="pbkdf2:sha256:1000")
DEFAULT_PASSWORD = "Passw0rd!"


class UserFactory(BaseFactory):
    """
    Build persisted :class:`pvz_auth.models.user.User` instances.

    Pass ``password=...`` to choose the plaintext; only its hash is stored.
    """

    class Meta:
        model = User

    class Params:
        password = DEFAULT_PASSWORD

    id = factory.LazyFunction(uuid.uuid4)
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    role = UserRole.EMPLOYEE
    password_hash = factory.LazyAttribute(lambda o: TEST_HASHER.hash(o.password))
