"""User model: login identity and role."""

from __future__ import annotations

import uuid

from sqlalchemy import Enum as SAEnum
from sqlalchemy import String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, validates

from pvz_auth.core.extensions import db
from pvz_auth.services.auth.dto import UserRole

from .base import CreatedAtMixin, ReprMixin


class User(ReprMixin, CreatedAtMixin, db.Model):
    """
    Authentication identity of a pickup-point backend user.

    Fields
    ------
    id : uuid.UUID
        Primary key, generated by the application.
    email : str
        Login email. Stored normalized (lowercase, trimmed).
    password_hash : str
        Hash produced by the password hasher; the raw password never reaches
        this model.
    role : UserRole
        ``employee`` or ``moderator``.
    created_at : datetime
        Creation timestamp (from mixin).
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SAEnum(
            UserRole,
            name="user_role",
            values_callable=lambda enum: [member.value for member in enum],
            native_enum=False,
            length=16,
        ),
        nullable=False,
    )

    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v
