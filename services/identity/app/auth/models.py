"""
Identity service — SQLAlchemy ORM models for the auth domain.

Tables owned by this module:
  - users    Accounts: phone + email identifiers, password hash, role

Types are dialect-neutral (``sa.Uuid``) so the same models run on
PostgreSQL in production and SQLite in tests.
"""
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from shared.constants import Role
from shared.database.postgres import Base


class User(Base):
    __tablename__ = "users"

    # ── Primary key ──────────────────────────────────────────────────────────
    id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid(),
        primary_key=True,
        default=uuid.uuid4,
    )

    # ── Authentication identifiers ────────────────────────────────────────────
    # Digits only, country-prefixed (see app.auth.phone)
    phone_number: Mapped[str] = mapped_column(
        sa.String(20), unique=True, nullable=False, index=True
    )
    # Stored lower-case; uniqueness is enforced here and checked before insert
    email: Mapped[str] = mapped_column(
        sa.String(255), unique=True, nullable=False, index=True
    )
    password_hash: Mapped[str] = mapped_column(sa.String(255), nullable=False)

    # ── Profile ──────────────────────────────────────────────────────────────
    name: Mapped[str] = mapped_column(sa.String(150), nullable=False)
    role: Mapped[Role] = mapped_column(
        sa.Enum(
            Role,
            name="userrole",
            values_callable=lambda e: [x.value for x in e],
        ),
        nullable=False,
        default=Role.USER,
        server_default=sa.text("'user'"),
    )

    # ── Account flags ─────────────────────────────────────────────────────────
    is_active: Mapped[bool] = mapped_column(
        sa.Boolean(),
        nullable=False,
        default=True,
        server_default=sa.true(),
    )
    last_login_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    # ── Timestamps ────────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} role={self.role.value}>"
