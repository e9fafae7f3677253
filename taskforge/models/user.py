"""
Taskforge Backend — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table.
Who:   Read and written only through UserStore; Alembic reads it for migrations.

Table Design:
    - UUID primary key (non-sequential, not enumerable)
    - email: unique, case-sensitive login key
    - password_hash: bcrypt hash; never serialized into a response schema
    - created_at / updated_at: UTC, timezone-aware
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from taskforge.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """
    A registered account.

    Lifecycle:
        1. Created by AuthService.register (password already hashed)
        2. Name/email editable through UserService.update_me
        3. Deleting a user cascades to the tasks it owns
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        comment="Login key; compared case-sensitively",
    )

    name: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash produced by PasswordHasher",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    __table_args__ = (
        Index("uq_users_email", "email", unique=True),
    )

    def __repr__(self) -> str:
        # No email or hash: reprs end up in logs
        return f"<User(id={self.id})>"
