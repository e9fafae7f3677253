"""
Taskforge Backend — Task SQLAlchemy Model
===========================================

What:  ORM model for the `tasks` table, the example owned resource.
Who:   Accessed only through ResourceStore, which always filters by `user_id`.

Query Patterns:
    - List a user's tasks newest first:
      WHERE user_id = :owner [AND completed = :flag]
      ORDER BY created_at DESC, id DESC LIMIT :limit OFFSET :offset
      → served by idx_tasks_user_created
    - Single task: WHERE id = :id AND user_id = :owner
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Text, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column

from taskforge.database import Base
from taskforge.models.user import utcnow


class Task(Base):
    """
    A to-do item owned by exactly one user.

    `user_id` is set at creation and never changes. There is no soft delete
    and no version column; concurrent updates are last-write-wins.
    """

    __tablename__ = "tasks"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="Owner; immutable after creation",
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, default=None)

    completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
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
        Index("idx_tasks_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, completed={self.completed})>"
