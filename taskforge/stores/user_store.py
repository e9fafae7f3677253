"""
Taskforge Backend — Credential Store
======================================

What:  Persistence for user identities plus password hash/verify.
How:   Wraps one request-scoped AsyncSession and the process-wide
       PasswordHasher. bcrypt work runs in Starlette's threadpool so the
       event loop keeps serving other requests.
Who:   AuthService (login/register) and UserService (profile).

The password hash only ever flows between this store and the ORM row; the
services receive User rows and the response schemas drop the hash.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from taskforge.exceptions import ConflictError, DatabaseError
from taskforge.models.user import User, utcnow
from taskforge.security.passwords import PasswordHasher

logger = logging.getLogger(__name__)

EMAIL_TAKEN_MESSAGE = "User with this email already exists"

# Columns a profile update may touch
UPDATABLE_FIELDS = frozenset({"name", "email"})


class UserStore:
    """Credential Store: user rows keyed by id and by (case-sensitive) email."""

    def __init__(self, db: AsyncSession, hasher: PasswordHasher):
        self.db = db
        self.hasher = hasher

    # ── Passwords ─────────────────────────────────────────────────────────

    async def hash_password(self, plaintext: str) -> str:
        return await run_in_threadpool(self.hasher.hash, plaintext)

    async def verify_password(self, plaintext: str, password_hash: str) -> bool:
        return await run_in_threadpool(self.hasher.verify, plaintext, password_hash)

    # ── Lookups ───────────────────────────────────────────────────────────

    async def find_by_email(self, email: str) -> Optional[User]:
        try:
            result = await self.db.execute(select(User).where(User.email == email).limit(1))
        except SQLAlchemyError as e:
            raise self._wrap("find_by_email", e)
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        try:
            result = await self.db.execute(select(User).where(User.id == user_id))
        except SQLAlchemyError as e:
            raise self._wrap("find_by_id", e)
        return result.scalar_one_or_none()

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create_user(self, email: str, name: str, password_hash: str) -> User:
        """
        Insert a new user.

        Raises:
            ConflictError: the email is already registered. Checked up front,
                and again via the unique index for two concurrent registrations.
        """
        if await self.find_by_email(email) is not None:
            raise ConflictError(message=EMAIL_TAKEN_MESSAGE)

        user = User(email=email, name=name, password_hash=password_hash)
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            # Session is rolled back by get_db_session when this propagates
            raise ConflictError(message=EMAIL_TAKEN_MESSAGE)
        except SQLAlchemyError as e:
            raise self._wrap("create_user", e)

        logger.info("Created user %s", user.id)
        return user

    async def update_user(self, user_id: uuid.UUID, fields: Dict[str, Any]) -> Optional[User]:
        """
        Apply `fields` (name and/or email) to a user.

        Returns None when the user does not exist.

        Raises:
            ConflictError: the new email belongs to another user.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")

        user = await self.find_by_id(user_id)
        if user is None:
            return None

        new_email = fields.get("email")
        if new_email is not None and new_email != user.email:
            existing = await self.find_by_email(new_email)
            if existing is not None:
                raise ConflictError(message=EMAIL_TAKEN_MESSAGE)

        for key, value in fields.items():
            setattr(user, key, value)
        user.updated_at = utcnow()

        try:
            await self.db.flush()
        except IntegrityError:
            raise ConflictError(message=EMAIL_TAKEN_MESSAGE)
        except SQLAlchemyError as e:
            raise self._wrap("update_user", e)

        return user

    @staticmethod
    def _wrap(operation: str, error: SQLAlchemyError) -> DatabaseError:
        logger.error("Database error in UserStore.%s: %s", operation, str(error), exc_info=True)
        return DatabaseError(context={"operation": operation, "error_type": type(error).__name__})
