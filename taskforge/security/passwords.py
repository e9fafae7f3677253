"""
Password hashing.

Thin wrapper around a passlib `CryptContext` configured for bcrypt with a
tunable work factor. Hashes are salted per call, so hashing the same password
twice yields different strings.
"""

import logging
from typing import Optional

from passlib.context import CryptContext
from passlib.exc import PasswordValueError

from taskforge.exceptions import ValidationError

logger = logging.getLogger(__name__)

# bcrypt only reads this many bytes; longer input would be silently truncated
BCRYPT_MAX_BYTES = 72


def password_problem(plaintext: str) -> Optional[str]:
    """Why bcrypt cannot take `plaintext` as-is, or None if it can."""
    if "\x00" in plaintext:
        return "Password must not contain NUL characters"
    if len(plaintext.encode("utf-8")) > BCRYPT_MAX_BYTES:
        return f"Password must be at most {BCRYPT_MAX_BYTES} bytes"
    return None


class PasswordHasher:
    """One-way, salted bcrypt hashing with constant-time verification."""

    def __init__(self, rounds: int = 10):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, plaintext: str) -> str:
        """
        Raises:
            ValidationError: NUL characters, or longer than bcrypt's 72 bytes.
        """
        problem = password_problem(plaintext)
        if problem:
            raise ValidationError(message=problem, field="password")
        try:
            return self._context.hash(plaintext)
        except PasswordValueError as e:
            raise ValidationError(message=str(e), field="password")

    def verify(self, plaintext: str, password_hash: str) -> bool:
        """
        True iff `plaintext` matches `password_hash`.

        A wrong password returns False, as does one bcrypt could never have
        hashed (NUL characters, over 72 bytes). So does a hash passlib cannot
        identify (corrupt row, foreign scheme); that case is logged.
        """
        if password_problem(plaintext):
            return False
        try:
            return self._context.verify(plaintext, password_hash)
        except PasswordValueError:
            return False
        except ValueError:
            logger.warning("Stored password hash is not a recognised bcrypt hash")
            return False
