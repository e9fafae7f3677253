"""
Taskforge Backend — Auth Service
==================================

What:  Login, registration, token refresh, and "who is calling?" resolution.
How:   Composes the Credential Store (UserStore) with the TokenService.
Who:   Auth routes directly; ResourceService and UserService for identity.

Per-request state machine:
    Anonymous ──login ok────▶ Authenticated(user_id)
    Anonymous ──register ok─▶ Authenticated(user_id)
    Any request with a valid bearer token re-enters Authenticated. Nothing
    is persisted besides the token itself.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from taskforge.exceptions import UnauthenticatedError
from taskforge.models.user import User
from taskforge.security.tokens import IssuedToken, TokenService
from taskforge.stores.user_store import UserStore

logger = logging.getLogger(__name__)

# One message for unknown email and wrong password
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful login or registration."""

    user: User
    token: str
    expires_in: int


class AuthService:
    """Identity operations over a UserStore and a TokenService."""

    def __init__(self, users: UserStore, tokens: TokenService):
        self.users = users
        self.tokens = tokens

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Exchange credentials for a token.

        Raises:
            UnauthenticatedError: unknown email OR wrong password, with the
                same message in both cases.
        """
        user = await self.users.find_by_email(email)
        if user is None or not await self.users.verify_password(password, user.password_hash):
            logger.warning("Failed login attempt")
            raise UnauthenticatedError(message=INVALID_CREDENTIALS_MESSAGE)

        logger.info("User %s logged in", user.id)
        return self._authenticated(user)

    async def register(self, email: str, password: str, name: str) -> AuthResult:
        """
        Create an account and sign the new user in.

        Raises:
            ConflictError: email already registered (from UserStore).
        """
        password_hash = await self.users.hash_password(password)
        user = await self.users.create_user(email=email, name=name, password_hash=password_hash)
        return self._authenticated(user)

    def refresh(self, token: str) -> IssuedToken:
        """New token for the subject of a still-valid token."""
        return self.tokens.refresh(token)

    def resolve_current_user(self, token: Optional[str]) -> uuid.UUID:
        """
        Map a bearer token to the caller's user id.

        Raises:
            UnauthenticatedError: missing token, any verification failure, or a
                subject that is not a user id.
        """
        if not token:
            raise UnauthenticatedError()
        subject = self.tokens.verify(token)
        try:
            return uuid.UUID(subject)
        except ValueError:
            raise UnauthenticatedError()

    def _authenticated(self, user: User) -> AuthResult:
        issued = self.tokens.issue(str(user.id))
        return AuthResult(user=user, token=issued.token, expires_in=issued.expires_in)
