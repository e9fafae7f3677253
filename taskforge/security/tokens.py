"""
Taskforge Backend — Bearer Token Service
==========================================

What:  Issues and verifies signed, time-limited JWTs carrying a user id.
How:   PyJWT with a single symmetric key (HS256 by default). Claims:
       `sub` (user id), `iat`, `exp = iat + ttl`.
Who:   Constructed once in create_app() from Settings; shared read-only by
       every request through AuthService.

There is no server-side revocation: a token is valid iff its signature
verifies and it has not expired. Changing JWT_SECRET invalidates all tokens.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from taskforge.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedToken:
    """A freshly signed token and its lifetime."""

    token: str
    expires_in: int
    expires_at: datetime


class TokenService:
    """Stateless JWT issue/verify over one signing key."""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_seconds: int = 7 * 24 * 60 * 60):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl_seconds = ttl_seconds

    def issue(self, subject_id: str, now: Optional[datetime] = None) -> IssuedToken:
        """
        Sign a token for `subject_id` that expires `ttl_seconds` from `now`.

        `now` exists for tests; callers leave it unset.
        """
        issued_at = now or datetime.now(timezone.utc)
        expires_at = issued_at + timedelta(seconds=self.ttl_seconds)
        payload = {
            "sub": str(subject_id),
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(payload, self._secret, algorithm=self.algorithm)
        return IssuedToken(token=token, expires_in=self.ttl_seconds, expires_at=expires_at)

    def verify(self, token: str) -> str:
        """
        Return the subject id embedded in a valid token.

        Raises:
            UnauthenticatedError: bad signature, malformed token, missing
                `sub`, or expired.
        """
        if not token:
            raise UnauthenticatedError()
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired token")
            raise UnauthenticatedError()
        except jwt.InvalidTokenError as e:
            logger.info("Rejected invalid token: %s", type(e).__name__)
            raise UnauthenticatedError()

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise UnauthenticatedError()
        return subject

    def refresh(self, token: str) -> IssuedToken:
        """Issue a new token for the subject of a still-valid `token`."""
        return self.issue(self.verify(token))
