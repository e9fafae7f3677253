"""
Taskforge Backend — Auth Request/Response Schemas
===================================================

Login only checks that a password was sent. The 8-character minimum and the
bcrypt limits (no NUL characters, at most 72 UTF-8 bytes) apply at
registration; enforcing them on login would turn some bad-credential
attempts into 400s and reveal the policy to the caller.
"""

from pydantic import Field, field_validator

from taskforge.schemas.common import ApiModel
from taskforge.schemas.user import EMAIL_PATTERN, UserResponse
from taskforge.security.passwords import password_problem

PASSWORD_MIN_LENGTH = 8


class LoginRequest(ApiModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    password: str = Field(min_length=1, max_length=128)


class RegisterRequest(ApiModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=320)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=72)
    name: str = Field(min_length=1, max_length=200)

    @field_validator("password")
    @classmethod
    def bcrypt_compatible(cls, v: str) -> str:
        problem = password_problem(v)
        if problem:
            raise ValueError(problem)
        return v


class AuthResponse(ApiModel):
    """Returned by login and register."""
    user: UserResponse
    token: str = Field(description="Bearer token for the Authorization header")
    expires_in: int = Field(description="Token lifetime in seconds")


class RefreshTokenRequest(ApiModel):
    token: str = Field(min_length=1)


class RefreshTokenResponse(ApiModel):
    token: str
    expires_in: int
