"""
Taskforge Backend — User Schemas
==================================

The public shape of a user. There is no password or hash field here, so an
ORM User can be validated straight into UserResponse without leaking it.
"""

import uuid
from typing import Optional

from pydantic import Field, model_validator

from taskforge.schemas.common import ApiModel, UtcDatetime

# Deliberately loose: the mailbox part is not interpreted, and case is kept
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserResponse(ApiModel):
    id: uuid.UUID
    email: str
    name: str
    created_at: UtcDatetime
    updated_at: UtcDatetime


class UpdateUserRequest(ApiModel):
    """PATCH /api/users/me. At least one field is required (checked by UserService)."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[str] = Field(default=None, pattern=EMAIL_PATTERN, max_length=320)

    @model_validator(mode="after")
    def strip_name(self) -> "UpdateUserRequest":
        if self.name is not None:
            self.name = self.name.strip()
        return self
