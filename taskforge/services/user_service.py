"""
Profile operations for the authenticated user (`/api/users/me`).
"""

import logging
from typing import Any, Mapping, Optional

from taskforge.exceptions import NotFoundError, ValidationError
from taskforge.models.user import User
from taskforge.services.auth_service import AuthService
from taskforge.stores.user_store import UserStore

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, auth: AuthService, users: UserStore):
        self.auth = auth
        self.users = users

    async def get_me(self, token: Optional[str]) -> User:
        """The caller's own record; NotFound if it was deleted after the token was issued."""
        user_id = self.auth.resolve_current_user(token)
        user = await self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError(resource="User")
        return user

    async def update_me(self, token: Optional[str], fields: Mapping[str, Any]) -> User:
        user_id = self.auth.resolve_current_user(token)
        changes = {key: value for key, value in fields.items() if value}
        if not changes:
            raise ValidationError(message="At least one field must be provided")

        user = await self.users.update_user(user_id, changes)
        if user is None:
            raise NotFoundError(resource="User")
        logger.info("Updated profile for user %s", user_id)
        return user
