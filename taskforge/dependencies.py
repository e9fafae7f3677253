"""
Taskforge Backend — FastAPI Dependencies
==========================================

What:  Assembles request-scoped services from process-wide components.
How:   create_app() puts the Settings, TokenService, PasswordHasher and session
       factory on `app.state`. The providers below read them from the request,
       so the services themselves never touch global state and tests can build
       an app from any Settings.

Dependency graph (per request):
    get_db_session ─┬─▶ get_user_store ─┬─▶ get_auth_service ─┬─▶ get_task_service
                    │                   │                     └─▶ get_user_service
                    └───────────────────┴─▶ ResourceStore(Task) ───┘
    require_token: bearer header → verified token string (401 otherwise)
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from taskforge.config import Settings
from taskforge.database import get_db_session
from taskforge.exceptions import UnauthenticatedError
from taskforge.models.task import Task
from taskforge.security.passwords import PasswordHasher
from taskforge.security.tokens import TokenService
from taskforge.services.auth_service import AuthService
from taskforge.services.resource_service import ResourceService
from taskforge.services.user_service import UserService
from taskforge.stores.resource_store import ResourceStore
from taskforge.stores.user_store import UserStore

# auto_error=False: a missing or non-Bearer header becomes our own 401 body
bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def require_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> str:
    """
    Return the caller's bearer token after verifying it.

    Runs before body validation, so an anonymous request is answered with 401
    even when its body is also malformed.
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedError()
    tokens.verify(credentials.credentials)
    return credentials.credentials


def get_user_store(
    db: AsyncSession = Depends(get_db_session),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> UserStore:
    return UserStore(db, hasher)


def get_auth_service(
    users: UserStore = Depends(get_user_store),
    tokens: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(users, tokens)


def get_user_service(
    auth: AuthService = Depends(get_auth_service),
    users: UserStore = Depends(get_user_store),
) -> UserService:
    return UserService(auth, users)


def get_task_service(
    db: AsyncSession = Depends(get_db_session),
    auth: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> ResourceService[Task]:
    return ResourceService(
        auth=auth,
        store=ResourceStore(db, Task, owner_field="user_id"),
        resource_name="Task",
        required_fields=("title",),
        non_null_fields=("completed",),
        max_page_size=settings.max_page_size,
    )
