"""
Taskforge Backend — Users Route Handlers
==========================================

GET and PATCH /api/users/me. Both require a bearer token.
"""

from fastapi import APIRouter, Depends

from taskforge.dependencies import get_user_service, require_token
from taskforge.schemas.common import ErrorResponse
from taskforge.schemas.user import UpdateUserRequest, UserResponse
from taskforge.services.user_service import UserService

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
)


@router.get(
    "/me",
    response_model=UserResponse,
    responses={404: {"description": "User no longer exists", "model": ErrorResponse}},
    summary="Get the current user",
)
async def get_me(
    token: str = Depends(require_token),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await users.get_me(token)
    return UserResponse.model_validate(user)


@router.patch(
    "/me",
    response_model=UserResponse,
    responses={
        400: {"description": "No fields supplied", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Update the current user's name or email",
)
async def update_me(
    body: UpdateUserRequest,
    token: str = Depends(require_token),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await users.update_me(token, body.model_dump(exclude_unset=True))
    return UserResponse.model_validate(user)
