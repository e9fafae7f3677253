"""
Taskforge Backend — Auth Route Handlers
=========================================

What:  POST /api/auth/login, /api/auth/register, /api/auth/refresh.
How:   Bodies validated by Pydantic, then delegated to AuthService.
Who:   Called by the login/register forms and TaskforgeClient.
"""

import logging

from fastapi import APIRouter, Depends

from taskforge.dependencies import get_auth_service
from taskforge.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RefreshTokenRequest,
    RefreshTokenResponse,
    RegisterRequest,
)
from taskforge.schemas.common import ErrorResponse
from taskforge.schemas.user import UserResponse
from taskforge.services.auth_service import AuthResult, AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def _to_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        user=UserResponse.model_validate(result.user),
        token=result.token,
        expires_in=result.expires_in,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"description": "Malformed body", "model": ErrorResponse},
        401: {"description": "Invalid email or password", "model": ErrorResponse},
    },
    summary="Log in with email and password",
)
async def login(
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await auth.login(email=body.email, password=body.password)
    return _to_response(result)


@router.post(
    "/register",
    response_model=AuthResponse,
    responses={
        400: {"description": "Malformed body", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Create an account and receive a token",
)
async def register(
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    result = await auth.register(email=body.email, password=body.password, name=body.name)
    return _to_response(result)


@router.post(
    "/refresh",
    response_model=RefreshTokenResponse,
    responses={401: {"description": "Token invalid or expired", "model": ErrorResponse}},
    summary="Exchange a valid token for a new one",
    description="Issues a fresh 7-day token for the subject of a still-valid token.",
)
async def refresh(
    body: RefreshTokenRequest,
    auth: AuthService = Depends(get_auth_service),
) -> RefreshTokenResponse:
    issued = auth.refresh(body.token)
    return RefreshTokenResponse(token=issued.token, expires_in=issued.expires_in)
