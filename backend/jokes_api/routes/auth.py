"""
Jokes API Backend — Auth Route Handlers
=========================================

What:  POST /api/auth/register, POST /api/auth/login, GET /api/auth/me,
       POST /api/auth/check-availability.
How:   Validate the body (jokes_api.services.validation), then delegate to
       UserService. The whole /api/auth prefix is throttled by RateLimitMiddleware.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from jokes_api.database import get_db_session
from jokes_api.routes.dependencies import get_user_service, require_identity
from jokes_api.schemas.common import ErrorResponse
from jokes_api.schemas.user import (
    AvailabilityRequest,
    AvailabilityResponse,
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    RegisterRequest,
    RegisterResponse,
)
from jokes_api.services.security import Identity
from jokes_api.services.user_service import UserService
from jokes_api.services.validation import validate_login, validate_registration

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid registration data", "model": ErrorResponse},
        409: {"description": "Username or email already taken", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    user_service: UserService = Depends(get_user_service),
) -> RegisterResponse:
    """
    Registers a user and returns the public profile plus a session token.

    display_name defaults to the username when omitted.
    """
    registration = validate_registration(
        username=payload.username,
        email=payload.email,
        password=payload.password,
        display_name=payload.display_name,
    )
    return await user_service.register(db, registration)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing username or password", "model": ErrorResponse},
        401: {"description": "Invalid username or password", "model": ErrorResponse},
    },
    summary="Exchange credentials for a session token",
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    user_service: UserService = Depends(get_user_service),
) -> LoginResponse:
    validate_login(payload.username, payload.password)
    return await user_service.login(db, payload.username, payload.password)


@router.get(
    "/me",
    response_model=ProfileResponse,
    responses={
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        404: {"description": "The token's user no longer exists", "model": ErrorResponse},
    },
    summary="Profile of the authenticated user",
)
async def me(
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
    user_service: UserService = Depends(get_user_service),
) -> ProfileResponse:
    return await user_service.get_profile(db, identity.user_id)


@router.post(
    "/check-availability",
    response_model=AvailabilityResponse,
    response_model_exclude_none=True,
    summary="Check whether a username and/or email is still free",
)
async def check_availability(
    payload: AvailabilityRequest,
    db: AsyncSession = Depends(get_db_session),
    user_service: UserService = Depends(get_user_service),
) -> AvailabilityResponse:
    """
    Only the fields that were sent are answered:
        {"username": "bob"} → {"usernameAvailable": false}
    """
    return await user_service.check_availability(
        db,
        username=payload.username,
        email=payload.email,
    )
