"""
TripAlbum Backend — Auth Route Handlers
========================================

What:  POST /signup and POST /login.
How:   Thin handlers; AuthService raises ConflictError / AuthenticationError
       which the global handlers turn into 400 / 401.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tripalbum.database import get_db_session
from tripalbum.schemas.auth import LoginRequest, LoginResponse, SignupRequest, SignupResponse
from tripalbum.schemas.common import ErrorResponse
from tripalbum.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


@router.post(
    "/signup",
    status_code=201,
    response_model=SignupResponse,
    responses={
        400: {"description": "Missing fields or email already registered", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def signup(
    payload: SignupRequest,
    db: AsyncSession = Depends(get_db_session),
) -> SignupResponse:
    return await auth_service.signup(db, payload)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Check credentials and return the user identity",
    description=(
        "No token or cookie is issued. Clients keep the returned user and may "
        "send user.id as the X-User-Id header to enable ownership checks."
    ),
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    return await auth_service.login(db, payload)
