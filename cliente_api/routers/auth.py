"""
Authentication router — signup and signin endpoints.

These are the only public endpoints under /api. Everything under
/api/clientes requires a valid JWT token.

Endpoints:
  POST /api/auth/signup  — Register a new user
  POST /api/auth/signin  — Authenticate and get a token

Plaintext passwords exist only in memory during request processing; they
are hashed before any database operation and never logged.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cliente_api.database import get_db
from cliente_api.schemas.auth import (
    JwtResponse,
    MessageResponse,
    SigninRequest,
    SignupRequest,
)
from cliente_api.services import auth_service

router = APIRouter()


@router.post(
    "/signup",
    response_model=MessageResponse,
    summary="Register a new user",
)
async def signup(
    request: SignupRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a new user.

    - **username**: 3-20 characters, must not be registered already
    - **password**: 6-40 characters
    - **role**: Optional list; "admin" and "mod" grant ADMIN / MODERATOR,
      anything else (or omitting it) grants USER
    """
    await auth_service.signup(
        db=db,
        username=request.username,
        password=request.password,
        requested_roles=request.role,
    )
    await db.commit()
    return MessageResponse(message="User registered successfully!")


@router.post(
    "/signin",
    response_model=JwtResponse,
    summary="Authenticate and get a token",
)
async def signin(
    request: SigninRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate with username and password.

    The returned token goes in the Authorization header of every
    subsequent request:

        Authorization: Bearer <token>
    """
    user, token = await auth_service.signin(
        db=db,
        username=request.username,
        password=request.password,
    )
    return JwtResponse(
        token=token,
        id=user.id,
        username=user.username,
        roles=user.role_names,
    )
