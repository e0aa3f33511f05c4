"""
Pydantic schemas for authentication endpoints (signup and signin).

Pydantic validates incoming data automatically; a missing field or a value
of the wrong length is rejected with a 400 before our code runs.
"""

import uuid

from pydantic import BaseModel, Field


class SignupRequest(BaseModel):
    """Request body for POST /api/auth/signup."""
    username: str = Field(min_length=3, max_length=20)
    password: str = Field(min_length=6, max_length=40)
    # Requested roles, e.g. ["admin"], ["mod"], ["user"]. Omitted -> ROLE_USER
    role: list[str] | None = None


class SigninRequest(BaseModel):
    """Request body for POST /api/auth/signin."""
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class MessageResponse(BaseModel):
    message: str


class JwtResponse(BaseModel):
    """Response body for a successful signin."""
    token: str
    type: str = "Bearer"
    id: uuid.UUID
    username: str
    roles: list[str]
