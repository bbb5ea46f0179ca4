"""
TripAlbum Backend — Auth Schemas
=================================

What:  Request and response bodies for POST /signup and POST /login.

The password hash never appears in any response model; AuthService builds
these from the ORM row field by field.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from tripalbum.schemas.common import CamelModel


class SignupRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1)


class LoginRequest(BaseModel):
    """
    Empty or missing credentials are not a validation error: they reach
    AuthService.login and fail with the same 401 as a wrong password.
    """
    email: str = ""
    password: str = ""


class UserIdentity(CamelModel):
    """The identity a client keeps after login and sends back as X-User-Id."""
    id: str
    name: str
    email: str


class SignupUser(UserIdentity):
    created_at: datetime


class SignupResponse(BaseModel):
    message: str = "User created successfully"
    user: SignupUser


class LoginResponse(BaseModel):
    message: str = "Login successful"
    user: UserIdentity
