"""Request/response schemas for auth endpoints."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)

UserRole = Literal["user", "admin"]


class LoginRequest(BaseModel):
    """Credentials for login. `username` may also be the account email."""

    username: str = Field(..., max_length=USERNAME_MAX_LEN, description="Username or email")
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN, description="Password")

    @field_validator("username")
    @classmethod
    def username_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v


class RegisterRequest(BaseModel):
    """New account details (admin only)."""

    username: str = Field(..., max_length=USERNAME_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    email: EmailStr
    role: UserRole = "user"

    @field_validator("username")
    @classmethod
    def username_length(cls, v: str) -> str:
        v = v.strip()
        if len(v) < USERNAME_MIN_LEN:
            raise ValueError(f"Username must be at least {USERNAME_MIN_LEN} characters")
        return v


class UserPublic(BaseModel):
    """User profile safe to return to clients (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str | None = None
    role: UserRole


class LoginUser(UserPublic):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    last_login: datetime = Field(alias="lastLogin")


class AuthenticatedUser(UserPublic):
    """
    Identity attached to a request by the access gate. Only produced after the
    token and its session row have both been verified.
    """

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    session_expiry: datetime = Field(alias="sessionExpiry")


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    user: LoginUser
    token: str
    session_expiry: datetime = Field(alias="sessionExpiry")


class LogoutResponse(BaseModel):
    success: bool = True
    message: str = "Successfully logged out"


class StatusResponse(BaseModel):
    """Authentication status; `user` is present only when authenticated."""

    authenticated: bool
    user: AuthenticatedUser | None = None


class UserResponse(BaseModel):
    success: bool = True
    user: UserPublic
