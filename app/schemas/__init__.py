"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AuthenticatedUser,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RegisterRequest,
    StatusResponse,
    UserPublic,
    UserResponse,
)
from app.schemas.health import HealthResponse

__all__ = [
    "AuthenticatedUser",
    "HealthResponse",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "RegisterRequest",
    "StatusResponse",
    "UserPublic",
    "UserResponse",
]
