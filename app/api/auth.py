"""Session login, logout, status and admin registration endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.api.deps import (
    get_current_user,
    get_request_token,
    limit_auth_attempts,
    require_admin,
)
from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.transport import clear_session_cookie, set_session_cookie
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
from app.services import sessions

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post(
    "/login",
    response_model=LoginResponse,
    dependencies=[Depends(limit_auth_attempts)],
)
def login(
    body: LoginRequest,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> LoginResponse:
    """
    Authenticate with username (or email) and password.

    Opens a new session and returns its token. With cookie transport the token
    is also set as an httpOnly, SameSite=strict cookie.
    """
    result = sessions.login(db, body.username, body.password, settings)
    if settings.AUTH_TOKEN_TRANSPORT == "cookie":
        set_session_cookie(response, result.token, result.session_expiry, settings)
    return result


@router.post("/logout", response_model=LogoutResponse)
def logout(
    response: Response,
    token: Annotated[str | None, Depends(get_request_token)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> LogoutResponse:
    """End the caller's session. Always succeeds, with or without a session."""
    sessions.logout(db, token)
    if settings.AUTH_TOKEN_TRANSPORT == "cookie":
        clear_session_cookie(response, settings)
    return LogoutResponse()


@router.get("/status", response_model=StatusResponse, response_model_exclude_unset=True)
def get_status(
    token: Annotated[str | None, Depends(get_request_token)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> StatusResponse:
    """Report whether the caller holds a live session. Never 401s."""
    return sessions.get_status(db, token, settings)


@router.get("/me", response_model=UserResponse)
def get_me(
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
) -> UserResponse:
    return UserResponse(user=UserPublic.model_validate(current_user.model_dump()))


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(limit_auth_attempts)],
)
def register(
    body: RegisterRequest,
    admin: Annotated[AuthenticatedUser, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
) -> UserResponse:
    """Create a user account (admin only)."""
    user = sessions.register_user(db, body)
    logger.info("User %s registered by admin user_id=%s", user.username, admin.id)
    return UserResponse(user=user)
