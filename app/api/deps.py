"""
Access gate dependencies.

get_current_user rejects (fail-closed); get_optional_user degrades to None
(fail-open). require_role builds on get_current_user, so FastAPI always runs
the mandatory gate before any role check.
"""

from collections.abc import Callable
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import get_db
from app.core.errors import Forbidden, RateLimited, TokenMissing
from app.core.transport import TokenExtractor, get_token_extractor
from app.schemas.auth import AuthenticatedUser
from app.services.rate_limit import RateLimitConfig, RateLimiter
from app.services.sessions import AUTH_FAILURES, validate_session


def get_extractor(settings: Annotated[Settings, Depends(get_settings)]) -> TokenExtractor:
    """The deployment's single token extraction strategy, chosen by AUTH_TOKEN_TRANSPORT."""
    return get_token_extractor(settings)


def get_request_token(
    request: Request,
    extract: Annotated[TokenExtractor, Depends(get_extractor)],
) -> str | None:
    """Token carried by the request via the configured transport, or None."""
    return extract(request)


def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(get_request_token)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthenticatedUser:
    """Dependency: require a valid token backed by a live session. Raises 401 otherwise."""
    if not token:
        raise TokenMissing()
    user = validate_session(db, token, settings)
    request.state.user = user
    return user


def get_optional_user(
    request: Request,
    token: Annotated[str | None, Depends(get_request_token)],
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthenticatedUser | None:
    """Dependency: same checks as get_current_user, but None instead of 401."""
    user = None
    if token:
        try:
            user = validate_session(db, token, settings)
        except AUTH_FAILURES:
            user = None
    request.state.user = user
    return user


def require_role(role: str) -> Callable[..., AuthenticatedUser]:
    """Build a dependency that requires an authenticated user with `role`."""
    code = "ADMIN_REQUIRED" if role == "admin" else "FORBIDDEN"
    message = "Admin access required" if role == "admin" else f"Role '{role}' required"

    def _require_role(
        current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    ) -> AuthenticatedUser:
        if current_user.role != role:
            raise Forbidden(message, code=code)
        return current_user

    return _require_role


require_admin = require_role("admin")


@lru_cache
def get_auth_rate_limiter() -> RateLimiter:
    settings = get_settings()
    return RateLimiter(
        RateLimitConfig(
            max_requests=settings.AUTH_RATE_LIMIT_MAX_ATTEMPTS,
            window_seconds=settings.AUTH_RATE_LIMIT_WINDOW_SEC,
        )
    )


def limit_auth_attempts(
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
    limiter: Annotated[RateLimiter, Depends(get_auth_rate_limiter)],
) -> None:
    """Dependency: reject with 429 once a client exceeds the auth attempt budget."""
    if not settings.AUTH_RATE_LIMIT_ENABLED:
        return
    client = request.client.host if request.client else "unknown"
    if not limiter.allow(client):
        raise RateLimited()
