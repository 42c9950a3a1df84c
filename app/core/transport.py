"""Session token transport: where a request carries its token, and how responses set it."""

from datetime import datetime
from typing import Protocol

from starlette.requests import Request
from starlette.responses import Response

from app.core.config import Settings


class TokenExtractor(Protocol):
    def __call__(self, request: Request) -> str | None: ...


class CookieTokenExtractor:
    """Read the token from the session cookie only."""

    def __init__(self, cookie_name: str) -> None:
        self.cookie_name = cookie_name

    def __call__(self, request: Request) -> str | None:
        token = request.cookies.get(self.cookie_name)
        return token or None


class BearerTokenExtractor:
    """Read the token from `Authorization: Bearer <token>` only."""

    def __call__(self, request: Request) -> str | None:
        header = request.headers.get("authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return None
        return token.strip()


def get_token_extractor(config: Settings) -> TokenExtractor:
    """Build the single extraction strategy configured for this deployment."""
    if config.AUTH_TOKEN_TRANSPORT == "header":
        return BearerTokenExtractor()
    return CookieTokenExtractor(config.SESSION_COOKIE_NAME)


def set_session_cookie(
    response: Response, token: str, expires_at: datetime, config: Settings
) -> None:
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=token,
        max_age=config.SESSION_EXPIRE_HOURS * 3600,
        expires=expires_at,
        path="/",
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite="strict",
    )


def clear_session_cookie(response: Response, config: Settings) -> None:
    response.delete_cookie(
        key=config.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite="strict",
    )
