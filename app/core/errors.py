"""API error types. Each carries an HTTP status and a stable machine-readable code."""

from typing import Any


class ApiError(Exception):
    """Base for errors rendered as {success: false, error, code}."""

    status_code = 500
    code = "INTERNAL_ERROR"
    message = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        code: str | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        if message is not None:
            self.message = message
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "error": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


class ValidationFailed(ApiError):
    status_code = 400
    code = "VALIDATION_FAILED"
    message = "Validation failed"


class InvalidJson(ApiError):
    status_code = 400
    code = "INVALID_JSON"
    message = "Invalid JSON in request body"


class InvalidCredentials(ApiError):
    """Login failure. Same shape for unknown user and wrong password."""

    status_code = 401
    code = "AUTH_FAILED"
    message = "Invalid credentials"


class TokenMissing(ApiError):
    status_code = 401
    code = "AUTH_TOKEN_MISSING"
    message = "No authentication token provided"


class TokenInvalid(ApiError):
    status_code = 401
    code = "TOKEN_INVALID"
    message = "Invalid token"


class TokenExpired(ApiError):
    status_code = 401
    code = "TOKEN_EXPIRED"
    message = "Token expired"


class SessionInvalid(ApiError):
    """Token verifies but no live session row backs it (logged out or swept)."""

    status_code = 401
    code = "SESSION_INVALID"
    message = "Invalid or expired session"


class Forbidden(ApiError):
    status_code = 403
    code = "FORBIDDEN"
    message = "Insufficient permissions"


class NotFound(ApiError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Endpoint not found"


class Conflict(ApiError):
    status_code = 400
    code = "USER_EXISTS"
    message = "Username or email already exists"


class RateLimited(ApiError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    message = "Too many authentication attempts, please try again later"


class InternalFault(ApiError):
    status_code = 500
    code = "INTERNAL_ERROR"
    message = "Internal server error"


class DatabaseUnavailable(InternalFault):
    status_code = 503
    code = "DATABASE_UNAVAILABLE"
    message = "Service temporarily unavailable"
