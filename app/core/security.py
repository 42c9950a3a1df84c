"""Password hashing and JWT session token creation/verification."""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

from app.core.config import Settings, settings

# Bcrypt cost (rounds); matches the cost used for existing password hashes.
BCRYPT_ROUNDS = 12

# Input validation bounds for login and registration.
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 255
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

# Compared against when the login identifier matches no user, so unknown
# usernames cost the same bcrypt work as wrong passwords.
_DUMMY_HASH = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode(
    "utf-8"
)


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def burn_password_check(plain_password: str) -> None:
    """Spend one bcrypt comparison without a real hash to compare against."""
    verify_password(plain_password, _DUMMY_HASH)


def create_session_token(
    user_id: int,
    username: str,
    config: Settings | None = None,
    now: datetime | None = None,
) -> tuple[str, datetime]:
    """
    Create a signed session token for a user.

    Returns (token, expires_at). The jti claim keeps tokens unique even when
    the same user logs in twice within one second.
    """
    config = config or settings
    now = now or datetime.now(UTC)
    expires_at = now + timedelta(hours=config.SESSION_EXPIRE_HOURS)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "username": username,
        "iat": now,
        "exp": expires_at,
        "jti": secrets.token_urlsafe(16),
    }
    token = jwt.encode(
        payload,
        config.JWT_SECRET.get_secret_value(),
        algorithm=config.JWT_ALGORITHM,
    )
    return token, expires_at


def decode_session_token(token: str, config: Settings | None = None) -> dict[str, Any]:
    """
    Decode and validate a session token; return its payload.
    Raises jwt.ExpiredSignatureError when expired, jwt.PyJWTError when otherwise invalid.
    """
    config = config or settings
    return jwt.decode(
        token,
        config.JWT_SECRET.get_secret_value(),
        algorithms=[config.JWT_ALGORITHM],
        options={"require": ["sub", "exp"]},
    )
