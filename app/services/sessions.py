"""
Session manager: login, logout, status, expiry sweep, registration and
first-run admin bootstrap.

A grant is valid only when its JWT verifies (signature and exp claim) AND a
session row with the same token exists whose expires_at is still in the
future. Either check failing invalidates the grant.
"""

import logging
from datetime import UTC, datetime

import jwt
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.errors import (
    Conflict,
    InvalidCredentials,
    SessionInvalid,
    TokenExpired,
    TokenInvalid,
)
from app.core.security import (
    burn_password_check,
    create_session_token,
    decode_session_token,
    hash_password,
    verify_password,
)
from app.models import AuthSession, User
from app.schemas.auth import (
    AuthenticatedUser,
    LoginResponse,
    LoginUser,
    RegisterRequest,
    StatusResponse,
    UserPublic,
)

logger = logging.getLogger(__name__)

# Failures that mean "not authenticated" rather than a fault.
AUTH_FAILURES = (TokenInvalid, TokenExpired, SessionInvalid)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; stored values are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def login(
    db: Session,
    identifier: str,
    password: str,
    settings: Settings | None = None,
) -> LoginResponse:
    """
    Verify credentials and open a new session.

    identifier matches either username or email, exactly. Unknown user and
    wrong password raise the same InvalidCredentials.
    """
    settings = settings or get_settings()
    user = (
        db.query(User)
        .filter(or_(User.username == identifier, User.email == identifier))
        .order_by(User.id)
        .first()
    )
    if user is None:
        burn_password_check(password)
        logger.info("Login failed: unknown identifier")
        raise InvalidCredentials()
    if not verify_password(password, user.password_hash):
        logger.info("Login failed: bad password for user_id=%s", user.id)
        raise InvalidCredentials()

    now = _utcnow()
    token, expires_at = create_session_token(user.id, user.username, settings, now=now)
    db.add(AuthSession(user_id=user.id, session_token=token, expires_at=expires_at))
    user.updated_at = now
    db.commit()
    db.refresh(user)

    logger.info("Login succeeded: user_id=%s, session_expiry=%s", user.id, expires_at.isoformat())
    return LoginResponse(
        user=LoginUser(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            last_login=now,
        ),
        token=token,
        session_expiry=expires_at,
    )


def logout(db: Session, token: str | None) -> None:
    """Delete the session row for token, if any. Idempotent."""
    if not token:
        return
    deleted = (
        db.query(AuthSession)
        .filter(AuthSession.session_token == token)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("Logout: session removed")


def validate_session(
    db: Session,
    token: str,
    settings: Settings | None = None,
) -> AuthenticatedUser:
    """
    Verify token and its live session row; return the authenticated identity.

    Raises TokenExpired, TokenInvalid or SessionInvalid. Database errors propagate.
    """
    try:
        payload = decode_session_token(token, settings)
    except jwt.ExpiredSignatureError as e:
        raise TokenExpired() from e
    except jwt.PyJWTError as e:
        raise TokenInvalid() from e

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError) as e:
        raise TokenInvalid("Invalid token payload") from e

    row = (
        db.query(AuthSession, User)
        .join(User, AuthSession.user_id == User.id)
        .filter(
            AuthSession.session_token == token,
            AuthSession.expires_at > _utcnow(),
        )
        .first()
    )
    if row is None:
        raise SessionInvalid()
    session, user = row
    if user.id != user_id:
        raise SessionInvalid()

    return AuthenticatedUser(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        session_expiry=as_utc(session.expires_at),
    )


def get_status(
    db: Session,
    token: str | None,
    settings: Settings | None = None,
) -> StatusResponse:
    """Report whether token is a live grant. Auth failures are not errors here."""
    if not token:
        return StatusResponse(authenticated=False)
    try:
        user = validate_session(db, token, settings)
    except AUTH_FAILURES:
        return StatusResponse(authenticated=False)
    return StatusResponse(authenticated=True, user=user)


def cleanup_expired_sessions(db: Session, now: datetime | None = None) -> int:
    """
    Delete sessions whose expires_at has passed. Idempotent: safe to run repeatedly.

    Returns the number of rows deleted.
    """
    cutoff = now or _utcnow()
    deleted_count = (
        db.query(AuthSession)
        .filter(AuthSession.expires_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()

    if deleted_count > 0:
        logger.info(
            "Session cleanup: cutoff=%s, sessions_deleted=%s",
            cutoff.isoformat(),
            deleted_count,
        )
    return deleted_count


def register_user(db: Session, body: RegisterRequest) -> UserPublic:
    """Create a user. Raises Conflict if the username or email is taken."""
    existing = (
        db.query(User.id)
        .filter(or_(User.username == body.username, User.email == body.email))
        .first()
    )
    if existing is not None:
        raise Conflict()

    user = User(
        username=body.username,
        password_hash=hash_password(body.password),
        email=body.email,
        role=body.role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        # Lost a race with a concurrent registration of the same identity.
        db.rollback()
        raise Conflict() from e
    db.refresh(user)

    logger.info("Registered user_id=%s with role=%s", user.id, user.role)
    return UserPublic.model_validate(user)


def ensure_default_admin(db: Session, settings: Settings | None = None) -> User | None:
    """Create the default admin when no admin-role user exists. Returns the new user or None."""
    settings = settings or get_settings()
    if not settings.BOOTSTRAP_ADMIN:
        return None
    if db.query(User.id).filter(User.role == "admin").first() is not None:
        return None

    admin = User(
        username=settings.DEFAULT_ADMIN_USERNAME,
        password_hash=hash_password(settings.DEFAULT_ADMIN_PASSWORD.get_secret_value()),
        email=settings.DEFAULT_ADMIN_EMAIL,
        role="admin",
    )
    db.add(admin)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            "Default admin not created: username %s or email %s is already taken by a non-admin user",
            settings.DEFAULT_ADMIN_USERNAME,
            settings.DEFAULT_ADMIN_EMAIL,
        )
        return None
    db.refresh(admin)
    logger.warning(
        "Default admin user created (username: %s); change its password",
        admin.username,
    )
    return admin
