"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.session import AuthSession
from app.models.user import USER_ROLES, User

__all__ = ["AuthSession", "Base", "USER_ROLES", "User"]
