"""Shared fixtures for database and API tests."""

import unittest
from datetime import datetime

from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.core.database import SessionLocal, engine
from app.core.security import create_session_token, hash_password
from app.main import app
from app.models import AuthSession, Base, User


class DatabaseTestCase(unittest.TestCase):
    """Fresh schema per test on the in-memory SQLite engine."""

    def setUp(self) -> None:
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        self.settings = get_settings()
        self.db = SessionLocal()

    def tearDown(self) -> None:
        self.db.close()
        app.dependency_overrides.clear()

    def create_user(
        self,
        username: str = "tipster",
        password: str = "secret123",
        email: str | None = "tipster@example.com",
        role: str = "user",
    ) -> User:
        user = User(
            username=username,
            password_hash=hash_password(password),
            email=email,
            role=role,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def create_session(
        self, user: User, expires_at: datetime, issued_at: datetime | None = None
    ) -> str:
        """Insert a session row directly; the token is signed as of issued_at."""
        token, _ = create_session_token(user.id, user.username, self.settings, now=issued_at)
        self.db.add(AuthSession(user_id=user.id, session_token=token, expires_at=expires_at))
        self.db.commit()
        return token

    def session_count(self) -> int:
        self.db.expire_all()
        return self.db.query(AuthSession).count()


class ApiTestCase(DatabaseTestCase):
    """DatabaseTestCase plus a TestClient (lifespan not run)."""

    def setUp(self) -> None:
        super().setUp()
        self.client = TestClient(app)

    def tearDown(self) -> None:
        self.client.close()
        super().tearDown()

    def login(self, username: str, password: str):
        return self.client.post(
            "/api/auth/login", json={"username": username, "password": password}
        )

    def use_token(self, token: str) -> None:
        """Replace whatever session cookie the client holds with token."""
        self.client.cookies.clear()
        self.client.cookies.set(self.settings.SESSION_COOKIE_NAME, token)
