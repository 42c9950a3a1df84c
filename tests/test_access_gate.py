"""Unit tests for app.api.deps and app.core.transport: token extraction and gate composition."""

import inspect
import unittest
from datetime import UTC, datetime, timedelta

from fastapi.params import Depends as DependsParam
from starlette.requests import Request
from utils import DatabaseTestCase

from app.api.deps import get_current_user, get_optional_user, require_admin, require_role
from app.core.config import get_settings
from app.core.errors import Forbidden, SessionInvalid, TokenExpired, TokenMissing
from app.core.transport import (
    BearerTokenExtractor,
    CookieTokenExtractor,
    get_token_extractor,
)
from app.schemas.auth import AuthenticatedUser


def _request(headers: dict[str, str] | None = None) -> Request:
    raw = [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


def _identity(role: str) -> AuthenticatedUser:
    return AuthenticatedUser(
        id=7,
        username="someone",
        email=None,
        role=role,
        session_expiry=datetime.now(UTC) + timedelta(hours=1),
    )


class TestTokenExtractors(unittest.TestCase):
    """Each strategy reads exactly one channel."""

    def test_cookie_extractor_reads_named_cookie(self) -> None:
        extract = CookieTokenExtractor("auth_session")
        self.assertEqual(extract(_request({"Cookie": "auth_session=abc; other=1"})), "abc")

    def test_cookie_extractor_ignores_authorization_header(self) -> None:
        extract = CookieTokenExtractor("auth_session")
        self.assertIsNone(extract(_request({"Authorization": "Bearer abc"})))

    def test_bearer_extractor_reads_header(self) -> None:
        self.assertEqual(BearerTokenExtractor()(_request({"Authorization": "Bearer abc"})), "abc")
        self.assertEqual(BearerTokenExtractor()(_request({"Authorization": "bearer abc"})), "abc")

    def test_bearer_extractor_ignores_cookie_and_other_schemes(self) -> None:
        extract = BearerTokenExtractor()
        self.assertIsNone(extract(_request({"Cookie": "auth_session=abc"})))
        self.assertIsNone(extract(_request({"Authorization": "Basic abc"})))
        self.assertIsNone(extract(_request({"Authorization": "Bearer "})))

    def test_factory_follows_settings(self) -> None:
        settings = get_settings()
        self.assertIsInstance(get_token_extractor(settings), CookieTokenExtractor)
        header = settings.model_copy(update={"AUTH_TOKEN_TRANSPORT": "header"})
        self.assertIsInstance(get_token_extractor(header), BearerTokenExtractor)


class TestMandatoryGate(DatabaseTestCase):
    """get_current_user fails closed and attaches identity to request.state."""

    def test_missing_token(self) -> None:
        with self.assertRaises(TokenMissing):
            get_current_user(_request(), None, self.db, self.settings)

    def test_valid_session_attaches_identity(self) -> None:
        user = self.create_user(role="admin")
        token = self.create_session(user, datetime.now(UTC) + timedelta(hours=1))
        request = _request()
        identity = get_current_user(request, token, self.db, self.settings)
        self.assertEqual(identity.id, user.id)
        self.assertEqual(identity.role, "admin")
        self.assertIs(request.state.user, identity)

    def test_expired_token(self) -> None:
        user = self.create_user()
        token = self.create_session(
            user,
            datetime.now(UTC) + timedelta(hours=1),
            issued_at=datetime.now(UTC) - timedelta(days=2),
        )
        with self.assertRaises(TokenExpired):
            get_current_user(_request(), token, self.db, self.settings)

    def test_swept_session(self) -> None:
        user = self.create_user()
        token = self.create_session(user, datetime.now(UTC) - timedelta(minutes=1))
        with self.assertRaises(SessionInvalid):
            get_current_user(_request(), token, self.db, self.settings)


class TestOptionalGate(DatabaseTestCase):
    """get_optional_user degrades every auth failure to None."""

    def test_no_token(self) -> None:
        request = _request()
        self.assertIsNone(get_optional_user(request, None, self.db, self.settings))
        self.assertIsNone(request.state.user)

    def test_bad_token(self) -> None:
        self.assertIsNone(get_optional_user(_request(), "junk", self.db, self.settings))

    def test_revoked_session(self) -> None:
        user = self.create_user()
        token = self.create_session(user, datetime.now(UTC) - timedelta(seconds=5))
        self.assertIsNone(get_optional_user(_request(), token, self.db, self.settings))

    def test_valid_session(self) -> None:
        user = self.create_user()
        token = self.create_session(user, datetime.now(UTC) + timedelta(hours=1))
        identity = get_optional_user(_request(), token, self.db, self.settings)
        self.assertEqual(identity.id, user.id)


class TestRequireRole(unittest.TestCase):
    """require_role checks the identity produced by the mandatory gate."""

    def test_admin_accepted(self) -> None:
        admin = _identity("admin")
        self.assertIs(require_admin(admin), admin)

    def test_non_admin_rejected(self) -> None:
        with self.assertRaises(Forbidden) as ctx:
            require_admin(_identity("user"))
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.code, "ADMIN_REQUIRED")

    def test_other_roles_use_generic_code(self) -> None:
        with self.assertRaises(Forbidden) as ctx:
            require_role("user")(_identity("admin"))
        self.assertEqual(ctx.exception.code, "FORBIDDEN")

    def test_role_check_depends_on_mandatory_gate(self) -> None:
        param = inspect.signature(require_admin).parameters["current_user"]
        marker = param.annotation.__metadata__[0]
        self.assertIsInstance(marker, DependsParam)
        self.assertIs(marker.dependency, get_current_user)


if __name__ == "__main__":
    unittest.main()
