"""Test environment: in-memory SQLite, no background sweeper, no request limiting."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "dev"
os.environ["JWT_SECRET"] = "test-jwt-secret"
os.environ["SESSION_CLEANUP_ENABLED"] = "false"
os.environ["AUTH_RATE_LIMIT_ENABLED"] = "false"
os.environ["GLOBAL_RATE_LIMIT_ENABLED"] = "false"
os.environ["AUTH_TOKEN_TRANSPORT"] = "cookie"

from app.core import config as config_module

config_module.get_settings.cache_clear()

from app.core import security

# Cheap hashes keep the suite fast; verification is cost-independent.
security.BCRYPT_ROUNDS = 4
