"""
Create a user from the command line (e.g. a first admin without the API). Run from project root:
  python -m app.scripts.create_user USERNAME PASSWORD EMAIL [role]
Example:
  python -m app.scripts.create_user editor your-secure-password editor@example.com admin
"""
import argparse
import sys

from pydantic import ValidationError

from app.core.database import SessionLocal
from app.core.errors import Conflict
from app.schemas.auth import RegisterRequest
from app.services.sessions import register_user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Betting Tips API user.")
    parser.add_argument("username", help="Username (at least 3 chars)")
    parser.add_argument("password", help="Password (6-128 chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("role", nargs="?", default="user", choices=["user", "admin"])
    args = parser.parse_args(argv)

    try:
        body = RegisterRequest(
            username=args.username,
            password=args.password,
            email=args.email,
            role=args.role,
        )
    except ValidationError as e:
        for err in e.errors():
            print(err["msg"], file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        user = register_user(db, body)
    except Conflict:
        print(f"User '{body.username}' or email '{body.email}' already exists.", file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{user.username}' with role '{user.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
