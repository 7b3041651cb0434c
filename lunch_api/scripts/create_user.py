"""
Create a user (e.g. the first admin). Run from project root:
  python -m lunch_api.scripts.create_user EMAIL PASSWORD NAME [role]
Example:
  python -m lunch_api.scripts.create_user admin@example.com your-secure-password "Admin" ADMIN
"""
import argparse
import logging
import sys

from lunch_api.core.config import settings
from lunch_api.core.database import SessionLocal
from lunch_api.core.errors import AppError
from lunch_api.core.security import PasswordService
from lunch_api.models.user import UserRole
from lunch_api.services.auth import EMAIL_RE
from lunch_api.services.users import UserService


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Lunch Orders user.")
    parser.add_argument("email", help="Email address (login name)")
    parser.add_argument("password", help="Password (8-100 chars)")
    parser.add_argument("name", help="Display name (1-100 chars)")
    parser.add_argument(
        "role",
        nargs="?",
        default=UserRole.USER.value,
        choices=[role.value for role in UserRole],
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    email = args.email.strip()
    if not EMAIL_RE.match(email):
        print("Invalid email address.", file=sys.stderr)
        return 1
    name = args.name.strip()
    if not name or len(name) > 100:
        print("Invalid name length.", file=sys.stderr)
        return 1
    passwords = PasswordService(rounds=settings.BCRYPT_ROUNDS)
    problems = passwords.validate_strength(args.password)
    if problems:
        print("; ".join(problems), file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        user = UserService(db).hash_and_create(
            passwords,
            email=email,
            name=name,
            password=args.password,
            role=UserRole(args.role),
        )
    except AppError as exc:
        print(f"Could not create '{email}': {exc.message}", file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{user.email}' with role '{user.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
