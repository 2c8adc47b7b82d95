"""
Name: Superadmin Bootstrap Script

Responsibilities:
  - Create the first superadmin user (idempotent)
  - Hash passwords with Argon2
  - Store user in PostgreSQL, approved and without account
  - Optionally reset the password of an existing user (--reset)
"""

from __future__ import annotations

import argparse
import getpass
import os
import sys
from datetime import datetime, timezone
from uuid import uuid4

import psycopg

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from kiki.domain.entities import UserStatus  # noqa: E402
from kiki.domain.roles import RoleName  # noqa: E402
from kiki.identity.auth_users import hash_password  # noqa: E402


def _require_database_url() -> str:
    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        raise SystemExit("DATABASE_URL is required to create a user.")
    return db_url


def _prompt_email() -> str:
    email = input("Email: ").strip().lower()
    if not email:
        raise SystemExit("Email is required.")
    return email


def _prompt_password() -> str:
    password = getpass.getpass("Password: ")
    if not password:
        raise SystemExit("Password is required.")
    confirm = getpass.getpass("Confirm password: ")
    if password != confirm:
        raise SystemExit("Passwords do not match.")
    return password


def _parse_args() -> argparse.Namespace:
    argv = sys.argv[1:]
    if argv and argv[0] == "--":
        argv = argv[1:]
    parser = argparse.ArgumentParser(
        description="Create the first superadmin user (idempotent)."
    )
    parser.add_argument("--email", help="User email (will be normalized)")
    parser.add_argument("--name", default="Superadmin", help="Display name")
    parser.add_argument(
        "--password",
        help="User password (omit to be prompted securely)",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Reset password/status if the user already exists",
    )
    return parser.parse_args(argv)


def _normalize_email(email: str) -> str:
    normalized = email.strip().lower()
    if not normalized:
        raise SystemExit("Email is required.")
    return normalized


def _ensure_superadmin(
    db_url: str, *, email: str, name: str, password: str, reset: bool
) -> None:
    now = datetime.now(timezone.utc)
    with psycopg.connect(db_url) as conn:
        with conn.cursor() as cur:
            cur.execute(
                "SELECT id, role_name, status FROM users WHERE email = %s",
                (email,),
            )
            row = cur.fetchone()
            if row and not reset:
                print(
                    "User already exists: "
                    f"id={row[0]} email={email} role={row[1]} status={row[2]}"
                )
                return

            password_hash = hash_password(password)
            if row:
                cur.execute(
                    """
                    UPDATE users
                    SET password_hash = %s, role_name = %s, status = %s,
                        password_changed_at = %s, updated_at = %s
                    WHERE id = %s
                    """,
                    (
                        password_hash,
                        RoleName.SUPERADMIN.value,
                        UserStatus.APPROVED.value,
                        now,
                        now,
                        row[0],
                    ),
                )
                conn.commit()
                print(f"Reset user: id={row[0]} email={email}")
                return

            user_id = uuid4()
            cur.execute(
                """
                INSERT INTO users (
                    id, name, email, password_hash, role_name, status,
                    created_at, updated_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    user_id,
                    name,
                    email,
                    password_hash,
                    RoleName.SUPERADMIN.value,
                    UserStatus.APPROVED.value,
                    now,
                    now,
                ),
            )
            conn.commit()
            print(f"Created superadmin: id={user_id} email={email}")


def main() -> None:
    args = _parse_args()
    db_url = _require_database_url()
    email = _normalize_email(args.email) if args.email else _prompt_email()
    password = args.password or _prompt_password()
    _ensure_superadmin(
        db_url,
        email=email,
        name=args.name.strip() or "Superadmin",
        password=password,
        reset=args.reset,
    )


if __name__ == "__main__":
    main()
