#!/usr/bin/env python3
"""
SessionGate -- operator CLI.

Usage:
  python main.py add-user alice@example.com --name "Alice"
  echo "s3cret" | python main.py add-user alice@example.com --password-stdin
  python main.py add-user guest@example.com --guest
  python main.py sweep

`sweep` is the cron entry point when the API's in-process sweep loop is
disabled (SWEEP_INTERVAL_SECONDS=0). It deletes expired sessions and prints
how many were removed.

Environment variables are read through core.config (DATABASE_URL, SECRET_KEY,
BCRYPT_ROUNDS, ...). The CLI and the API must agree on SECRET_KEY, or tokens
issued by one cannot be found by the other.
"""

import argparse
import getpass
import logging
import sys
from typing import Optional

from sqlalchemy.exc import IntegrityError

from auth.lifecycle import SessionLifecycle
from auth.models import User
from auth.sessions import SessionStore
from auth.store import DEFAULT_DB_URL, UserStore
from auth.tokens import MAX_PASSWORD_BYTES, hash_password
from core.config import get_settings

logger = logging.getLogger("sessiongate.cli")


def _read_password(from_stdin: bool) -> Optional[str]:
    """Read a new password from stdin or an interactive prompt. None if empty or mismatched."""
    if from_stdin:
        password = sys.stdin.readline().rstrip("\n")
        return password or None
    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat password: "):
        print("  [!] Passwords do not match.")
        return None
    return password or None


def add_user(users: UserStore, email: str, password: str, name: str = "", guest: bool = False) -> Optional[int]:
    """Provision a user. Returns the new id, or None if the email is taken."""
    try:
        return users.create_user(
            User(email=email, hashed_password=hash_password(password), display_name=name, is_guest=guest)
        )
    except IntegrityError:
        print(f"  [!] A user with email '{email}' already exists.")
        return None


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    parser = argparse.ArgumentParser(
        prog="sessiongate",
        description="Provision users and run the session expiry sweep.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py add-user alice@example.com --name Alice
  echo "s3cret" | python main.py add-user bob@example.com --password-stdin
  python main.py sweep
        """,
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")

    add = commands.add_parser("add-user", help="Create a user account")
    add.add_argument("email", help="Login identifier (must be unique)")
    add.add_argument("--name", default="", help="Display name")
    add.add_argument("--guest", action="store_true", help="Mark the account as a guest")
    add.add_argument(
        "--password-stdin",
        action="store_true",
        help="Read the password from the first line of stdin instead of prompting",
    )

    commands.add_parser("sweep", help="Delete expired sessions now")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 2

    settings = get_settings()
    db_url = settings.database_url or DEFAULT_DB_URL
    users = UserStore(db_url=db_url)
    try:
        if args.command == "add-user":
            password = _read_password(args.password_stdin)
            if password is None:
                print("  [!] A non-empty password is required.")
                return 1
            if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
                print(f"  [!] Password is longer than {MAX_PASSWORD_BYTES} bytes (UTF-8); bcrypt cannot hash it.")
                return 1
            user_id = add_user(users, args.email, password, name=args.name, guest=args.guest)
            if user_id is None:
                return 1
            print(f"  Created user {args.email} (id={user_id}).")
            return 0

        sessions = SessionStore(db_url=db_url, max_attempts=settings.token_max_attempts)
        try:
            removed = SessionLifecycle(users, sessions).run_expiry_sweep()
        finally:
            sessions.close()
        print(f"  Removed {removed} expired session(s).")
        return 0
    finally:
        users.close()


if __name__ == "__main__":
    sys.exit(main())
