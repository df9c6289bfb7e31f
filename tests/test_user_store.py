"""
tests/test_user_store.py -- Unit tests for auth/store.py.

Covers:
  - create_user / get_by_email / get_by_id round trip
  - Lookup misses return None
  - UNIQUE(email) rejects a second account for the same email
  - A duplicate email that slipped past the schema is reported, not resolved
"""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import IntegrityError

from auth.errors import DataIntegrityError
from auth.models import User
from auth.store import UserStore
from conftest import memory_db_url


def test_create_and_fetch_by_email(users: UserStore) -> None:
    uid = users.create_user(User(email="bob@example.com", hashed_password="$2b$x", display_name="Bob"))
    user = users.get_by_email("bob@example.com")
    assert user is not None
    assert user.id == uid
    assert user.display_name == "Bob"
    assert user.is_guest is False
    assert user.created_at


def test_fetch_by_id(users: UserStore) -> None:
    uid = users.create_user(User(email="carol@example.com", hashed_password="$2b$x"))
    assert users.get_by_id(uid).email == "carol@example.com"


def test_guest_flag_round_trips(users: UserStore) -> None:
    uid = users.create_user(User(email="guest@example.com", hashed_password="$2b$x", is_guest=True))
    assert users.get_by_id(uid).is_guest is True


def test_misses_return_none(users: UserStore) -> None:
    assert users.get_by_email("nobody@example.com") is None
    assert users.get_by_id(9999) is None


def test_email_lookup_is_exact(users: UserStore, alice: User) -> None:
    assert users.get_by_email("ALICE@example.com") is None
    assert users.get_by_email(" alice@example.com") is None


def test_duplicate_email_rejected(users: UserStore, alice: User) -> None:
    with pytest.raises(IntegrityError):
        users.create_user(User(email=alice.email, hashed_password="$2b$y"))


def test_email_lookup_is_parameterized(users: UserStore, alice: User) -> None:
    """A quote-laden identifier is data, not SQL."""
    assert users.get_by_email("' OR '1'='1") is None


def test_duplicate_rows_raise_data_integrity_error() -> None:
    """Simulate a legacy table without the UNIQUE constraint.

    create_all() leaves an existing table alone, so the store runs on top of
    the unconstrained schema and must notice the duplicate itself.
    """
    url = memory_db_url("legacy")
    keeper = create_engine(url)
    with keeper.begin() as conn:
        conn.execute(
            text(
                "CREATE TABLE users (id INTEGER PRIMARY KEY AUTOINCREMENT, email VARCHAR(255) NOT NULL, "
                "hashed_password TEXT NOT NULL, display_name VARCHAR(255) NOT NULL DEFAULT '', "
                "is_guest INTEGER NOT NULL DEFAULT 0, created_at VARCHAR(32) NOT NULL)"
            )
        )
        for _ in range(2):
            conn.execute(
                text("INSERT INTO users (email, hashed_password, created_at) VALUES (:e, 'x', 'now')"),
                {"e": "dup@example.com"},
            )
    store = UserStore(db_url=url)
    try:
        with pytest.raises(DataIntegrityError):
            store.get_by_email("dup@example.com")
    finally:
        store.close()
        keeper.dispose()
