"""
tests/conftest.py -- Shared test fixtures for SessionGate.

This module provides:
  - FakeClock: a settable clock injected into SessionStore so expiry can be
    tested without sleeping
  - users / sessions / lifecycle: isolated stores per test
  - alice: a provisioned user with a known password
  - api_client: TestClient wired to test stores through a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers on a separate thread. Plain :memory:
DBs are per-connection and would present a blank schema to that thread. The
named URI format (file:name?mode=memory&cache=shared&uri=true) shares one
in-memory instance across all connections in the same process. Each fixture
uses a fresh name, so tests never see each other's rows.

Environment must be set before any auth/core import:
  DEBUG=true        -- get_settings() auto-generates SECRET_KEY
  BCRYPT_ROUNDS=4   -- minimum bcrypt cost, keeps the suite fast
  ALLOWED_HOSTS     -- TestClient sends Host: testserver
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# CRITICAL: Set env before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("SWEEP_API_KEY", "test-sweep-key")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.lifecycle import SessionLifecycle
from auth.models import User
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.tokens import hash_password

ALICE_EMAIL = "alice@example.com"
ALICE_PASSWORD = "correct horse battery staple"


class FakeClock:
    """Callable clock for SessionStore. Starts on a whole second so float
    epoch arithmetic in the store is exact at expiry boundaries."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def memory_db_url(prefix: str = "test") -> str:
    return f"sqlite:///file:{prefix}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def make_alice(users: UserStore) -> User:
    uid = users.create_user(
        User(email=ALICE_EMAIL, hashed_password=hash_password(ALICE_PASSWORD), display_name="Alice")
    )
    return users.get_by_id(uid)


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def db_url() -> str:
    return memory_db_url()


@pytest.fixture
def users(db_url: str) -> Generator[UserStore, None, None]:
    store = UserStore(db_url=db_url)
    yield store
    store.close()


@pytest.fixture
def sessions(db_url: str, clock: FakeClock) -> Generator[SessionStore, None, None]:
    store = SessionStore(db_url=db_url, clock=clock)
    yield store
    store.close()


@pytest.fixture
def alice(users: UserStore) -> User:
    return make_alice(users)


@pytest.fixture
def lifecycle(users: UserStore, sessions: SessionStore) -> SessionLifecycle:
    return SessionLifecycle(users, sessions)


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(users: UserStore, sessions: SessionStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so routes see isolated test
    DBs. No sweep task is started; tests trigger sweeps explicitly.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = users
        app.state.session_store = sessions
        app.state.lifecycle = SessionLifecycle(users, sessions)
        app.state.sweep_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.sweep_task.cancel()

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, SessionStore, FakeClock], None, None]:
    """Yield (client, session_store, clock) for API integration tests.

    Alice is provisioned before the client starts. The clock is shared with
    the session store so tests can age sessions past expiry.
    """
    url = memory_db_url("api")
    clock = FakeClock()
    users = UserStore(db_url=url)
    sessions = SessionStore(db_url=url, clock=clock)
    make_alice(users)

    app.router.lifespan_context = _patch_lifespan(users, sessions)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, sessions, clock

    sessions.close()
    users.close()
