"""
auth/sessions.py -- SQLAlchemy Core persistence layer for sessions.

Pattern: Repository + Data Mapper (same as auth/store.py).
SessionStore is the repository; _row_to_session is the mapper.

Storage layout:
  token_hash   HMAC-SHA256 of the bearer token, UNIQUE. The raw token is
               never written to disk.
  issued_at    epoch seconds (REAL).
  expires_at   epoch seconds (REAL), issued_at + duration, precomputed at
               insert so the sweep is one indexed range delete.

Concurrency:
  create() is a single INSERT inside one transaction -- a session either
  exists completely or not at all, including when the caller is cancelled.
  sweep() is a single DELETE bounded by the clock value read at call time,
  so it can only remove rows whose expiry had already passed when it ran.
  find() applies the same expiry predicate, so an expired session is never
  returned even if the sweep has not reached it yet.

The clock and the id/token factories are injectable. Tests drive time with a
fake clock and force collisions with a constant factory.

Layer rule: no imports from api/. Import from core/ (via auth.tokens) is allowed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from sqlalchemy import Column, Float, Index, Integer, MetaData, String, Table, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.errors import ConflictFailure, GenerationExhausted
from auth.models import Session, User
from auth.store import DEFAULT_DB_URL, make_engine
from auth.tokens import generate_session_id, generate_session_token, hash_session_token

logger = logging.getLogger("sessiongate.sessions")

Clock = Callable[[], datetime]

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_sessions = Table(
    "sessions",
    _metadata,
    Column("id", String(32), primary_key=True),
    # Non-owning reference to users.id. No FK: user deletion is handled by
    # the provisioning side, and orphaned rows simply fail authenticate().
    Column("user_id", Integer, nullable=False),
    Column("token_hash", String(64), nullable=False, unique=True),
    Column("issued_at", Float, nullable=False),
    Column("duration_seconds", Float, nullable=False),
    Column("expires_at", Float, nullable=False),
    Index("ix_sessions_expires_at", "expires_at"),
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SessionStore:
    """Repository for Session records.

    Usage:
        sessions = SessionStore()
        session = sessions.create(user, timedelta(hours=24))
        sessions.find(session.token)   # -> Session, or None once expired
        sessions.sweep()               # -> number of expired rows deleted
        sessions.close()
    """

    def __init__(
        self,
        db_url: str = DEFAULT_DB_URL,
        clock: Clock = utcnow,
        max_attempts: int = 5,
        token_factory: Callable[[], str] = generate_session_token,
        id_factory: Callable[[], str] = generate_session_id,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.engine: Engine = make_engine(db_url)
        self.max_attempts = max_attempts
        self._clock = clock
        self._token_factory = token_factory
        self._id_factory = id_factory
        _metadata.create_all(self.engine)

    def create(self, user: User, duration: timedelta) -> Session:
        """Issue and persist a new session for user.

        A generated id or token that collides with a stored one is discarded
        and regenerated, up to max_attempts times in total. After that
        GenerationExhausted is raised; no partial record is left behind.
        """
        if user.id is None:
            raise ValueError("Cannot issue a session for an unsaved user.")
        if duration <= timedelta(0):
            raise ValueError("Session duration must be positive.")

        for attempt in range(1, self.max_attempts + 1):
            session = Session(
                id=self._id_factory(),
                user_id=user.id,
                issued_at=self._clock(),
                duration=duration,
                token=self._token_factory(),
            )
            try:
                self._insert(session)
            except ConflictFailure:
                logger.warning("Session id/token collision (attempt %d of %d)", attempt, self.max_attempts)
                continue
            return session

        logger.error("Session generation exhausted after %d attempts", self.max_attempts)
        raise GenerationExhausted(self.max_attempts)

    def _insert(self, session: Session) -> None:
        issued = session.issued_at.timestamp()
        seconds = session.duration.total_seconds()
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    _sessions.insert().values(
                        id=session.id,
                        user_id=session.user_id,
                        token_hash=hash_session_token(session.token),
                        issued_at=issued,
                        duration_seconds=seconds,
                        expires_at=issued + seconds,
                    )
                )
        except IntegrityError as exc:
            raise ConflictFailure("Generated session id or token already exists.") from exc

    def find(self, token: str) -> Session | None:
        """Return the live session for token, or None if unknown or expired."""
        now = self._clock().timestamp()
        with self.engine.connect() as conn:
            row = conn.execute(
                _sessions.select().where(
                    (_sessions.c.token_hash == hash_session_token(token)) & (_sessions.c.expires_at > now)
                )
            ).fetchone()
        return _row_to_session(row, token) if row is not None else None

    def sweep(self) -> int:
        """Delete every session with issued_at + duration <= now. Returns rows removed."""
        now = self._clock().timestamp()
        with self.engine.begin() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.expires_at <= now))
        return result.rowcount

    def count(self) -> int:
        """Number of stored sessions, including expired ones not yet swept."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_sessions)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_session(row, token: str) -> Session:
    return Session(
        id=row.id,
        user_id=row.user_id,
        issued_at=datetime.fromtimestamp(row.issued_at, timezone.utc),
        duration=timedelta(seconds=row.duration_seconds),
        token=token,
    )
