"""
auth/lifecycle.py -- Session lifecycle: login, bearer authentication, expiry sweep.

SessionLifecycle is the only entry point the API and CLI use. It composes the
credential validator and the session store and owns the outward error policy:
every credential or session failure leaves here as a bare Unauthorized, with
the underlying cause suppressed so nothing about it reaches a response.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from auth.errors import Unauthorized, ValidationFailure
from auth.models import Session, User
from auth.sessions import SessionStore
from auth.store import UserStore
from auth.validator import CredentialValidator

logger = logging.getLogger("sessiongate.lifecycle")

DEFAULT_SESSION_DURATION = timedelta(hours=24)

# "Never expires". timedelta has no infinity, so this is a finite duration
# (867,240 hours, about 99 years) far past any sweep the deployment will run.
NEVER_EXPIRES = timedelta(hours=867_240)


class SessionLifecycle:
    """Orchestrates validate -> create for logins and fronts the sweep.

    Usage:
        lifecycle = SessionLifecycle(users, sessions)
        session = await lifecycle.login("alice@example.com", "secret")
        session, user = lifecycle.authenticate(session.token)
        lifecycle.run_expiry_sweep()
    """

    def __init__(
        self,
        users: UserStore,
        sessions: SessionStore,
        default_duration: timedelta = DEFAULT_SESSION_DURATION,
    ) -> None:
        self._users = users
        self._sessions = sessions
        self._validator = CredentialValidator(users)
        self.default_duration = default_duration

    async def login(self, identifier: str, secret: str, duration: timedelta | None = None) -> Session:
        """Validate credentials and issue a session.

        duration defaults to default_duration; pass NEVER_EXPIRES for a
        session that no realistic sweep will ever remove.

        Storage calls run on worker threads. Cancellation before the insert
        starts leaves no session; once it has started the row is committed
        and simply expires unused.

        Raises Unauthorized for bad credentials. GenerationExhausted and
        storage errors propagate unchanged -- those are server failures.
        """
        try:
            user = await self._validator.validate(identifier, secret)
        except ValidationFailure:
            logger.info("Login rejected")
            raise Unauthorized("Invalid email or password.") from None

        if duration is None:
            duration = self.default_duration
        session = await asyncio.to_thread(self._sessions.create, user, duration)
        logger.info("Session %s issued for user_id=%s (expires %s)", session.id, user.id, session.expires_at.isoformat())
        return session

    def authenticate(self, token: str) -> tuple[Session, User]:
        """Resolve a bearer token to its live session and owning user.

        Raises Unauthorized when the token is unknown, expired, or belongs to
        a user that no longer exists.
        """
        session = self._sessions.find(token)
        if session is None:
            raise Unauthorized("Authentication required.")
        user = self._users.get_by_id(session.user_id)
        if user is None:
            raise Unauthorized("Authentication required.")
        return session, user

    def run_expiry_sweep(self) -> int:
        """Delete expired sessions. Returns the number removed."""
        removed = self._sessions.sweep()
        logger.info("Expiry sweep removed %d session(s)", removed)
        return removed
