"""
auth/validator.py -- Credential validation with timing equalization.

Always runs bcrypt whether or not the email exists. This prevents an attacker
from enumerating valid emails by measuring response time differences:
  - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as a real check)
  - Wrong password: bcrypt runs against the stored digest (same cost)

Both failures raise the same ValidationFailure with the same message.

The user lookup and the bcrypt check both run on worker threads, so a slow
or locked database stalls only this login, not the event loop.
"""

from __future__ import annotations

import asyncio
import logging

from auth.errors import ValidationFailure
from auth.models import User
from auth.store import UserStore
from auth.tokens import _DUMMY_HASH, verify_password_async

logger = logging.getLogger("sessiongate.auth")


class CredentialValidator:
    """Read-only check of (email, password) against the user store."""

    def __init__(self, users: UserStore) -> None:
        self._users = users

    async def validate(self, identifier: str, secret: str) -> User:
        """Return the user whose email is identifier and whose digest matches secret.

        Raises ValidationFailure on any mismatch. Do NOT add an early return
        before the bcrypt call -- that re-introduces the timing side channel.
        """
        user = await asyncio.to_thread(self._users.get_by_email, identifier)
        digest = user.hashed_password if user is not None else _DUMMY_HASH
        matched = await verify_password_async(secret, digest)
        if user is None or not matched:
            raise ValidationFailure("Invalid email or password.")
        return user
