"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container). Stores and the lifecycle
controller do the work; the only logic here is the expiry arithmetic that
defines what "live" means.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass
class User:
    """An account that can log in.

    email is the login identifier and is unique across all users.
    Users are created by the provisioning path (CLI / UserStore.create_user);
    the login flow only reads them.
    """

    email: str
    hashed_password: str
    display_name: str = ""
    is_guest: bool = False
    id: int | None = None
    created_at: str | None = None


@dataclass
class Session:
    """One authenticated session.

    token is the raw bearer credential. It is only ever held in memory: the
    store persists an HMAC of it, so a Session read back from the store carries
    the token the caller presented.

    user_id is a non-owning reference. Many sessions may share one user.
    """

    id: str
    user_id: int
    issued_at: datetime
    duration: timedelta
    token: str

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + self.duration

    def is_live(self, now: datetime) -> bool:
        """True while now < issued_at + duration; expired from that instant on."""
        return now < self.expires_at
