"""
auth/errors.py -- Failure taxonomy for the login and session lifecycle.

Each error carries a stable machine-readable `code`. The API layer maps codes
to HTTP responses; nothing outside auth/ needs to inspect messages.

Lookup misses are not exceptions: stores return None and the caller decides
what a miss means (usually 401 at the boundary).
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all auth/ failures."""

    code = "auth_error"


class ValidationFailure(AuthError):
    """No user matches the presented identifier and secret.

    Deliberately carries no detail about which half was wrong.
    """

    code = "bad_credentials"


class Unauthorized(AuthError):
    """Outward credential or session failure. Always rendered generically."""

    code = "unauthorized"


class ConflictFailure(AuthError):
    """A freshly generated session id or token collided with a stored one.

    Raised by the store's insert and retried inside SessionStore.create();
    callers never see it.
    """

    code = "conflict"


class GenerationExhausted(AuthError):
    """Every token generation attempt collided. Fatal for this request."""

    code = "generation_exhausted"

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Session token generation failed after {attempts} attempts.")
        self.attempts = attempts


class DataIntegrityError(AuthError):
    """Stored data violates an invariant the schema should have enforced."""

    code = "data_integrity"
