"""
auth/tokens.py -- Password hashing and session token utilities.

Security design decisions:
  Passwords: bcrypt, used directly. Its cost factor (BCRYPT_ROUNDS) makes
       brute-force of low-entropy secrets expensive, and every digest carries
       its own salt. Because of the salt, two hashes of the same password
       differ; comparison always goes through verify_password(), never string
       equality. The _DUMMY_HASH constant enables timing equalization in the
       credential validator so response time does not reveal whether an email
       exists.

  Session tokens: secrets.token_urlsafe(32) gives 256 bits of entropy. The
       store keeps HMAC-SHA256(SECRET_KEY, token) so lookup is O(1) via a
       UNIQUE index while a copy of the database alone yields no usable bearer
       credentials. bcrypt's intentional slowness is unnecessary for values
       with this much entropy.

  SECRET_KEY: sourced from core.config.get_settings(), which validates it at
       startup.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import secrets

import bcrypt

from core.config import get_settings

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

SESSION_COOKIE = "session_token"

# bcrypt input limit. bcrypt 5 raises instead of truncating past it.
MAX_PASSWORD_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a salted bcrypt digest of the given plaintext password.

    Raises ValueError if the UTF-8 encoding is longer than MAX_PASSWORD_BYTES.
    Callers that accept new passwords check this first; see main.add_user.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(encoded, salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt digest.

    A malformed digest or an over-long password is a mismatch, not an error.
    hash_password never accepts the latter, so it cannot have a digest.
    """
    encoded = plain.encode("utf-8")
    if len(encoded) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
    except ValueError:
        return False


async def verify_password_async(plain: str, hashed: str) -> bool:
    """verify_password() on a worker thread.

    bcrypt holds the CPU for the whole cost factor. Running it inline would
    stall the event loop and serialize every concurrent login behind it.
    """
    return await asyncio.to_thread(verify_password, plain, hashed)


# Timing equalization dummy hash.
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("sessiongate_timing_dummy")


# ---------------------------------------------------------------------------
# Session token generation and hashing
# ---------------------------------------------------------------------------


def generate_session_token() -> str:
    """Return a new opaque bearer token (43 URL-safe chars, 256 bits)."""
    return secrets.token_urlsafe(32)


def generate_session_id() -> str:
    """Return a new session identifier (32 hex chars, 128 bits)."""
    return secrets.token_hex(16)


def hash_session_token(raw_token: str) -> str:
    """Return HMAC-SHA256(SECRET_KEY, raw_token) as a hex string.

    Deterministic, so the store can look a session up by hash directly.
    """
    return hmac.new(
        _settings.secret_key.encode(),
        raw_token.encode(),
        hashlib.sha256,
    ).hexdigest()


# ---------------------------------------------------------------------------
# Cookie helper
# ---------------------------------------------------------------------------


def set_session_cookie(response, token: str, max_age: int) -> None:
    """Write the session token as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation.
    secure: only sent over HTTPS when SECURE_COOKIES=true (set in production).
    max_age: matches the session duration so both expire together.
    """
    response.set_cookie(
        SESSION_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=max_age,
    )
