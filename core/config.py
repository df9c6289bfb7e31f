"""
core/config.py -- Centralized application configuration via pydantic-settings.

Every SessionGate knob is an environment variable (or .env entry) named after
the field: SESSION_EXPIRE_SECONDS, SWEEP_INTERVAL_SECONDS, BCRYPT_ROUNDS, ...
get_settings() builds Settings once and caches it.

SECRET_KEY keys the HMAC over stored session tokens. It must be at least 32
characters and stable across restarts.

No imports from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("sessiongate.config")


class Settings(BaseSettings):
    """SessionGate settings. Every field has a default except SECRET_KEY outside DEBUG."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # "" = not configured; validate_secret_key fills it in (DEBUG) or raises.
    secret_key: str = ""
    # Empty string means "use the SQLite file next to auth/store.py".
    database_url: str = ""

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    secure_cookies: bool = False
    session_expire_seconds: int = 24 * 60 * 60
    # 0 disables the in-process sweep loop (run `main.py sweep` from cron instead).
    sweep_interval_seconds: int = 60 * 60
    # Shared key for POST /api/v1/sessions/sweep. Empty = HTTP trigger disabled.
    sweep_api_key: str = ""
    token_max_attempts: int = 5

    # ------------------------------------------------------------------
    # Password hashing
    # ------------------------------------------------------------------

    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    # JSON list in the environment, e.g. ALLOWED_HOSTS='["auth.example.com"]'
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost"]
    login_rate_limit: str = "10/minute"
    rate_limit_storage_uri: str = "memory://"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """DEBUG generates a throwaway key; otherwise a key of 32+ chars is required.

        A generated key changes every restart, so it orphans every stored session.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY; sessions will not survive a restart.")
            else:
                raise ValueError(
                    "SECRET_KEY is required unless DEBUG=true. "
                    "It keys the stored session token hashes, so keep it stable."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    @model_validator(mode="after")
    def validate_session_policy(self) -> "Settings":
        """Reject values that would make session issuance meaningless.

        bcrypt accepts cost factors 4..31; anything else raises deep inside
        gensalt() on the first login, so fail at startup instead.
        """
        if self.session_expire_seconds <= 0:
            raise ValueError("SESSION_EXPIRE_SECONDS must be positive.")
        if self.sweep_interval_seconds < 0:
            raise ValueError("SWEEP_INTERVAL_SECONDS must be zero (disabled) or positive.")
        if self.token_max_attempts < 1:
            raise ValueError("TOKEN_MAX_ATTEMPTS must be at least 1.")
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the cached Settings."""
    return Settings()
