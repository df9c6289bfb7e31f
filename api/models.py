"""
API request and response models for SessionGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Wire names are camelCase (sessionToken, removedCount) and stable; Python
attribute names stay snake_case via field aliases. Always serialize with
model_dump(by_alias=True).
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Session, User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    max_length on password keeps inputs far from anything that would make
    bcrypt work on attacker-sized payloads. Passwords are not stripped:
    whitespace is part of the secret.
    """

    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=255)
    persistent: bool = Field(
        default=False,
        description="Issue a session that effectively never expires.",
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    """Successful login. sessionToken is the bearer credential."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    session_token: str = Field(alias="sessionToken")
    token_type: str = Field(default="bearer", alias="tokenType")
    expires_at: str = Field(alias="expiresAt")

    @classmethod
    def from_session(cls, session: Session) -> "LoginResponse":
        return cls(session_token=session.token, expires_at=session.expires_at.isoformat())


class MeResponse(BaseModel):
    """Identity and session behind the presented bearer token."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: int = Field(alias="userId")
    email: str
    display_name: str = Field(alias="displayName")
    is_guest: bool = Field(alias="isGuest")
    session_id: str = Field(alias="sessionId")
    expires_at: str = Field(alias="expiresAt")

    @classmethod
    def from_session(cls, session: Session, user: User) -> "MeResponse":
        return cls(
            user_id=user.id,
            email=user.email,
            display_name=user.display_name,
            is_guest=user.is_guest,
            session_id=session.id,
            expires_at=session.expires_at.isoformat(),
        )


class SweepResponse(BaseModel):
    """Result of POST /api/v1/sessions/sweep."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    removed_count: int = Field(alias="removedCount")


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
