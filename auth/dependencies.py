"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two ways to present a session token:
  1. Session cookie ("session_token") -- set by POST /auth/login.
  2. Authorization: Bearer <token> header -- API clients.

Each presented token is tried in that order through
SessionLifecycle.authenticate(); the first live one wins, so a stale cookie
does not mask a valid Bearer header.

require_sweep_key() guards the sweep trigger with a shared key from
SWEEP_API_KEY, compared in constant time.

Layer rule: auth/dependencies.py may import from fastapi (for HTTPException/
Request) because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import hmac

from fastapi import HTTPException, Request

from auth.errors import Unauthorized
from auth.lifecycle import SessionLifecycle
from auth.models import Session, User
from auth.tokens import SESSION_COOKIE
from core.config import get_settings


def _presented_tokens(request: Request) -> list[str]:
    tokens = []
    cookie = request.cookies.get(SESSION_COOKIE)
    if cookie:
        tokens.append(cookie)
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        bearer = auth_header[7:]
        if bearer and bearer not in tokens:
            tokens.append(bearer)
    return tokens


def get_current_session(request: Request) -> tuple[Session, User]:
    """Require a live session. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(current=Depends(get_current_session)): ...
    """
    lifecycle: SessionLifecycle = request.app.state.lifecycle
    for token in _presented_tokens(request):
        try:
            return lifecycle.authenticate(token)
        except Unauthorized:
            continue
    raise HTTPException(
        status_code=401,
        detail={"code": "unauthorized", "message": "Authentication required."},
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_sweep_key(request: Request) -> None:
    """Require the X-Sweep-Key header to match SWEEP_API_KEY.

    403 when no key is configured (trigger disabled), 401 on a missing or
    wrong key.
    """
    expected = get_settings().sweep_api_key
    if not expected:
        raise HTTPException(
            status_code=403,
            detail={"code": "sweep_disabled", "message": "The sweep trigger is not enabled."},
        )
    presented = request.headers.get("X-Sweep-Key", "")
    if not hmac.compare_digest(presented.encode(), expected.encode()):
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
