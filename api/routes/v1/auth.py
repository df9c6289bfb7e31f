"""
api/routes/v1/auth.py -- Login and session identity REST endpoints.

Routes:
  POST /api/v1/auth/login  -- password login; returns sessionToken and sets cookie
  GET  /api/v1/auth/me     -- user and session behind the presented token

Security:
  POST /login is rate-limited per client IP (LOGIN_RATE_LIMIT, default 10/minute).
  SessionLifecycle.login() provides timing equalization -- never inline the
  user lookup and password check here.
  Cache-Control: no-store on login responses, success and failure alike.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, MeResponse
from auth.dependencies import get_current_session
from auth.errors import Unauthorized
from auth.lifecycle import NEVER_EXPIRES, SessionLifecycle
from auth.models import Session, User
from auth.tokens import set_session_cookie
from core.config import get_settings

_settings = get_settings()

# Auth policy:
# - POST /api/v1/auth/login: public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:    requires a live session (get_current_session)
router = APIRouter()


@limiter.limit(_settings.login_rate_limit)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/login", response_model=LoginResponse)
async def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; issue a session.

    Returns the same generic error for an unknown email and a wrong password
    ("bad_credentials") so the response never reveals which one it was.
    """
    lifecycle: SessionLifecycle = request.app.state.lifecycle
    duration = NEVER_EXPIRES if body.persistent else None
    try:
        session = await lifecycle.login(body.email, body.password, duration)
    except Unauthorized:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "bad_credentials", "message": "Invalid email or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse.from_session(session).model_dump(by_alias=True),
    )
    set_session_cookie(resp, session.token, max_age=int(session.duration.total_seconds()))
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=MeResponse)
async def me(current: tuple[Session, User] = Depends(get_current_session)) -> JSONResponse:
    """Return identity information for the session behind the presented token."""
    session, user = current
    return JSONResponse(content=MeResponse.from_session(session, user).model_dump(by_alias=True))
