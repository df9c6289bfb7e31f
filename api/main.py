"""
api/main.py -- FastAPI application entry point for SessionGate.

Run with:  uvicorn api.main:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan handles startup (stores, lifecycle controller, sweep task) and
shutdown (cancel sweep task, close DB connections) symmetrically.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.sessions import router as sessions_router
from auth.errors import DataIntegrityError, GenerationExhausted
from auth.lifecycle import SessionLifecycle
from auth.sessions import SessionStore
from auth.store import DEFAULT_DB_URL, UserStore
from core.config import get_settings

VERSION = "0.1.0"

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("sessiongate.api")

# ---------------------------------------------------------------------------
# Background sweep task
# ---------------------------------------------------------------------------


async def _sweep_loop(app: FastAPI, interval: int) -> None:
    """Delete expired sessions every `interval` seconds until cancelled.

    The sweep runs on a worker thread. A storage failure is logged and the
    next tick tries again.
    """
    while True:
        await asyncio.sleep(interval)
        try:
            await asyncio.to_thread(app.state.lifecycle.run_expiry_sweep)
        except SQLAlchemyError:
            logger.exception("Expiry sweep failed; retrying in %ds", interval)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open both stores, build the lifecycle controller, start the sweep task."""
    settings = get_settings()
    logger.info("SessionGate API starting up")
    db_url = settings.database_url or DEFAULT_DB_URL
    app.state.user_store = UserStore(db_url=db_url)
    app.state.session_store = SessionStore(db_url=db_url, max_attempts=settings.token_max_attempts)
    app.state.lifecycle = SessionLifecycle(
        app.state.user_store,
        app.state.session_store,
        default_duration=timedelta(seconds=settings.session_expire_seconds),
    )
    logger.info("Auth initialized (session duration=%ds)", settings.session_expire_seconds)

    app.state.sweep_task = None
    if settings.sweep_interval_seconds > 0:
        app.state.sweep_task = asyncio.create_task(_sweep_loop(app, settings.sweep_interval_seconds))
        logger.info("Expiry sweep scheduled every %ds", settings.sweep_interval_seconds)
    else:
        logger.info("In-process expiry sweep disabled")

    yield

    if app.state.sweep_task is not None:
        app.state.sweep_task.cancel()
    app.state.session_store.close()
    app.state.user_store.close()
    logger.info("SessionGate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="SessionGate API",
    description="Password login with opaque, expiring session tokens.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost", "http://localhost:3000", "http://127.0.0.1"],
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization", "X-Sweep-Key"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

app.state.limiter = limiter

# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(sessions_router, prefix="/api/v1", tags=["Sessions"])


# ---------------------------------------------------------------------------
# Exception handlers (all render the ErrorResponse envelope)
# ---------------------------------------------------------------------------


def _error(status_code: int, code: str, message: str, detail: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail)).model_dump(),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error(429, "rate_limited", "Too many requests.", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed login or query input."""
    return _error(422, "validation_error", "Request validation failed.", str(exc.errors()))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Auth dependencies raise with a dict detail, which becomes the error body as-is."""
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=exc.headers,
        )
    response = _error(exc.status_code, f"http_{exc.status_code}", str(exc.detail))
    for name, value in (exc.headers or {}).items():
        response.headers[name] = value
    return response


@app.exception_handler(OperationalError)
async def storage_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    """Storage unreachable or locked. Retryable; no driver detail in the body."""
    logger.error("Storage error on %s %s: %s", request.method, request.url.path, exc.orig)
    response = _error(503, "storage_unavailable", "Storage is temporarily unavailable. Retry shortly.")
    response.headers["Retry-After"] = "5"
    return response


@app.exception_handler(GenerationExhausted)
@app.exception_handler(DataIntegrityError)
async def internal_auth_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Server-side auth faults. Logged in full, rendered generically."""
    logger.error("Auth fault on %s %s: %s", request.method, request.url.path, exc)
    return _error(500, "internal_error", "An unexpected error occurred.")


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else: logged with traceback, rendered as a bare 500."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint (no auth, no rate limit, never touches storage)
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", include_in_schema=True, tags=["Health"])
async def health() -> HealthResponse:
    """Return API liveness and current version."""
    return HealthResponse(version=VERSION)
