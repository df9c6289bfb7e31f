"""
api/routes/v1/sessions.py -- Expiry sweep trigger.

Routes:
  POST /api/v1/sessions/sweep -- delete expired sessions; returns removedCount

Intended for an external scheduler (cron, k8s CronJob) when the in-process
sweep loop is disabled with SWEEP_INTERVAL_SECONDS=0. Guarded by the
X-Sweep-Key header; disabled entirely while SWEEP_API_KEY is unset.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import SweepResponse
from auth.dependencies import require_sweep_key
from auth.lifecycle import SessionLifecycle

router = APIRouter()


@router.post("/sessions/sweep", response_model=SweepResponse, dependencies=[Depends(require_sweep_key)])
def sweep(request: Request) -> JSONResponse:
    """Run one expiry sweep now.

    Plain def: FastAPI runs it in its threadpool, so a long DELETE does not
    block the event loop.
    """
    lifecycle: SessionLifecycle = request.app.state.lifecycle
    removed = lifecycle.run_expiry_sweep()
    return JSONResponse(content=SweepResponse(removed_count=removed).model_dump(by_alias=True))
