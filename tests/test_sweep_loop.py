"""
tests/test_sweep_loop.py -- The in-process expiry sweep task from api/main.py.

The loop is driven with a tiny interval and a stub app; no server is started.
"""

from __future__ import annotations

import asyncio
import threading
from types import SimpleNamespace
from unittest.mock import MagicMock

from sqlalchemy.exc import DatabaseError, OperationalError

from api.main import _sweep_loop


def _stub_app(lifecycle) -> SimpleNamespace:
    return SimpleNamespace(state=SimpleNamespace(lifecycle=lifecycle))


def _run_for(app, seconds: float) -> None:
    async def runner() -> None:
        task = asyncio.create_task(_sweep_loop(app, 0.01))
        await asyncio.sleep(seconds)
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    asyncio.run(runner())


def test_loop_sweeps_repeatedly() -> None:
    lifecycle = MagicMock()
    lifecycle.run_expiry_sweep.return_value = 0
    _run_for(_stub_app(lifecycle), 0.1)
    assert lifecycle.run_expiry_sweep.call_count >= 2


def test_loop_survives_storage_errors() -> None:
    lifecycle = MagicMock()
    lifecycle.run_expiry_sweep.side_effect = OperationalError("DELETE", {}, Exception("database is locked"))
    _run_for(_stub_app(lifecycle), 0.1)
    assert lifecycle.run_expiry_sweep.call_count >= 2


def test_loop_survives_any_storage_error() -> None:
    lifecycle = MagicMock()
    lifecycle.run_expiry_sweep.side_effect = DatabaseError("DELETE", {}, Exception("database disk image is malformed"))
    _run_for(_stub_app(lifecycle), 0.1)
    assert lifecycle.run_expiry_sweep.call_count >= 2


def test_sweep_runs_off_the_event_loop_thread() -> None:
    seen: list[int] = []
    lifecycle = MagicMock()
    lifecycle.run_expiry_sweep.side_effect = lambda: seen.append(threading.get_ident()) or 0
    main_thread = threading.get_ident()
    _run_for(_stub_app(lifecycle), 0.1)
    assert seen
    assert main_thread not in seen
