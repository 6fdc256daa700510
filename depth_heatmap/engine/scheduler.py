"""
Periodic task scheduling.

A scheduler is any callable `schedule(interval_sec, callback) -> handle`
where the handle has `cancel()`. Every backend runs callbacks on a single
thread, so the ingest and rescan tasks never overlap.

Every backend (asyncio here, QTimer in the window, textual set_interval in the
terminal UI) wraps its callback with guarded(): a failing run is logged with
its traceback and the timer keeps firing.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol

from ..log import get_logger

logger = get_logger("scheduler")


class PeriodicHandle(Protocol):
    def cancel(self) -> object: ...


Scheduler = Callable[[float, Callable[[], object]], PeriodicHandle]


def guarded(callback: Callable[[], object]) -> Callable[[], None]:
    """Wrap a periodic callback so an exception is logged instead of stopping the timer."""
    name = getattr(callback, "__name__", repr(callback))

    def run() -> None:
        try:
            callback()
        except Exception:
            logger.exception("periodic_task_failed", callback=name)
    return run


async def _run_every(interval_sec: float, callback: Callable[[], object]) -> None:
    run = guarded(callback)
    while True:
        await asyncio.sleep(interval_sec)
        run()


def asyncio_scheduler(interval_sec: float, callback: Callable[[], object]) -> asyncio.Task:
    """Run callback every interval on the running event loop. Returns the Task."""
    return asyncio.get_running_loop().create_task(_run_every(interval_sec, callback))
