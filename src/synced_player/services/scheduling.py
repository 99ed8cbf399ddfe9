"""Single-slot deferred coroutine runner used for debounce and delay timers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress

logger = logging.getLogger(__name__)


class DeferredCall:
    """Runs one coroutine factory after a delay; re-arming supersedes it.

    Failures inside the deferred coroutine are logged and absorbed so a timer
    can never take down the event loop.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def arm(self, delay_s: float, factory: Callable[[], Awaitable[None]]) -> None:
        self.cancel()
        self._task = asyncio.create_task(
            self._run(max(0.0, delay_s), factory), name=f"deferred:{self.name}"
        )

    def cancel(self) -> None:
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        # Never cancel the task currently running this call (self re-arm).
        if task is asyncio.current_task():
            return
        task.cancel()

    async def aclose(self) -> None:
        task = self._task
        self._task = None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    async def _run(
        self, delay_s: float, factory: Callable[[], Awaitable[None]]
    ) -> None:
        try:
            await asyncio.sleep(delay_s)
            await factory()
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("Deferred call %s failed", self.name)
