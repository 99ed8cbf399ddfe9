"""Guard state machine suppressing synchronization during sensitive windows.

Allowed transitions (anything else is refused and logged at debug level):

    idle        -> loading | reconciling | seeking
    loading     -> loading | idle
    reconciling -> reconciling | loading | seeking | idle
    seeking     -> seeking | loading | idle

`loading` can only be left through its own timed release, so nothing started
while a new video is loading can reclaim the guard. A user seek preempts an
in-flight reconciliation hold.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Literal

logger = logging.getLogger(__name__)

GuardState = Literal["idle", "loading", "reconciling", "seeking"]

_ALLOWED: dict[GuardState, frozenset[GuardState]] = {
    "idle": frozenset({"loading", "reconciling", "seeking"}),
    "loading": frozenset({"loading", "idle"}),
    "reconciling": frozenset({"reconciling", "loading", "seeking", "idle"}),
    "seeking": frozenset({"seeking", "loading", "idle"}),
}


class SyncGuard:
    """Single guard slot with timed release back to `idle`."""

    def __init__(self) -> None:
        self._state: GuardState = "idle"
        self._release_handle: asyncio.TimerHandle | None = None

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return self._state == "idle"

    def can_enter(self, state: GuardState) -> bool:
        return state in _ALLOWED[self._state]

    def enter(self, state: GuardState, *, hold_s: float) -> bool:
        """Enter `state` for `hold_s` seconds, re-arming the release timer.

        Returns False when the transition is not allowed from the current state.
        """
        if state == "idle":
            raise ValueError("use release() to return to idle")
        if not self.can_enter(state):
            logger.debug("Guard transition refused: %s -> %s", self._state, state)
            return False
        self._cancel_release()
        self._state = state
        loop = asyncio.get_running_loop()
        self._release_handle = loop.call_later(max(0.0, hold_s), self._expire)
        return True

    def release(self) -> None:
        self._cancel_release()
        self._state = "idle"

    def _expire(self) -> None:
        self._release_handle = None
        self._state = "idle"

    def _cancel_release(self) -> None:
        if self._release_handle is not None:
            self._release_handle.cancel()
            self._release_handle = None
