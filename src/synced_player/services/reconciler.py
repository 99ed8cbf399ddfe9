"""Debounced convergence of the inactive surface toward the active one.

Two independent media elements bound two-way on every event feed back into each
other. The engine instead copies only when drift exceeds a threshold, runs at
most one pass per debounce window while position events keep arriving, and
holds the shared guard after each copy so the events its own seek triggers
cannot re-enter it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from synced_player.services.scheduling import DeferredCall
from synced_player.services.surface import Surface, is_ready, run_surface_command
from synced_player.services.sync_guard import SyncGuard
from synced_player.services.sync_tuning import SyncTuning

logger = logging.getLogger(__name__)

SurfacePair = tuple[str, Surface | None, str, Surface | None]


async def mirror_playback(
    source: Surface,
    target: Surface,
    *,
    drift_threshold_s: float,
    epsilon: float | None,
    target_name: str,
) -> None:
    """Copy transport state from `source` into `target`.

    Position is copied only past `drift_threshold_s`. With `epsilon=None`
    volume, muted and rate are copied unconditionally.
    """
    if abs(source.position - target.position) > drift_threshold_s:
        await run_surface_command(
            target.seek(source.position), surface=target_name, what="seek"
        )
    if epsilon is None or abs(target.volume - source.volume) > epsilon:
        await run_surface_command(
            target.set_volume(source.volume), surface=target_name, what="set_volume"
        )
    if epsilon is None or target.muted != source.muted:
        await run_surface_command(
            target.set_muted(source.muted), surface=target_name, what="set_muted"
        )
    if epsilon is None or abs(target.rate - source.rate) > epsilon:
        await run_surface_command(
            target.set_rate(source.rate), surface=target_name, what="set_rate"
        )
    if not source.paused and target.paused:
        await run_surface_command(target.play(), surface=target_name, what="play")
    elif source.paused and not target.paused:
        await run_surface_command(target.pause(), surface=target_name, what="pause")


class Reconciler:
    """Owns the debounce timer and the steady-state copy pass."""

    def __init__(
        self,
        *,
        resolve_pair: Callable[[], SurfacePair | None],
        guard: SyncGuard,
        tuning: SyncTuning,
    ) -> None:
        self._resolve_pair = resolve_pair
        self._guard = guard
        self._tuning = tuning
        self._timer = DeferredCall("reconcile")
        self.passes = 0

    @property
    def pending(self) -> bool:
        return self._timer.pending

    def schedule(self, delay_s: float | None = None) -> None:
        """(Re-)arm the pass; defaults to the quiescence debounce."""
        delay = self._tuning.reconcile_debounce_s if delay_s is None else delay_s
        self._timer.arm(delay, self.reconcile_now)

    def nudge(self) -> None:
        """Arm the pass for a position event unless one is already armed.

        An armed pass is never pushed back, so continuous position events still
        get a pass at most `reconcile_debounce_s` after the first of them.
        """
        if not self._timer.pending:
            self.schedule()

    def cancel(self) -> None:
        self._timer.cancel()

    async def aclose(self) -> None:
        await self._timer.aclose()

    async def reconcile_now(self) -> bool:
        """Run one pass immediately; returns True when a copy was performed."""
        if not self._guard.is_idle:
            logger.debug("Reconcile skipped: guard is %s", self._guard.state)
            return False
        pair = self._resolve_pair()
        if pair is None:
            return False
        active_name, active, inactive_name, inactive = pair
        if active is None or inactive is None:
            return False
        if not (is_ready(active) and is_ready(inactive)):
            logger.debug("Reconcile skipped: surfaces not ready")
            return False
        if not self._guard.enter("reconciling", hold_s=self._tuning.reconcile_cooldown_s):
            return False
        drift = abs(active.position - inactive.position)
        await mirror_playback(
            active,
            inactive,
            drift_threshold_s=self._tuning.reconcile_drift_s,
            epsilon=self._tuning.level_epsilon,
            target_name=inactive_name,
        )
        self.passes += 1
        logger.debug(
            "Reconciled %s -> %s (drift %.3fs)",
            active_name,
            inactive_name,
            drift,
        )
        return True
