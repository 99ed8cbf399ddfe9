"""Readiness wait and one-time state copy after an active-surface flip.

The controller flips its active-surface flag synchronously so commands target
the new surface at once. This module bridges the gap until that surface's media
element can accept seek/play: poll on a fixed interval (bounded), then copy
state from the previous surface and schedule a reconciliation pass.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from synced_player.services.reconciler import Reconciler, mirror_playback
from synced_player.services.scheduling import DeferredCall
from synced_player.services.surface import Surface, SurfaceName, is_ready
from synced_player.services.sync_guard import SyncGuard
from synced_player.services.sync_tuning import SyncTuning

logger = logging.getLogger(__name__)


class SurfaceReadinessTimeout(Exception):
    """Target surface never reported ready within the retry budget."""

    def __init__(self, surface: SurfaceName, attempts: int) -> None:
        super().__init__(f"{surface} surface not ready after {attempts} attempts")
        self.surface = surface
        self.attempts = attempts


class SurfaceHandover:
    """Runs at most one handover at a time; a new one supersedes the last."""

    def __init__(
        self,
        *,
        get_surface: Callable[[SurfaceName], Surface | None],
        guard: SyncGuard,
        reconciler: Reconciler,
        tuning: SyncTuning,
        on_timeout: Callable[[SurfaceReadinessTimeout], Awaitable[None]],
    ) -> None:
        self._get_surface = get_surface
        self._guard = guard
        self._reconciler = reconciler
        self._tuning = tuning
        self._on_timeout = on_timeout
        self._slot = DeferredCall("handover")
        self.completed = 0

    @property
    def pending(self) -> bool:
        return self._slot.pending

    def begin(self, previous: SurfaceName | None, target: SurfaceName) -> None:
        self._slot.arm(0.0, lambda: self._run(previous, target))

    def cancel(self) -> None:
        self._slot.cancel()

    async def aclose(self) -> None:
        await self._slot.aclose()

    async def _run(self, previous: SurfaceName | None, target: SurfaceName) -> None:
        try:
            surface = await self._wait_until_ready(target)
        except SurfaceReadinessTimeout as exc:
            logger.warning(
                "Handover to %s surface skipped state copy: %s",
                target,
                exc,
                extra={"surface": target},
            )
            await self._on_timeout(exc)
            return
        if self._guard.state == "loading":
            logger.debug("Handover copy skipped while a new video is loading")
        elif previous is not None and previous != target:
            source = self._get_surface(previous)
            if source is not None and source is not surface and is_ready(source):
                self._guard.enter("reconciling", hold_s=self._tuning.handover_cooldown_s)
                await mirror_playback(
                    source,
                    surface,
                    drift_threshold_s=self._tuning.handover_drift_s,
                    epsilon=None,
                    target_name=target,
                )
                logger.debug("Handover copied %s -> %s", previous, target)
        self.completed += 1
        self._reconciler.schedule(self._tuning.post_handover_sync_delay_s)

    async def _wait_until_ready(self, target: SurfaceName) -> Surface:
        attempts = max(1, self._tuning.ready_max_attempts)
        for attempt in range(attempts):
            surface = self._get_surface(target)
            if surface is not None and is_ready(surface) and self._guard.state != "seeking":
                if attempt:
                    logger.debug("%s surface ready after %d retries", target, attempt)
                return surface
            await asyncio.sleep(self._tuning.ready_poll_interval_s)
        raise SurfaceReadinessTimeout(target, attempts)
