"""Fake playable surface for deterministic testing and the demo UI."""

from __future__ import annotations

import asyncio
from contextlib import suppress

from synced_player.services.surface import (
    CanPlay,
    Ended,
    MetadataLoaded,
    Paused,
    PlaybackRejectedError,
    Played,
    ReadyState,
    SurfaceEvent,
    SurfaceEventHandler,
    SurfaceSubscription,
    TimeUpdated,
    Waiting,
)


class FakeSurface:
    """In-memory media element that simulates loading and playback progress."""

    def __init__(
        self,
        name: str = "surface",
        *,
        tick_interval_s: float = 0.25,
        load_delay_s: float = 0.0,
        duration: float = 0.0,
        ready_state: ReadyState = ReadyState.HAVE_NOTHING,
        reject_play: bool = False,
    ) -> None:
        self.name = name
        self.media_url: str | None = None
        self.reject_play = reject_play
        self._tick_interval_s = tick_interval_s
        self._load_delay_s = load_delay_s
        self._position = 0.0
        self._duration = max(0.0, duration)
        self._volume = 1.0
        self._muted = False
        self._rate = 1.0
        self._paused = True
        self._ready_state = ready_state
        self._handlers: list[SurfaceEventHandler] = []
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._load_task: asyncio.Task[None] | None = None
        self.commands: list[str] = []

    @property
    def position(self) -> float:
        return self._position

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def muted(self) -> bool:
        return self._muted

    @property
    def rate(self) -> float:
        return self._rate

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def ready_state(self) -> ReadyState:
        return self._ready_state

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: SurfaceEventHandler) -> SurfaceSubscription:
        self._handlers.append(handler)

        def detach() -> None:
            with suppress(ValueError):
                self._handlers.remove(handler)

        return SurfaceSubscription(detach)

    async def start(self) -> None:
        """Start the progress ticker."""
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._ticker_loop())

    async def shutdown(self) -> None:
        for task in (self._load_task, self._task):
            if task is None:
                continue
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        self._stop_event.set()
        self._task = None
        self._load_task = None

    async def load(self, media_url: str, *, duration: float) -> None:
        """Swap the media source; readiness rises after the configured delay."""
        if self._load_task is not None:
            self._load_task.cancel()
            self._load_task = None
        self.media_url = media_url
        self._duration = max(0.0, duration)
        self._position = 0.0
        self._paused = True
        self._ready_state = ReadyState.HAVE_NOTHING
        await self._emit(Waiting())
        if self._load_delay_s <= 0:
            await self._finish_load()
            return
        self._load_task = asyncio.create_task(self._delayed_load())

    async def set_ready_state(self, ready_state: ReadyState) -> None:
        """Force a readiness level, emitting the events a media element would."""
        previous = self._ready_state
        self._ready_state = ready_state
        if previous < ReadyState.HAVE_METADATA <= ready_state:
            await self._emit(MetadataLoaded(self._duration))
        if previous < ReadyState.HAVE_CURRENT_DATA <= ready_state:
            await self._emit(CanPlay())
        elif ready_state < ReadyState.HAVE_CURRENT_DATA <= previous:
            await self._emit(Waiting())

    async def play(self) -> None:
        self.commands.append("play")
        if self.reject_play:
            raise PlaybackRejectedError(f"{self.name}: play() rejected by policy")
        if not self._paused:
            return
        self._paused = False
        await self._emit(Played())

    async def pause(self) -> None:
        self.commands.append("pause")
        if self._paused:
            return
        self._paused = True
        await self._emit(Paused())

    async def seek(self, position: float) -> None:
        self.commands.append("seek")
        self._position = _clamp_float(position, 0.0, self._duration)
        await self._emit(TimeUpdated(self._position))

    async def set_volume(self, volume: float) -> None:
        self._volume = _clamp_float(volume, 0.0, 1.0)

    async def set_muted(self, muted: bool) -> None:
        self._muted = bool(muted)

    async def set_rate(self, rate: float) -> None:
        self._rate = float(rate)

    async def drift_to(self, position: float) -> None:
        """Move playback position as if the element advanced on its own."""
        self._position = _clamp_float(position, 0.0, self._duration)
        await self._emit(TimeUpdated(self._position))

    async def _delayed_load(self) -> None:
        try:
            await asyncio.sleep(self._load_delay_s)
            await self._finish_load()
        except asyncio.CancelledError:
            pass
        finally:
            self._load_task = None

    async def _finish_load(self) -> None:
        await self.set_ready_state(ReadyState.HAVE_ENOUGH_DATA)

    async def _ticker_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                await asyncio.sleep(self._tick_interval_s)
                await self._tick()
        except asyncio.CancelledError:
            pass

    async def _tick(self) -> None:
        if self._paused or self._duration <= 0:
            return
        if self._ready_state < ReadyState.HAVE_CURRENT_DATA:
            return
        next_pos = self._position + self._tick_interval_s * self._rate
        ended = next_pos >= self._duration
        self._position = min(next_pos, self._duration)
        await self._emit(TimeUpdated(self._position))
        if ended:
            self._paused = True
            await self._emit(Paused())
            await self._emit(Ended())

    async def _emit(self, event: SurfaceEvent) -> None:
        for handler in list(self._handlers):
            await handler(event)


def _clamp_float(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))
