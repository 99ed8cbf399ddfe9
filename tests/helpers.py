"""Shared builders for controller scenarios."""

from __future__ import annotations

import asyncio

from synced_player.services.fake_surface import FakeSurface
from synced_player.services.navigation import InMemoryNavigator
from synced_player.services.playback_controller import SyncedPlaybackController
from synced_player.services.playback_state import PlaylistContext, VideoDescriptor
from synced_player.services.surface import ReadyState
from synced_player.services.sync_tuning import SyncTuning
from synced_player.services.visibility import ManualVisibilityObserver

# Every delay shrunk 5x; thresholds keep their production values.
FAST_TUNING = SyncTuning().scaled(0.2)


def run(coro):
    """Run async scenario from sync test functions."""
    return asyncio.run(coro)


def video(video_id: str = "A", duration: float = 120.0) -> VideoDescriptor:
    return VideoDescriptor(
        id=video_id,
        title=f"Video {video_id}",
        media_url=f"memory://{video_id}.mp4",
        duration_hint=duration,
    )


def playlist(*ids: str, index: int = 0, auto_advance: bool = True) -> PlaylistContext:
    return PlaylistContext(
        playlist_id="P",
        ordered_video_ids=tuple(ids),
        current_index=index,
        auto_advance=auto_advance,
    )


class FakeViewport:
    def __init__(self, width: int = 1280, height: int = 720) -> None:
        self.width = width
        self.height = height
        self.scrolled: list[object] = []

    def viewport_size(self) -> tuple[int, int]:
        return self.width, self.height

    def scroll_into_view(self, element: object) -> None:
        self.scrolled.append(element)


class Harness:
    """Controller wired to two fake surfaces, a navigator and an observer."""

    def __init__(
        self,
        *,
        initial_route: str = "/",
        tuning: SyncTuning = FAST_TUNING,
        observer: object | None = None,
        tick_interval_s: float = 0.25,
    ) -> None:
        self.events: list[object] = []
        self.navigator = InMemoryNavigator(initial_route)
        self.viewport = FakeViewport()
        self.observer = ManualVisibilityObserver() if observer is None else observer
        self.main = FakeSurface("main", tick_interval_s=tick_interval_s)
        self.mini = FakeSurface("mini", tick_interval_s=tick_interval_s)
        self.controller = SyncedPlaybackController(
            emit_event=self._emit,
            navigator=self.navigator,
            viewport=self.viewport,
            visibility_observer=self.observer,  # type: ignore[arg-type]
            tuning=tuning,
        )

    async def _emit(self, event: object) -> None:
        self.events.append(event)

    async def attach(self) -> None:
        await self.controller.attach_surface("main", self.main)
        await self.controller.attach_surface("mini", self.mini)

    async def start_tickers(self) -> None:
        await self.main.start()
        await self.mini.start()

    async def load(
        self,
        descriptor: VideoDescriptor,
        context: PlaylistContext | None = None,
        start_index: int = 0,
    ) -> None:
        """Load a video, feed media into both surfaces and wait for main."""
        await self.controller.load_video(descriptor, context, start_index)
        duration = descriptor.duration_hint or 60.0
        await self.main.load(descriptor.media_url, duration=duration)
        await self.mini.load(descriptor.media_url, duration=duration)
        await self.settle()

    async def settle(self) -> None:
        """Wait past the load guard and the post-handover reconcile."""
        tuning = self.controller.tuning
        await asyncio.sleep(
            tuning.load_guard_s + tuning.post_handover_sync_delay_s + 0.1
        )

    async def shutdown(self) -> None:
        await self.controller.shutdown()
        await self.main.shutdown()
        await self.mini.shutdown()


def ready_surface(name: str, duration: float = 120.0) -> FakeSurface:
    surface = FakeSurface(name, duration=duration, ready_state=ReadyState.HAVE_ENOUGH_DATA)
    return surface
