"""Synchronized playback across the main and mini surfaces.

`SyncedPlaybackController` is the single authority over `PlaybackState`. It
routes events from the active surface into state, resolves transport commands
against the active surface once per call, hands control between surfaces, and
keeps the inactive surface converged through the reconciler. Visibility samples
of the main surface drive automatic promotion to the mini player, and
end-of-video drives playlist auto-advance through the navigator.

State is mutated only between awaits on the owning event loop, so snapshot
replacement needs no lock.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import replace
from typing import Any, Callable

from synced_player.events import PlaybackStateChanged, VideoChanged
from synced_player.services.handover import SurfaceHandover, SurfaceReadinessTimeout
from synced_player.services.mini_player import MiniPlayerLayout
from synced_player.services.navigation import Navigator, watch_path, watch_route
from synced_player.services.playback_state import (
    MiniPlayerState,
    PlaybackState,
    PlaylistContext,
    VideoDescriptor,
)
from synced_player.services.reconciler import Reconciler, SurfacePair
from synced_player.services.scheduling import DeferredCall
from synced_player.services.surface import (
    SURFACE_NAMES,
    CanPlay,
    Ended,
    MetadataLoaded,
    Paused,
    Played,
    Surface,
    SurfaceEvent,
    SurfaceName,
    SurfaceSubscription,
    TimeUpdated,
    Waiting,
    is_ready,
    run_surface_command,
)
from synced_player.services.sync_guard import GuardState, SyncGuard
from synced_player.services.sync_tuning import SyncTuning, clamp_rate, clamp_volume
from synced_player.services.visibility import (
    ObservationHandle,
    Viewport,
    VisibilityObserver,
    VisibilitySample,
)

logger = logging.getLogger(__name__)


def _format_user_error(
    *, what_failed: str, likely_cause: str, next_step: str, detail: str | None = None
) -> str:
    message = f"{what_failed}\nLikely cause: {likely_cause}\nNext step: {next_step}"
    if detail:
        message = f"{message}\nDetails: {detail}"
    return message


def _other(name: SurfaceName) -> SurfaceName:
    return "mini" if name == "main" else "main"


class SyncedPlaybackController:
    """Owns playback state for both surfaces and emits events to subscribers."""

    def __init__(
        self,
        *,
        emit_event: Callable[[object], Awaitable[None]],
        navigator: Navigator,
        viewport: Viewport | None = None,
        visibility_observer: VisibilityObserver | None = None,
        tuning: SyncTuning | None = None,
        layout: MiniPlayerLayout | None = None,
        initial_state: PlaybackState | None = None,
    ) -> None:
        self._emit_event = emit_event
        self._navigator = navigator
        self._viewport = viewport
        self._visibility_observer = visibility_observer
        self._tuning = tuning or SyncTuning()
        self._layout = layout or MiniPlayerLayout()
        self._state = initial_state or PlaybackState(
            mini_player=MiniPlayerState(size=self._layout.default_size())
        )
        self._surfaces: dict[SurfaceName, Surface] = {}
        self._subscriptions: dict[SurfaceName, SurfaceSubscription] = {}
        self._guard = SyncGuard()
        self._reconciler = Reconciler(
            resolve_pair=self._resolve_pair,
            guard=self._guard,
            tuning=self._tuning,
        )
        self._handover = SurfaceHandover(
            get_surface=self._surfaces.get,
            guard=self._guard,
            reconciler=self._reconciler,
            tuning=self._tuning,
            on_timeout=self._handle_handover_timeout,
        )
        self._activation = DeferredCall("activation")
        self._resume = DeferredCall("resume")
        self._scroll = DeferredCall("scroll")
        self._main_element: Any = None
        self._observation: ObservationHandle | None = None
        self._observer_warned = False

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def tuning(self) -> SyncTuning:
        return self._tuning

    @property
    def guard_state(self) -> GuardState:
        return self._guard.state

    @property
    def reconcile_passes(self) -> int:
        return self._reconciler.passes

    @property
    def handovers_completed(self) -> int:
        return self._handover.completed

    def surface(self, name: SurfaceName) -> Surface | None:
        return self._surfaces.get(name)

    async def attach_surface(self, name: SurfaceName, surface: Surface) -> None:
        """Subscribe to a UI-owned surface and push the shared levels into it."""
        if name not in SURFACE_NAMES:
            raise ValueError(f"unknown surface: {name!r}")
        if self._surfaces.get(name) is surface:
            return
        self.detach_surface(name)
        self._surfaces[name] = surface

        async def _on_event(event: SurfaceEvent) -> None:
            await self._handle_surface_event(name, event)

        self._subscriptions[name] = surface.subscribe(_on_event)
        await run_surface_command(
            surface.set_volume(self._state.volume), surface=name, what="set_volume"
        )
        await run_surface_command(
            surface.set_muted(self._state.muted), surface=name, what="set_muted"
        )
        await run_surface_command(
            surface.set_rate(self._state.playback_rate), surface=name, what="set_rate"
        )
        logger.debug("Attached %s surface", name, extra={"surface": name})

    def detach_surface(self, name: SurfaceName) -> None:
        subscription = self._subscriptions.pop(name, None)
        if subscription is not None:
            subscription.close()
        if self._surfaces.pop(name, None) is not None:
            logger.debug("Detached %s surface", name, extra={"surface": name})

    async def shutdown(self) -> None:
        """Cancel every pending timer and drop surface and observer handles."""
        for slot in (self._activation, self._resume, self._scroll):
            await slot.aclose()
        await self._handover.aclose()
        await self._reconciler.aclose()
        self._guard.release()
        for name in list(self._surfaces):
            self.detach_surface(name)
        if self._observation is not None:
            self._observation.close()
            self._observation = None
        self._main_element = None

    async def load_video(
        self,
        video: VideoDescriptor,
        playlist: PlaylistContext | None = None,
        start_index: int = 0,
    ) -> None:
        """Load a new video onto both surfaces and hand control back to main."""
        current = self._state.current_video
        if current is not None and current.id == video.id:
            logger.debug("load_video ignored: %s is already loaded", video.id)
            return
        self._guard.enter("loading", hold_s=self._tuning.load_guard_s)
        self._activation.cancel()
        self._resume.cancel()
        self._handover.cancel()
        self._reconciler.cancel()
        if self._state.mini_player.is_active:
            logger.info("Mini player deactivated by new video load")
        for name, surface in list(self._surfaces.items()):
            await run_surface_command(surface.pause(), surface=name, what="pause")
            await run_surface_command(surface.seek(0.0), surface=name, what="seek")
        self._state = replace(
            self._state,
            current_video=video,
            position=0.0,
            duration=0.0,
            is_playing=False,
            is_buffering=True,
            playlist=playlist.with_index(start_index) if playlist is not None else None,
            mini_player=replace(
                self._state.mini_player,
                is_active=False,
                is_dragging=False,
                is_resizing=False,
            ),
            error=None,
        )
        logger.info("Loaded video %s", video.id)
        await self._emit_event(VideoChanged(video))
        await self._emit_state()
        self._activation.arm(self._tuning.mount_delay_s, self._activate_main_if_loaded)

    async def play(self) -> None:
        name, surface = self._active()
        if name is None or surface is None:
            return
        if not is_ready(surface):
            logger.debug("play ignored: %s surface not ready", name)
            return
        ok = await run_surface_command(surface.play(), surface=name, what="play")
        await self._apply(is_playing=not surface.paused)
        if ok:
            self._reconciler.schedule(self._tuning.post_play_sync_delay_s)

    async def pause(self) -> None:
        name, surface = self._active()
        if name is None or surface is None:
            return
        ok = await run_surface_command(surface.pause(), surface=name, what="pause")
        await self._apply(is_playing=not surface.paused)
        if ok:
            self._reconciler.schedule(self._tuning.post_pause_sync_delay_s)

    async def toggle_play(self) -> None:
        if self._state.is_playing:
            await self.pause()
        else:
            await self.play()

    async def seek_to(self, position: float) -> None:
        target = _clamp_float(float(position), 0.0, max(0.0, self._state.duration))
        self._guard.enter("seeking", hold_s=self._tuning.seek_guard_s)
        name, surface = self._active()
        if name is not None and surface is not None:
            await run_surface_command(surface.seek(target), surface=name, what="seek")
        await self._apply(position=target)
        self._reconciler.schedule()

    async def set_volume_level(self, volume: float) -> None:
        level = clamp_volume(volume)
        muted = level == 0.0
        for name, surface in list(self._surfaces.items()):
            await run_surface_command(surface.set_volume(level), surface=name, what="set_volume")
            await run_surface_command(surface.set_muted(muted), surface=name, what="set_muted")
        await self._apply(volume=level, muted=muted)

    async def toggle_mute(self) -> None:
        muted = not self._state.muted
        for name, surface in list(self._surfaces.items()):
            await run_surface_command(surface.set_muted(muted), surface=name, what="set_muted")
        await self._apply(muted=muted)

    async def set_playback_speed(self, rate: float) -> None:
        speed = clamp_rate(rate)
        for name, surface in list(self._surfaces.items()):
            await run_surface_command(surface.set_rate(speed), surface=name, what="set_rate")
        await self._apply(playback_rate=speed)

    async def activate_mini_player(self) -> None:
        if self._state.current_video is None:
            logger.debug("activate_mini_player ignored: no video loaded")
            return
        mini = self._state.mini_player
        if self._viewport is not None:
            position = self._layout.default_position(self._viewport.viewport_size(), mini.size)
            mini = replace(mini, position=position)
        was_playing = self._state.is_playing
        await self._apply(mini_player=replace(mini, is_active=True))
        self._resume.cancel()

        async def _switch() -> None:
            await self.set_active_player("mini")
            if was_playing:
                self._resume.arm(self._tuning.resume_delay_s, self._resume_on_mini)

        self._activation.arm(self._tuning.mount_delay_s, _switch)

    async def deactivate_mini_player(self) -> None:
        self._resume.cancel()
        await self._apply(
            mini_player=replace(
                self._state.mini_player,
                is_active=False,
                is_dragging=False,
                is_resizing=False,
            )
        )
        self._activation.arm(self._tuning.mount_delay_s, self._activate_main_if_loaded)

    async def close_mini_player(self) -> None:
        """End the session: stop both surfaces and clear the loaded video."""
        self._activation.cancel()
        self._resume.cancel()
        self._handover.cancel()
        self._reconciler.cancel()
        for name, surface in list(self._surfaces.items()):
            await run_surface_command(surface.pause(), surface=name, what="pause")
        had_video = self._state.current_video is not None
        self._state = replace(
            self._state,
            active_surface="main" if self._state.active_surface is not None else None,
            current_video=None,
            playlist=None,
            position=0.0,
            duration=0.0,
            is_playing=False,
            is_buffering=False,
            mini_player=replace(
                self._state.mini_player,
                is_active=False,
                is_dragging=False,
                is_resizing=False,
            ),
            error=None,
        )
        logger.info("Mini player closed")
        if had_video:
            await self._emit_event(VideoChanged(None))
        await self._emit_state()

    async def return_to_main_player(self) -> None:
        video = self._state.current_video
        if video is None:
            return
        await self.deactivate_mini_player()
        route = self._navigator.current_route()
        playlist_id: str | None = route.query.get("playlist")
        index: int | str | None = route.query.get("index")
        if playlist_id is None and self._state.playlist is not None:
            playlist_id = self._state.playlist.playlist_id
            index = self._state.playlist.current_index
        if route.path != watch_path(video.id):
            self._navigate(watch_route(video.id, playlist_id=playlist_id, index=index))
        self._scroll.arm(self._tuning.scroll_delay_s, self._scroll_main_into_view)

    async def set_active_player(self, which: SurfaceName) -> None:
        """Flip the active surface now; state copy follows once it is ready."""
        if which not in SURFACE_NAMES:
            raise ValueError(f"unknown surface: {which!r}")
        previous = self._state.active_surface
        if previous == which:
            return
        changes: dict[str, Any] = {"active_surface": which}
        surface = self._surfaces.get(which)
        if surface is not None and self._state.current_video is not None:
            if surface.duration > 0:
                changes["duration"] = surface.duration
            changes["is_buffering"] = not is_ready(surface)
        self._state = replace(self._state, **changes)
        self._handover.begin(previous, which)
        logger.info(
            "Active surface %s -> %s", previous or "none", which, extra={"surface": which}
        )
        await self._emit_state()

    async def handle_video_end(self) -> None:
        if self._state.mini_player.is_active:
            await self.deactivate_mini_player()
        playlist = self._state.playlist
        if playlist is not None and playlist.auto_advance:
            next_index = playlist.next_index
            if next_index is not None:
                next_id = playlist.ordered_video_ids[next_index]
                logger.info("Auto-advancing playlist %s to %s", playlist.playlist_id, next_id)
                self._navigate(
                    watch_route(next_id, playlist_id=playlist.playlist_id, index=next_index)
                )
                return
        await self._apply(is_playing=False)

    def register_main_surface_element(self, element: Any) -> None:
        """Start visibility sampling for the main surface element."""
        if self._main_element is not None and self._main_element is not element:
            self.unregister_main_surface_element(self._main_element)
        self._main_element = element
        if self._visibility_observer is None:
            self._warn_observer_unavailable("no visibility observer configured")
            return
        try:
            self._observation = self._visibility_observer.observe(
                element, self._handle_visibility
            )
        except Exception as exc:
            self._warn_observer_unavailable(str(exc))

    def unregister_main_surface_element(self, element: Any) -> None:
        if element is not self._main_element:
            return
        if self._observation is not None:
            self._observation.close()
            self._observation = None
        self._main_element = None

    async def update_mini_player_position(self, x: int, y: int) -> None:
        mini = self._state.mini_player
        if self._viewport is not None:
            position = self._layout.clamp_position(x, y, self._viewport.viewport_size(), mini.size)
        else:
            position = replace(mini.position, x=max(0, int(x)), y=max(0, int(y)))
        await self._apply(mini_player=replace(mini, position=position))

    async def update_mini_player_size(self, width: int) -> None:
        mini = self._state.mini_player
        size = self._layout.resize(width)
        position = mini.position
        if self._viewport is not None:
            position = self._layout.clamp_position(
                position.x, position.y, self._viewport.viewport_size(), size
            )
        await self._apply(mini_player=replace(mini, size=size, position=position))

    async def reset_mini_player_position(self) -> None:
        if self._viewport is None:
            return
        mini = self._state.mini_player
        position = self._layout.default_position(self._viewport.viewport_size(), mini.size)
        await self._apply(mini_player=replace(mini, position=position))

    async def set_mini_player_dragging(self, dragging: bool) -> None:
        mini = self._state.mini_player
        if dragging and mini.is_resizing:
            logger.debug("Drag refused while resizing")
            return
        await self._apply(mini_player=replace(mini, is_dragging=bool(dragging)))

    async def set_mini_player_resizing(self, resizing: bool) -> None:
        mini = self._state.mini_player
        if resizing:
            mini = replace(mini, is_dragging=False)
        await self._apply(mini_player=replace(mini, is_resizing=bool(resizing)))

    async def set_auto_advance(self, enabled: bool) -> None:
        playlist = self._state.playlist
        if playlist is None:
            return
        await self._apply(playlist=replace(playlist, auto_advance=bool(enabled)))

    async def _handle_surface_event(self, name: SurfaceName, event: SurfaceEvent) -> None:
        """Fold an active-surface event into state; inactive surfaces are ignored."""
        if name != self._state.active_surface or self._surfaces.get(name) is None:
            return
        if isinstance(event, TimeUpdated):
            position = max(0.0, event.position)
            if abs(position - self._state.position) > self._tuning.publish_threshold_s:
                await self._apply(position=position)
            self._reconciler.nudge()
        elif isinstance(event, MetadataLoaded):
            if event.duration > 0:
                await self._apply(duration=event.duration)
        elif isinstance(event, Played):
            started = not self._state.is_playing
            await self._apply(is_playing=True, is_buffering=False)
            # Playback started with the main surface already scrolled away.
            if started and not self._state.main_surface_visible and self._should_auto_promote():
                logger.info("Playback started off-screen; promoting mini player")
                await self.activate_mini_player()
        elif isinstance(event, Paused):
            await self._apply(is_playing=False)
        elif isinstance(event, Waiting):
            await self._apply(is_buffering=True)
        elif isinstance(event, CanPlay):
            await self._apply(is_buffering=False)
        elif isinstance(event, Ended):
            await self.handle_video_end()

    async def _handle_visibility(self, sample: VisibilitySample) -> None:
        visible = sample.is_visible(self._tuning.visibility_threshold)
        was_visible = self._state.main_surface_visible
        await self._apply(main_surface_visible=visible)
        if was_visible and not visible and self._should_auto_promote():
            logger.info("Main surface scrolled out of view; promoting mini player")
            await self.activate_mini_player()

    def _should_auto_promote(self) -> bool:
        state = self._state
        video = state.current_video
        if video is None or not state.is_playing or state.mini_player.is_active:
            return False
        return self._navigator.current_route().watch_video_id != video.id

    async def _handle_handover_timeout(self, exc: SurfaceReadinessTimeout) -> None:
        if exc.surface != self._state.active_surface:
            return
        await self._apply(
            error=_format_user_error(
                what_failed=f"The {exc.surface} player did not become ready in time.",
                likely_cause="The media is still buffering or the source is unreachable.",
                next_step="Wait for buffering to finish or reload the video.",
                detail=str(exc),
            )
        )

    async def _activate_main_if_loaded(self) -> None:
        if self._state.current_video is None:
            return
        await self.set_active_player("main")

    async def _resume_on_mini(self) -> None:
        if self._state.active_surface == "mini":
            await self.play()

    async def _scroll_main_into_view(self) -> None:
        if self._viewport is None or self._main_element is None:
            return
        try:
            self._viewport.scroll_into_view(self._main_element)
        except Exception:
            logger.exception("Failed to scroll main surface into view")

    def _navigate(self, target: str) -> None:
        try:
            self._navigator.navigate(target)
        except Exception:
            logger.exception("Navigation to %s failed", target)

    def _warn_observer_unavailable(self, reason: str) -> None:
        if self._observer_warned:
            return
        self._observer_warned = True
        logger.warning("Mini player auto-promotion disabled: %s", reason)

    def _active(self) -> tuple[SurfaceName | None, Surface | None]:
        name = self._state.active_surface
        if name is None:
            return None, None
        return name, self._surfaces.get(name)

    def _resolve_pair(self) -> SurfacePair | None:
        active = self._state.active_surface
        if active is None or self._state.current_video is None:
            return None
        inactive = _other(active)
        return active, self._surfaces.get(active), inactive, self._surfaces.get(inactive)

    async def _apply(self, **changes: Any) -> None:
        updated = replace(self._state, **changes)
        if updated == self._state:
            return
        self._state = updated
        await self._emit_state()

    async def _emit_state(self) -> None:
        await self._emit_event(PlaybackStateChanged(self._state))


def _clamp_float(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))
