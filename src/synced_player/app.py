"""Textual TUI demo for synced-player.

The page is a scrollable feed holding the main surface; the mini surface floats
on an overlay layer. Scrolling the main surface out of view while playing
promotes the mini player, exactly like the browser picture-in-picture flow.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from textual.app import App, ComposeResult
from textual.containers import VerticalScroll
from textual.events import Resize
from textual.screen import ModalScreen
from textual.timer import Timer
from textual.widgets import Footer, Header, Static

from . import __version__
from .events import (
    MiniPlayerDragged,
    PlaybackStateChanged,
    SurfaceViewClicked,
    VideoChanged,
)
from .logging_utils import setup_logging
from .paths import log_dir
from .runtime_config import resolve_api_base_url, resolve_log_level, tuning_from_env
from .services.fake_surface import FakeSurface
from .services.media_client import DemoCatalog, MediaClient, MediaSource, MediaSourceError
from .services.mini_player import MiniPlayerLayout
from .services.navigation import InMemoryNavigator, Route, watch_route
from .services.playback_controller import SyncedPlaybackController
from .services.playback_state import PlaybackState, PlaylistContext
from .services.sync_tuning import SyncTuning
from .services.visibility import ManualVisibilityObserver, visible_fraction
from .ui.modals.error import ErrorModal
from .ui.status_pane import StatusPane, step_speed, step_volume
from .ui.surface_view import SurfaceView
from .utils.async_utils import run_blocking
from .version import build_help_epilog

logger = logging.getLogger(__name__)

# Terminal cells instead of pixels; height follows the width at roughly 16:9.
MINI_LAYOUT = MiniPlayerLayout(
    default_width=36, default_height=9, min_width=28, max_width=60, margin=2
)
RENDER_INTERVAL_S = 0.25
VISIBILITY_SAMPLE_INTERVAL_S = 0.2
FALLBACK_DURATION_S = 60.0
SEEK_STEP_S = 5.0
MINI_MOVE_STEP = 2
MINI_RESIZE_STEP = 4
FILLER_SECTIONS = 8


class _AppViewport:
    """Viewport adapter: screen size for placement, scrolling for the page."""

    def __init__(self, app: SyncedPlayerApp) -> None:
        self._app = app

    def viewport_size(self) -> tuple[int, int]:
        size = self._app.size
        return size.width, size.height

    def scroll_into_view(self, element: Any) -> None:
        element.scroll_visible()


class SyncedPlayerApp(App):
    TITLE = "synced-player"
    CSS = """
    Screen {
        layout: vertical;
        layers: base overlay;
    }

    #page {
        height: 1fr;
    }

    #page-header {
        height: 2;
        padding: 0 2;
    }

    #main-view {
        height: 9;
        margin: 0 2;
    }

    .filler {
        height: 5;
        margin: 1 2 0 2;
        padding: 0 1;
        border: dashed $secondary;
        color: $text-muted;
    }

    #mini-view {
        layer: overlay;
        dock: top;
        display: none;
        background: $panel;
    }

    #status-pane {
        height: 5;
        border: solid white;
        layout: vertical;
        padding: 0 1;
    }

    ModalScreen {
        align: center middle;
    }

    #modal-body {
        padding: 1 2;
        border: solid white;
        width: 60%;
        height: auto;
    }

    #modal-title {
        text-style: bold;
    }
    """
    BINDINGS = [
        ("escape", "dismiss_modal", "Dismiss"),
        ("space", "play_pause", "Play/Pause"),
        ("left", "seek_back", "Seek -5s"),
        ("right", "seek_forward", "Seek +5s"),
        ("e", "seek_end", "Skip to end"),
        ("-", "volume_down", "Vol -"),
        ("+", "volume_up", "Vol +"),
        ("u", "toggle_mute", "Mute"),
        ("[", "speed_down", "Speed -"),
        ("]", "speed_up", "Speed +"),
        ("\\", "speed_reset", "Speed reset"),
        ("m", "toggle_mini", "Mini player"),
        ("c", "close_mini", "Close mini"),
        ("r", "return_main", "Return to main"),
        ("a", "toggle_auto_advance", "Auto-advance"),
        ("h", "go_home", "Home"),
        ("shift+left", "mini_left", "Mini ←"),
        ("shift+right", "mini_right", "Mini →"),
        ("shift+up", "mini_up", "Mini ↑"),
        ("shift+down", "mini_down", "Mini ↓"),
        ("comma", "mini_smaller", "Mini smaller"),
        ("full_stop", "mini_larger", "Mini larger"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        *,
        auto_init: bool = True,
        media_source: MediaSource | None = None,
        initial_route: str = "/",
        tuning: SyncTuning | None = None,
    ) -> None:
        super().__init__()
        self._auto_init = auto_init
        self.media_source: MediaSource = media_source or DemoCatalog()
        self.navigator = InMemoryNavigator(initial_route)
        self.visibility_observer = ManualVisibilityObserver()
        self.main_surface = FakeSurface("main", tick_interval_s=RENDER_INTERVAL_S, load_delay_s=0.3)
        self.mini_surface = FakeSurface("mini", tick_interval_s=RENDER_INTERVAL_S, load_delay_s=0.6)
        self.controller = SyncedPlaybackController(
            emit_event=self._handle_controller_event,
            navigator=self.navigator,
            viewport=_AppViewport(self),
            visibility_observer=self.visibility_observer,
            tuning=tuning,
            layout=MINI_LAYOUT,
        )
        self.playback_state: PlaybackState = self.controller.state
        self._render_timer: Timer | None = None
        self._visibility_timer: Timer | None = None
        self.navigator.add_listener(self._handle_route_changed)

    def compose(self) -> ComposeResult:
        yield Header()
        with VerticalScroll(id="page"):
            yield Static("", id="page-header")
            yield SurfaceView(self.main_surface, surface_name="main", id="main-view")
            for index in range(FILLER_SECTIONS):
                yield Static(
                    f"Recommended #{index + 1}\nScroll past the player to keep watching "
                    "in the mini player.",
                    classes="filler",
                )
        yield SurfaceView(
            self.mini_surface, surface_name="mini", draggable=True, id="mini-view"
        )
        yield StatusPane(id="status-pane")
        yield Footer()

    def on_mount(self) -> None:
        self._update_page_header(self.navigator.current_route())
        self._update_status_pane()
        if self._auto_init:
            asyncio.create_task(self._initialize())

    async def _initialize(self) -> None:
        try:
            await self.main_surface.start()
            await self.mini_surface.start()
            await self.controller.attach_surface("main", self.main_surface)
            await self.controller.attach_surface("mini", self.mini_surface)
            self.controller.register_main_surface_element(
                self.query_one("#main-view", SurfaceView)
            )
            self._render_timer = self.set_interval(RENDER_INTERVAL_S, self._refresh_surfaces)
            self._visibility_timer = self.set_interval(
                VISIBILITY_SAMPLE_INTERVAL_S, self._sample_visibility
            )
            route = self.navigator.current_route()
            if route.watch_video_id is not None:
                await self._open_route(route)
            elif isinstance(self.media_source, DemoCatalog):
                await self._load(
                    self.media_source.video_ids[0], DemoCatalog.PLAYLIST_ID, 0
                )
            else:
                self.query_one(StatusPane).set_runtime_notice(
                    "No video selected; start with --video <id>."
                )
        except Exception as exc:
            logger.exception("Failed to initialize app: %s", exc)
            await self.push_screen(
                ErrorModal(
                    "Failed to initialize app.\n"
                    "Likely cause: surface or controller startup failure.\n"
                    "Next step: review the log file and re-run with --verbose."
                )
            )

    async def on_unmount(self) -> None:
        for timer in (self._render_timer, self._visibility_timer):
            if timer is not None:
                timer.stop()
        await self.controller.shutdown()
        await self.main_surface.shutdown()
        await self.mini_surface.shutdown()
        close = getattr(self.media_source, "close", None)
        if callable(close):
            close()

    def action_dismiss_modal(self) -> None:
        if isinstance(self.screen, ModalScreen):
            self.pop_screen()

    async def action_play_pause(self) -> None:
        await self.controller.toggle_play()

    async def action_seek_back(self) -> None:
        await self.controller.seek_to(self.playback_state.position - SEEK_STEP_S)

    async def action_seek_forward(self) -> None:
        await self.controller.seek_to(self.playback_state.position + SEEK_STEP_S)

    async def action_seek_end(self) -> None:
        await self.controller.seek_to(max(0.0, self.playback_state.duration - 1.0))

    async def action_volume_down(self) -> None:
        await self.controller.set_volume_level(step_volume(self.playback_state.volume, -1))

    async def action_volume_up(self) -> None:
        await self.controller.set_volume_level(step_volume(self.playback_state.volume, 1))

    async def action_toggle_mute(self) -> None:
        await self.controller.toggle_mute()

    async def action_speed_down(self) -> None:
        await self.controller.set_playback_speed(
            step_speed(self.playback_state.playback_rate, -1)
        )

    async def action_speed_up(self) -> None:
        await self.controller.set_playback_speed(
            step_speed(self.playback_state.playback_rate, 1)
        )

    async def action_speed_reset(self) -> None:
        await self.controller.set_playback_speed(1.0)

    async def action_toggle_mini(self) -> None:
        if self.playback_state.mini_player.is_active:
            await self.controller.deactivate_mini_player()
        else:
            await self.controller.activate_mini_player()

    async def action_close_mini(self) -> None:
        await self.controller.close_mini_player()

    async def action_return_main(self) -> None:
        await self.controller.return_to_main_player()

    async def action_toggle_auto_advance(self) -> None:
        playlist = self.playback_state.playlist
        if playlist is None:
            return
        await self.controller.set_auto_advance(not playlist.auto_advance)

    def action_go_home(self) -> None:
        self.navigator.navigate("/")

    async def action_mini_left(self) -> None:
        await self._move_mini(-MINI_MOVE_STEP, 0)

    async def action_mini_right(self) -> None:
        await self._move_mini(MINI_MOVE_STEP, 0)

    async def action_mini_up(self) -> None:
        await self._move_mini(0, -MINI_MOVE_STEP)

    async def action_mini_down(self) -> None:
        await self._move_mini(0, MINI_MOVE_STEP)

    async def action_mini_smaller(self) -> None:
        await self._resize_mini(-MINI_RESIZE_STEP)

    async def action_mini_larger(self) -> None:
        await self._resize_mini(MINI_RESIZE_STEP)

    async def on_surface_view_clicked(self, message: SurfaceViewClicked) -> None:
        if message.surface == "mini":
            await self.controller.return_to_main_player()

    async def on_mini_player_dragged(self, message: MiniPlayerDragged) -> None:
        mini = self.playback_state.mini_player
        if not message.is_final and not mini.is_dragging:
            await self.controller.set_mini_player_dragging(True)
        await self.controller.update_mini_player_position(message.x, message.y)
        if message.is_final:
            await self.controller.set_mini_player_dragging(False)

    async def on_resize(self, event: Resize) -> None:
        del event
        mini = self.playback_state.mini_player
        if mini.is_active:
            await self.controller.update_mini_player_position(mini.position.x, mini.position.y)

    async def _move_mini(self, dx: int, dy: int) -> None:
        mini = self.playback_state.mini_player
        if not mini.is_active:
            return
        await self.controller.update_mini_player_position(
            mini.position.x + dx, mini.position.y + dy
        )

    async def _resize_mini(self, delta: int) -> None:
        mini = self.playback_state.mini_player
        if not mini.is_active:
            return
        await self.controller.set_mini_player_resizing(True)
        await self.controller.update_mini_player_size(mini.size.width + delta)
        await self.controller.set_mini_player_resizing(False)

    def _handle_route_changed(self, route: Route) -> None:
        self._update_page_header(route)
        if route.watch_video_id is not None:
            self.run_worker(self._open_route(route), exclusive=False)

    async def _open_route(self, route: Route) -> None:
        video_id = route.watch_video_id
        if video_id is None:
            return
        await self._load(
            video_id, route.query.get("playlist"), _parse_index(route.query.get("index"))
        )

    async def _load(
        self, video_id: str, playlist_id: str | None, index: int | None
    ) -> None:
        try:
            video = await run_blocking(self.media_source.fetch_video, video_id)
            context: PlaylistContext | None = None
            start_index = 0
            if playlist_id:
                resolved_id, entries = await run_blocking(
                    self.media_source.fetch_playlist, playlist_id
                )
                context = PlaylistContext.from_entries(
                    resolved_id, entries, current_video_id=video.id
                )
                start_index = index if index is not None else context.current_index
        except MediaSourceError as exc:
            logger.warning("Failed to resolve video %s: %s", video_id, exc)
            await self.push_screen(
                ErrorModal(
                    "Failed to load video.\n"
                    "Likely cause: the media API is unreachable or the id is unknown.\n"
                    "Next step: check --api-base-url and the video/playlist ids.\n"
                    f"Details: {exc}",
                    title="Media unavailable",
                )
            )
            return
        await self.controller.load_video(video, context, start_index)

    async def _handle_controller_event(self, event: object) -> None:
        if isinstance(event, PlaybackStateChanged):
            self.playback_state = event.state
            self._sync_views()
            self._update_status_pane()
        elif isinstance(event, VideoChanged):
            title = event.video.title if event.video is not None else ""
            for view in self.query(SurfaceView):
                view.set_video_title(title)
            if event.video is None:
                return
            duration = event.video.duration_hint or FALLBACK_DURATION_S
            for surface in (self.main_surface, self.mini_surface):
                await surface.load(event.video.media_url, duration=duration)

    def _sync_views(self) -> None:
        state = self.playback_state
        main_view = self.query_one("#main-view", SurfaceView)
        mini_view = self.query_one("#mini-view", SurfaceView)
        main_view.set_active(state.active_surface == "main")
        mini_view.set_active(state.active_surface == "mini")
        mini = state.mini_player
        mini_view.display = mini.is_active
        mini_view.styles.width = mini.size.width
        mini_view.styles.height = mini.size.height
        mini_view.styles.offset = (mini.position.x, mini.position.y)

    def _refresh_surfaces(self) -> None:
        for view in self.query(SurfaceView):
            view.refresh()

    async def _sample_visibility(self) -> None:
        page = self.query_one("#page", VerticalScroll)
        region = self.query_one("#main-view", SurfaceView).virtual_region
        window = page.scrollable_content_region
        ratio = visible_fraction(
            (region.x, region.y, region.width, region.height),
            (int(page.scroll_x), int(page.scroll_y), window.width, window.height),
        )
        await self.visibility_observer.report(ratio)

    def _update_page_header(self, route: Route) -> None:
        self.query_one("#page-header", Static).update(f"Route: {route}")

    def _update_status_pane(self) -> None:
        pane = self.query_one(StatusPane)
        pane.update_state(self.playback_state)
        error = self.playback_state.error
        pane.set_runtime_notice(error.splitlines()[0] if error else None)


def _parse_index(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        index = int(value)
    except ValueError:
        return None
    return index if index >= 0 else None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="synced-player",
        description="Terminal demo of synchronized main/mini video playback.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=build_help_epilog(),
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--quiet", action="store_true", help="Only show warnings and errors"
    )
    parser.add_argument("--log-file", help="Write logs to a file path")
    parser.add_argument(
        "--api-base-url",
        help="Media API base URL (defaults to $SYNCED_PLAYER_API_BASE_URL; "
        "without one the built-in demo catalog is used).",
    )
    parser.add_argument("--video", help="Video id to open on its watch route")
    parser.add_argument("--playlist", help="Playlist id providing auto-advance order")
    parser.add_argument(
        "--index", type=int, help="Start index within --playlist (requires --playlist)"
    )
    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    if args.index is not None and not args.playlist:
        parser.error("--index requires --playlist")
    try:
        level = resolve_log_level(verbose=args.verbose, quiet=args.quiet)
        setup_logging(
            log_dir=log_dir(),
            level=level,
            log_file=Path(args.log_file) if args.log_file else None,
            console=False,
        )
        api_base_url = resolve_api_base_url(args.api_base_url)
        media_source: MediaSource = (
            MediaClient(api_base_url) if api_base_url else DemoCatalog()
        )
        initial_route = (
            watch_route(args.video, playlist_id=args.playlist, index=args.index)
            if args.video
            else "/"
        )
        logging.getLogger(__name__).info(
            "Starting synced-player TUI (media source: %s)", api_base_url or "demo"
        )
        SyncedPlayerApp(
            media_source=media_source,
            initial_route=initial_route,
            tuning=tuning_from_env(),
        ).run()
        return 0
    except Exception as exc:  # pragma: no cover - top-level safety net
        logging.getLogger(__name__).exception("Fatal startup error: %s", exc)
        print(
            "Startup failed. Verify the API URL and log paths and re-run with --verbose.",
            file=sys.stderr,
        )
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
