"""Text rendering of a playback surface with click and drag interaction."""

from __future__ import annotations

from rich.text import Text
from textual.events import MouseDown, MouseMove, MouseUp
from textual.widget import Widget

from synced_player.events import MiniPlayerDragged, SurfaceViewClicked
from synced_player.services.fake_surface import FakeSurface
from synced_player.services.surface import ReadyState
from synced_player.utils.time_format import format_time_pair

_READY_LABELS = {
    ReadyState.HAVE_NOTHING: "no data",
    ReadyState.HAVE_METADATA: "metadata",
    ReadyState.HAVE_CURRENT_DATA: "current frame",
    ReadyState.HAVE_FUTURE_DATA: "buffering ahead",
    ReadyState.HAVE_ENOUGH_DATA: "ready",
}


class SurfaceView(Widget):
    """Renders one `FakeSurface`; the mini variant can be dragged by mouse."""

    DEFAULT_CSS = """
    SurfaceView {
        border: round $secondary;
        padding: 0 1;
    }
    SurfaceView.-active {
        border: round $accent;
    }
    """

    def __init__(
        self,
        surface: FakeSurface,
        *,
        surface_name: str,
        title: str = "",
        draggable: bool = False,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.surface = surface
        self.surface_name = surface_name
        self.video_title = title
        self.draggable = draggable
        self.is_active = False
        self._grab: tuple[int, int] | None = None
        self._moved = False

    def set_video_title(self, title: str) -> None:
        self.video_title = title
        self.refresh()

    def set_active(self, active: bool) -> None:
        self.is_active = active
        self.set_class(active, "-active")
        self.refresh()

    def render(self) -> Text:
        width = max(1, self.size.width)
        surface = self.surface
        text = Text(no_wrap=True, overflow="ellipsis")
        badge = "ACTIVE" if self.is_active else "standby"
        text.append(f"{self.surface_name.upper()} ", style="bold")
        text.append(badge, style="bold #F2C94C" if self.is_active else "dim")
        text.append("\n")
        text.append(self.video_title or "(no video)", style="italic")
        text.append("\n")
        icon = "▶" if not surface.paused else "⏸"
        position, duration = format_time_pair(surface.position, surface.duration)
        text.append(f"{icon} {position}/{duration}\n")
        text.append(
            progress_bar(_fraction(surface.position, surface.duration), width),
            style="#FF5A36",
        )
        text.append("\n")
        flags = [_READY_LABELS.get(surface.ready_state, "unknown")]
        if surface.muted:
            flags.append("muted")
        flags.append(f"vol {round(surface.volume * 100)}%")
        flags.append(f"{surface.rate:.2f}x")
        text.append(" | ".join(flags), style="dim")
        return text

    def on_mouse_down(self, event: MouseDown) -> None:
        if event.button != 1:
            return
        self._moved = False
        if self.draggable:
            self._grab = (event.x, event.y)
            self.capture_mouse()
        event.stop()

    def on_mouse_move(self, event: MouseMove) -> None:
        if self._grab is None:
            return
        self._moved = True
        grab_x, grab_y = self._grab
        self.post_message(
            MiniPlayerDragged(event.screen_x - grab_x, event.screen_y - grab_y, False)
        )
        event.stop()

    def on_mouse_up(self, event: MouseUp) -> None:
        if event.button != 1:
            return
        grab = self._grab
        self._grab = None
        if grab is not None:
            self.release_mouse()
        if grab is not None and self._moved:
            self.post_message(
                MiniPlayerDragged(event.screen_x - grab[0], event.screen_y - grab[1], True)
            )
        else:
            self.post_message(SurfaceViewClicked(self.surface_name))
        self._moved = False
        event.stop()


def progress_bar(fraction: float, width: int) -> str:
    """Render a fixed-width bar like `====●-----`."""
    if width <= 0:
        return ""
    if width == 1:
        return "●"
    thumb = int(round(_clamp_float(fraction, 0.0, 1.0) * (width - 1)))
    return "=" * thumb + "●" + "-" * (width - thumb - 1)


def _fraction(position: float, duration: float) -> float:
    if duration <= 0:
        return 0.0
    return _clamp_float(position / duration, 0.0, 1.0)


def _clamp_float(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))
