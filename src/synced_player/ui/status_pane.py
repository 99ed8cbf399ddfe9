"""Status pane summarizing synchronized playback state."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.widget import Widget
from textual.widgets import Static

from synced_player.services.playback_state import PlaybackState
from synced_player.services.sync_tuning import RATE_MAX, RATE_MIN
from synced_player.ui.surface_view import progress_bar
from synced_player.utils.time_format import format_time_pair

SPEED_STEP = 0.25
VOLUME_STEP = 0.05


class StatusPane(Widget):
    DEFAULT_CSS = """
    #time-line, #levels-line, #status-line {
        height: 1;
        width: 1fr;
        overflow: hidden;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._time_line = Static("", id="time-line")
        self._levels_line = Static("", id="levels-line")
        self._status_line = Static("", id="status-line")
        self._state: PlaybackState | None = None
        self._runtime_notice: str | None = None

    def compose(self) -> ComposeResult:
        yield self._time_line
        yield self._levels_line
        yield self._status_line

    @property
    def state(self) -> PlaybackState | None:
        return self._state

    def update_state(self, state: PlaybackState) -> None:
        self._state = state
        pos_text, dur_text = format_time_pair(state.position, state.duration)
        value_text = f" {pos_text}/{dur_text}"
        bar_width = max(0, self.size.width - len("TIME ") - len(value_text))
        time_text = Text(no_wrap=True)
        time_text.append("TIME ", style="bold #F2C94C")
        time_text.append(progress_bar(state.progress, bar_width))
        time_text.append(value_text)
        self._time_line.update(time_text)

        levels = Text(no_wrap=True)
        levels.append("VOL ", style="bold #F2C94C")
        levels.append("muted" if state.muted else f"{round(state.volume * 100)}%")
        levels.append(" | ")
        levels.append("SPD ", style="bold #F2C94C")
        levels.append(f"{state.playback_rate:.2f}x")
        levels.append(" | ")
        levels.append("Auto-advance: ", style="bold #F2C94C")
        if state.playlist is None:
            levels.append("n/a")
        else:
            total = len(state.playlist.ordered_video_ids)
            levels.append(
                f"{'on' if state.playlist.auto_advance else 'off'} "
                f"({state.playlist.current_index + 1}/{total})"
            )
        self._levels_line.update(levels)
        self._update_status_text()

    def set_runtime_notice(self, notice: str | None) -> None:
        self._runtime_notice = notice.strip() if notice else None
        if self._state is not None:
            self._update_status_text()

    def _update_status_text(self) -> None:
        if self._state is None:
            return
        state = self._state
        status_text = Text(no_wrap=True)
        if self._runtime_notice:
            status_text.append("Notice: ", style="bold #FF5A36")
            status_text.append(self._runtime_notice)
            status_text.append(" | ")
        status_text.append("Status: ", style="bold #F2C94C")
        status_text.append(playback_status(state))
        status_text.append(" | ")
        status_text.append("Surface: ", style="bold #F2C94C")
        status_text.append(state.active_surface or "none")
        status_text.append(" | ")
        status_text.append("Mini: ", style="bold #F2C94C")
        status_text.append("on" if state.mini_player.is_active else "off")
        status_text.append(" | ")
        status_text.append("Main visible: ", style="bold #F2C94C")
        status_text.append("yes" if state.main_surface_visible else "no")
        self._status_line.update(status_text)


def playback_status(state: PlaybackState) -> str:
    if state.current_video is None:
        return "idle"
    if state.error:
        return "error"
    if state.is_buffering:
        return "buffering"
    return "playing" if state.is_playing else "paused"


def step_volume(volume: float, steps: int) -> float:
    return clamp_float(round((volume + steps * VOLUME_STEP) * 100) / 100, 0.0, 1.0)


def step_speed(speed: float, steps: int) -> float:
    return quantize_speed(speed + steps * SPEED_STEP)


def quantize_speed(speed: float) -> float:
    steps = round(speed / SPEED_STEP)
    return clamp_float(steps * SPEED_STEP, RATE_MIN, RATE_MAX)


def clamp_float(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(value, max_value))
