"""Cross-module event/message models for service and UI communication.

Dataclass events are used for controller-to-app signaling, while
`textual.message` types are used for widget-level interaction routing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from textual.message import Message

if TYPE_CHECKING:
    from synced_player.services.playback_state import PlaybackState, VideoDescriptor


@dataclass(frozen=True)
class PlaybackStateChanged:
    """Controller event emitted when the effective playback state changes."""

    state: PlaybackState


@dataclass(frozen=True)
class VideoChanged:
    """Controller event emitted when the loaded video changes or is cleared."""

    video: VideoDescriptor | None


class SurfaceViewClicked(Message):
    """UI message for a click (press and release without drag) on a surface."""

    def __init__(self, surface: str) -> None:
        super().__init__()
        self.surface = surface


class MiniPlayerDragged(Message):
    """UI message carrying the requested top-left cell of the mini player."""

    def __init__(self, x: int, y: int, is_final: bool) -> None:
        super().__init__()
        self.x = x
        self.y = y
        self.is_final = is_final
