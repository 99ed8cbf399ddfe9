"""Playback state snapshots shared between the controller and the UI."""

from __future__ import annotations

from dataclasses import dataclass, field

from synced_player.services.surface import SurfaceName


@dataclass(frozen=True)
class VideoDescriptor:
    """Playable video as resolved from the media source provider."""

    id: str
    title: str
    media_url: str
    poster_url: str | None = None
    duration_hint: float | None = None


@dataclass(frozen=True)
class PlaylistEntry:
    """One ordered playlist entry as returned by the playlist provider."""

    id: str
    title: str
    thumbnail_url: str | None = None
    duration: float | None = None


@dataclass(frozen=True)
class PlaylistContext:
    """Ordered video sequence plus cursor used for auto-advance."""

    playlist_id: str
    ordered_video_ids: tuple[str, ...]
    current_index: int = 0
    auto_advance: bool = True

    @classmethod
    def from_entries(
        cls,
        playlist_id: str,
        entries: list[PlaylistEntry] | tuple[PlaylistEntry, ...],
        *,
        current_video_id: str | None = None,
        auto_advance: bool = True,
    ) -> PlaylistContext:
        ids = tuple(entry.id for entry in entries)
        index = ids.index(current_video_id) if current_video_id in ids else 0
        return cls(
            playlist_id=playlist_id,
            ordered_video_ids=ids,
            current_index=index,
            auto_advance=auto_advance,
        )

    def with_index(self, index: int) -> PlaylistContext:
        if not self.ordered_video_ids:
            return PlaylistContext(self.playlist_id, (), 0, self.auto_advance)
        bounded = max(0, min(int(index), len(self.ordered_video_ids) - 1))
        return PlaylistContext(
            self.playlist_id, self.ordered_video_ids, bounded, self.auto_advance
        )

    @property
    def next_index(self) -> int | None:
        candidate = self.current_index + 1
        if candidate < len(self.ordered_video_ids):
            return candidate
        return None

    @property
    def next_video_id(self) -> str | None:
        index = self.next_index
        return None if index is None else self.ordered_video_ids[index]


@dataclass(frozen=True)
class Point:
    x: int = 0
    y: int = 0


@dataclass(frozen=True)
class Size:
    width: int = 0
    height: int = 0


@dataclass(frozen=True)
class MiniPlayerState:
    """Floating surface placement and interaction flags."""

    is_active: bool = False
    position: Point = field(default_factory=Point)
    size: Size = field(default_factory=lambda: Size(360, 202))
    is_dragging: bool = False
    is_resizing: bool = False


@dataclass(frozen=True)
class PlaybackState:
    """Serializable snapshot of synchronized playback exposed to the UI."""

    active_surface: SurfaceName | None = None
    current_video: VideoDescriptor | None = None
    is_playing: bool = False
    position: float = 0.0
    duration: float = 0.0
    volume: float = 1.0
    muted: bool = False
    playback_rate: float = 1.0
    is_buffering: bool = False
    mini_player: MiniPlayerState = field(default_factory=MiniPlayerState)
    main_surface_visible: bool = True
    playlist: PlaylistContext | None = None
    error: str | None = None

    @property
    def is_idle(self) -> bool:
        return self.current_video is None

    @property
    def progress(self) -> float:
        if self.duration <= 0:
            return 0.0
        return max(0.0, min(self.position / self.duration, 1.0))

    @property
    def has_next(self) -> bool:
        return self.playlist is not None and self.playlist.next_index is not None
