"""Playable surface contracts and event payloads.

`SyncedPlaybackController` depends on this protocol to stay agnostic of the
concrete media element. The UI layer owns surfaces; the controller only reads
their properties, issues commands and listens to their events through
subscription handles.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import IntEnum
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

SurfaceName = Literal["main", "mini"]
SURFACE_NAMES: tuple[SurfaceName, SurfaceName] = ("main", "mini")


class ReadyState(IntEnum):
    """Media readiness levels, ordered like HTML media `readyState`."""

    HAVE_NOTHING = 0
    HAVE_METADATA = 1
    HAVE_CURRENT_DATA = 2
    HAVE_FUTURE_DATA = 3
    HAVE_ENOUGH_DATA = 4


# Minimum readiness for transport commands, handover copies and reconciliation.
MIN_SYNC_READY = ReadyState.HAVE_CURRENT_DATA


class PlaybackRejectedError(RuntimeError):
    """Raised by a surface when it refuses to start playback."""


@dataclass(frozen=True)
class SurfaceEvent:
    """Marker base type for surface-originated events."""

    pass


@dataclass(frozen=True)
class TimeUpdated(SurfaceEvent):
    position: float


@dataclass(frozen=True)
class MetadataLoaded(SurfaceEvent):
    duration: float


@dataclass(frozen=True)
class Played(SurfaceEvent):
    pass


@dataclass(frozen=True)
class Paused(SurfaceEvent):
    pass


@dataclass(frozen=True)
class Waiting(SurfaceEvent):
    """Surface stalled or started loading new data."""

    pass


@dataclass(frozen=True)
class CanPlay(SurfaceEvent):
    pass


@dataclass(frozen=True)
class Ended(SurfaceEvent):
    pass


SurfaceEventHandler = Callable[[SurfaceEvent], Awaitable[None]]


class SurfaceSubscription:
    """Handle returned by `Surface.subscribe`; closing it detaches the handler."""

    def __init__(self, detach: Callable[[], None]) -> None:
        self._detach: Callable[[], None] | None = detach

    @property
    def closed(self) -> bool:
        return self._detach is None

    def close(self) -> None:
        if self._detach is None:
            return
        detach, self._detach = self._detach, None
        detach()


class Surface(Protocol):
    """Playable media handle consumed by the controller."""

    @property
    def position(self) -> float: ...

    @property
    def duration(self) -> float: ...

    @property
    def volume(self) -> float: ...

    @property
    def muted(self) -> bool: ...

    @property
    def rate(self) -> float: ...

    @property
    def paused(self) -> bool: ...

    @property
    def ready_state(self) -> ReadyState: ...

    def subscribe(self, handler: SurfaceEventHandler) -> SurfaceSubscription: ...

    async def play(self) -> None: ...

    async def pause(self) -> None: ...

    async def seek(self, position: float) -> None: ...

    async def set_volume(self, volume: float) -> None: ...

    async def set_muted(self, muted: bool) -> None: ...

    async def set_rate(self, rate: float) -> None: ...


def is_ready(surface: Surface | None, minimum: ReadyState = MIN_SYNC_READY) -> bool:
    return surface is not None and surface.ready_state >= minimum


async def run_surface_command(
    command: Awaitable[None], *, surface: str, what: str
) -> bool:
    """Await a surface command and absorb failures.

    Returns False when the command raised. Failures are logged, never
    propagated: media elements reject commands for reasons such as autoplay
    policy that callers cannot act on.
    """
    try:
        await command
    except Exception as exc:
        logger.warning(
            "Surface command %s failed on %s surface: %s",
            what,
            surface,
            exc,
            extra={"surface": surface, "command": what},
        )
        return False
    return True
