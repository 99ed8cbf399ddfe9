"""Route parsing and the navigation port used by the controller."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import parse_qsl, quote, urlencode, urlsplit

logger = logging.getLogger(__name__)

WATCH_PREFIX = "/watch/"


@dataclass(frozen=True)
class Route:
    """Client route: path plus query parameters (first value wins)."""

    path: str = "/"
    query: dict[str, str] = field(default_factory=dict)

    @classmethod
    def parse(cls, target: str) -> Route:
        parts = urlsplit(target)
        query: dict[str, str] = {}
        for key, value in parse_qsl(parts.query, keep_blank_values=False):
            query.setdefault(key, value)
        return cls(path=parts.path or "/", query=query)

    @property
    def watch_video_id(self) -> str | None:
        """Video id when this is a dedicated watch route, else None."""
        if not self.path.startswith(WATCH_PREFIX):
            return None
        video_id = self.path[len(WATCH_PREFIX) :].strip("/")
        return video_id or None

    def __str__(self) -> str:
        if not self.query:
            return self.path
        return f"{self.path}?{urlencode(self.query)}"


def watch_path(video_id: str) -> str:
    return f"{WATCH_PREFIX}{quote(video_id, safe='')}"


def watch_route(
    video_id: str, *, playlist_id: str | None = None, index: int | str | None = None
) -> str:
    """Build `/watch/{id}?playlist={pid}&index={n}`; index requires a playlist."""
    path = watch_path(video_id)
    if not playlist_id:
        return path
    query = {"playlist": playlist_id}
    if index is not None and str(index) != "":
        query["index"] = str(index)
    return f"{path}?{urlencode(query)}"


class Navigator(Protocol):
    """Route service: current location plus imperative navigation."""

    def current_route(self) -> Route: ...

    def navigate(self, target: str) -> None: ...


class InMemoryNavigator:
    """Navigator keeping a history list; listeners observe every change."""

    def __init__(self, initial: str = "/") -> None:
        self.history: list[str] = [initial]
        self._listeners: list[Callable[[Route], None]] = []

    def current_route(self) -> Route:
        return Route.parse(self.history[-1])

    def navigate(self, target: str) -> None:
        logger.debug("Navigate: %s -> %s", self.history[-1], target)
        self.history.append(target)
        route = Route.parse(target)
        for listener in list(self._listeners):
            listener(route)

    def add_listener(self, listener: Callable[[Route], None]) -> None:
        self._listeners.append(listener)

    @property
    def navigations(self) -> list[str]:
        """Targets navigated to after the initial route."""
        return self.history[1:]
