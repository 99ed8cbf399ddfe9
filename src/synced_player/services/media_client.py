"""Media source and playlist providers.

`MediaClient` talks to the video platform's REST API. Responses are wrapped in
an envelope `{statusCode, data, message, success}`; only `data` is consumed.
Calls are blocking (`requests`) and are meant to be awaited through
`utils.async_utils.run_blocking` from the event loop.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Protocol
from urllib.parse import quote

import requests

from synced_player.services.playback_state import (
    PlaylistContext,
    PlaylistEntry,
    VideoDescriptor,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 30.0


class MediaSourceError(RuntimeError):
    """Video or playlist could not be resolved."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MediaSource(Protocol):
    def fetch_video(self, video_id: str) -> VideoDescriptor: ...

    def fetch_playlist(self, playlist_id: str) -> tuple[str, list[PlaylistEntry]]: ...


class MediaClient:
    """HTTP media source provider for `GET /videos/{id}` and `GET /playlist/{id}`."""

    def __init__(
        self,
        base_url: str,
        *,
        session: requests.Session | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        token: str | None = None,
    ) -> None:
        if not base_url.strip():
            raise ValueError("base_url must not be empty")
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout_s = timeout_s
        self._session.headers.update({"Content-Type": "application/json"})
        if token:
            self._session.headers.update({"Authorization": f"Bearer {token}"})

    def close(self) -> None:
        self._session.close()

    def fetch_video(self, video_id: str) -> VideoDescriptor:
        data = self._get_data(f"/videos/{quote(video_id, safe='')}")
        return parse_video(data)

    def fetch_playlist(self, playlist_id: str) -> tuple[str, list[PlaylistEntry]]:
        data = self._get_data(f"/playlist/{quote(playlist_id, safe='')}")
        return parse_playlist(data)

    def fetch_playlist_context(
        self,
        playlist_id: str,
        *,
        current_video_id: str | None = None,
        auto_advance: bool = True,
    ) -> PlaylistContext:
        resolved_id, entries = self.fetch_playlist(playlist_id)
        return PlaylistContext.from_entries(
            resolved_id,
            entries,
            current_video_id=current_video_id,
            auto_advance=auto_advance,
        )

    def _get_data(self, path: str) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.get(url, timeout=self._timeout_s)
        except requests.Timeout as exc:
            raise MediaSourceError(f"Request timed out: {url}") from exc
        except requests.RequestException as exc:
            raise MediaSourceError(f"Network error for {url}: {exc}") from exc
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if response.status_code >= 400:
            message = _error_message(payload) or response.reason or "request failed"
            logger.warning("GET %s failed with %s: %s", url, response.status_code, message)
            raise MediaSourceError(message, status_code=response.status_code)
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
            raise MediaSourceError(
                f"Unexpected response shape from {url}",
                status_code=response.status_code,
            )
        return payload["data"]


def parse_video(data: dict[str, Any]) -> VideoDescriptor:
    video_id = data.get("_id") or data.get("id")
    media_url = _url_of(data.get("videoFile"))
    if not isinstance(video_id, str) or not video_id or media_url is None:
        raise MediaSourceError("Video payload is missing its id or media url")
    title = data.get("title")
    return VideoDescriptor(
        id=video_id,
        title=title if isinstance(title, str) else "",
        media_url=media_url,
        poster_url=_url_of(data.get("thumbnail")),
        duration_hint=_seconds_or_none(data.get("duration")),
    )


def parse_playlist(data: dict[str, Any]) -> tuple[str, list[PlaylistEntry]]:
    playlist_id = data.get("_id") or data.get("id")
    if not isinstance(playlist_id, str) or not playlist_id:
        raise MediaSourceError("Playlist payload is missing its id")
    entries: list[PlaylistEntry] = []
    videos = data.get("videos")
    for item in videos if isinstance(videos, list) else []:
        if not isinstance(item, dict):
            continue
        entry_id = item.get("_id")
        if not isinstance(entry_id, str) or not entry_id:
            continue
        title = item.get("title")
        entries.append(
            PlaylistEntry(
                id=entry_id,
                title=title if isinstance(title, str) else "",
                thumbnail_url=_url_of(item.get("thumbnail")),
                duration=_seconds_or_none(item.get("duration")),
            )
        )
    return playlist_id, entries


class DemoCatalog:
    """Offline media source with a fixed set of videos and one playlist."""

    PLAYLIST_ID = "demo-playlist"

    def __init__(self, videos: list[VideoDescriptor] | None = None) -> None:
        self._videos = {
            video.id: video for video in (videos if videos is not None else _demo_videos())
        }

    @property
    def video_ids(self) -> list[str]:
        return list(self._videos)

    def fetch_video(self, video_id: str) -> VideoDescriptor:
        try:
            return self._videos[video_id]
        except KeyError:
            raise MediaSourceError(f"Unknown video: {video_id}", status_code=404) from None

    def fetch_playlist(self, playlist_id: str) -> tuple[str, list[PlaylistEntry]]:
        if playlist_id != self.PLAYLIST_ID:
            raise MediaSourceError(f"Unknown playlist: {playlist_id}", status_code=404)
        entries = [
            PlaylistEntry(
                id=video.id,
                title=video.title,
                thumbnail_url=video.poster_url,
                duration=video.duration_hint,
            )
            for video in self._videos.values()
        ]
        return playlist_id, entries


def _demo_videos() -> list[VideoDescriptor]:
    return [
        VideoDescriptor(
            id=f"demo-{index}",
            title=title,
            media_url=f"memory://demo-{index}.mp4",
            poster_url=f"memory://demo-{index}.jpg",
            duration_hint=duration,
        )
        for index, (title, duration) in enumerate(
            [
                ("Intro to the platform", 42.0),
                ("Scrolling while watching", 75.0),
                ("Playlists and auto-advance", 30.0),
            ],
            start=1,
        )
    ]


def _url_of(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    if isinstance(value, dict):
        url = value.get("url")
        if isinstance(url, str) and url:
            return url
    return None


def _seconds_or_none(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    seconds = float(value)
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    return seconds


def _error_message(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    message = payload.get("message")
    if isinstance(message, str) and message:
        return message
    errors = payload.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        first = errors[0].get("message")
        if isinstance(first, str) and first:
            return first
    return None
