"""Tests for the REST media client and the offline demo catalog."""

from __future__ import annotations

import pytest
import requests

from synced_player.services.media_client import (
    DemoCatalog,
    MediaClient,
    MediaSourceError,
    parse_playlist,
    parse_video,
)


class FakeResponse:
    def __init__(self, status_code: int, payload: object, reason: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.reason = reason

    def json(self) -> object:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, response: FakeResponse | Exception) -> None:
        self.headers: dict[str, str] = {}
        self.response = response
        self.calls: list[tuple[str, float]] = []
        self.closed = False

    def get(self, url: str, timeout: float) -> FakeResponse:
        self.calls.append((url, timeout))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    def close(self) -> None:
        self.closed = True


VIDEO_DATA = {
    "_id": "v1",
    "title": "First",
    "videoFile": {"url": "https://cdn/v1.mp4"},
    "thumbnail": {"url": "https://cdn/v1.jpg"},
    "duration": 95.5,
}


def test_fetch_video_unwraps_envelope() -> None:
    session = FakeSession(
        FakeResponse(200, {"statusCode": 200, "data": VIDEO_DATA, "success": True})
    )
    client = MediaClient("http://api/v1/", session=session, token="abc")  # type: ignore[arg-type]

    video = client.fetch_video("v 1")

    assert video.id == "v1"
    assert video.media_url == "https://cdn/v1.mp4"
    assert video.poster_url == "https://cdn/v1.jpg"
    assert video.duration_hint == 95.5
    assert session.calls == [("http://api/v1/videos/v%201", 30.0)]
    assert session.headers["Authorization"] == "Bearer abc"
    client.close()
    assert session.closed is True


def test_fetch_playlist_context_locates_video() -> None:
    data = {
        "_id": "P",
        "videos": [{"_id": "A", "title": "a"}, "junk", {"title": "no id"}, {"_id": "B"}],
    }
    session = FakeSession(FakeResponse(200, {"data": data}))
    client = MediaClient("http://api", session=session)  # type: ignore[arg-type]

    context = client.fetch_playlist_context("P", current_video_id="B")

    assert context.playlist_id == "P"
    assert context.ordered_video_ids == ("A", "B")
    assert context.current_index == 1


def test_http_error_uses_envelope_message() -> None:
    session = FakeSession(FakeResponse(404, {"message": "Video not found"}, "Not Found"))
    client = MediaClient("http://api", session=session)  # type: ignore[arg-type]

    with pytest.raises(MediaSourceError, match="Video not found") as excinfo:
        client.fetch_video("missing")
    assert excinfo.value.status_code == 404


def test_network_failures_become_media_source_errors() -> None:
    client = MediaClient(
        "http://api", session=FakeSession(requests.Timeout("slow"))  # type: ignore[arg-type]
    )
    with pytest.raises(MediaSourceError, match="timed out"):
        client.fetch_video("x")

    client = MediaClient(
        "http://api",
        session=FakeSession(requests.ConnectionError("down")),  # type: ignore[arg-type]
    )
    with pytest.raises(MediaSourceError, match="Network error"):
        client.fetch_video("x")


def test_unexpected_shape_is_rejected() -> None:
    session = FakeSession(FakeResponse(200, ValueError("not json")))
    client = MediaClient("http://api", session=session)  # type: ignore[arg-type]
    with pytest.raises(MediaSourceError, match="Unexpected response shape"):
        client.fetch_video("x")


def test_parsers_validate_required_fields() -> None:
    with pytest.raises(MediaSourceError):
        parse_video({"_id": "v1"})
    with pytest.raises(MediaSourceError):
        parse_playlist({"videos": []})
    video = parse_video({"id": "v2", "videoFile": "https://cdn/v2.mp4", "duration": -1})
    assert video.duration_hint is None
    assert video.title == ""


def test_empty_base_url_is_rejected() -> None:
    with pytest.raises(ValueError):
        MediaClient("  ")


def test_demo_catalog_serves_videos_and_playlist() -> None:
    catalog = DemoCatalog()
    assert catalog.video_ids == ["demo-1", "demo-2", "demo-3"]
    assert catalog.fetch_video("demo-2").duration_hint == 75.0
    playlist_id, entries = catalog.fetch_playlist(DemoCatalog.PLAYLIST_ID)
    assert playlist_id == "demo-playlist"
    assert [entry.id for entry in entries] == ["demo-1", "demo-2", "demo-3"]
    with pytest.raises(MediaSourceError) as excinfo:
        catalog.fetch_video("nope")
    assert excinfo.value.status_code == 404
    with pytest.raises(MediaSourceError):
        catalog.fetch_playlist("other")
