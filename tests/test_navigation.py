"""Tests for routes and the in-memory navigator."""

from __future__ import annotations

from synced_player.services.navigation import InMemoryNavigator, Route, watch_route


def test_watch_route_carries_playlist_and_index() -> None:
    assert watch_route("B", playlist_id="P", index=1) == "/watch/B?playlist=P&index=1"
    assert watch_route("B") == "/watch/B"
    assert watch_route("B", index=3) == "/watch/B"


def test_route_parse_extracts_watch_id_and_query() -> None:
    route = Route.parse("/watch/abc?playlist=P&index=2")
    assert route.path == "/watch/abc"
    assert route.watch_video_id == "abc"
    assert route.query == {"playlist": "P", "index": "2"}
    assert str(route) == "/watch/abc?playlist=P&index=2"
    assert Route.parse("/feed").watch_video_id is None
    assert Route.parse("/watch/").watch_video_id is None


def test_navigator_records_history_and_notifies() -> None:
    seen: list[Route] = []
    navigator = InMemoryNavigator("/home")
    navigator.add_listener(seen.append)

    navigator.navigate("/watch/A")

    assert navigator.current_route().watch_video_id == "A"
    assert navigator.history == ["/home", "/watch/A"]
    assert navigator.navigations == ["/watch/A"]
    assert [route.path for route in seen] == ["/watch/A"]
