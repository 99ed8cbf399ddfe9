"""Tests for mini-player placement rules."""

from __future__ import annotations

from synced_player.services.mini_player import MiniPlayerLayout
from synced_player.services.playback_state import Point, Size


def test_default_position_is_bottom_right_inset() -> None:
    layout = MiniPlayerLayout()
    assert layout.default_position((1280, 720), Size(360, 202)) == Point(900, 498)


def test_default_position_never_leaves_top_left_margin() -> None:
    layout = MiniPlayerLayout()
    assert layout.default_position((200, 100), Size(360, 202)) == Point(20, 20)


def test_clamp_position_keeps_player_on_screen() -> None:
    layout = MiniPlayerLayout()
    size = Size(360, 202)
    assert layout.clamp_position(-50, -50, (1280, 720), size) == Point(0, 0)
    assert layout.clamp_position(2000, 2000, (1280, 720), size) == Point(920, 518)
    assert layout.clamp_position(100, 100, (300, 150), size) == Point(0, 0)


def test_resize_clamps_width_and_keeps_aspect() -> None:
    layout = MiniPlayerLayout()
    assert layout.resize(100) == Size(280, 157)
    assert layout.resize(480) == Size(480, 269)
    assert layout.resize(9000) == Size(600, 337)
