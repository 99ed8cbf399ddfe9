"""Tests for status pane helpers."""

from __future__ import annotations

from synced_player.services.playback_state import PlaybackState, VideoDescriptor
from synced_player.ui.status_pane import (
    playback_status,
    quantize_speed,
    step_speed,
    step_volume,
)
from synced_player.ui.surface_view import progress_bar

VIDEO = VideoDescriptor("A", "a", "memory://a")


def test_playback_status_labels() -> None:
    assert playback_status(PlaybackState()) == "idle"
    assert playback_status(PlaybackState(current_video=VIDEO, error="x")) == "error"
    assert playback_status(PlaybackState(current_video=VIDEO, is_buffering=True)) == "buffering"
    assert playback_status(PlaybackState(current_video=VIDEO, is_playing=True)) == "playing"
    assert playback_status(PlaybackState(current_video=VIDEO)) == "paused"


def test_volume_steps_are_clamped() -> None:
    assert step_volume(0.5, 1) == 0.55
    assert step_volume(0.02, -1) == 0.0
    assert step_volume(1.0, 3) == 1.0


def test_speed_steps_snap_to_quarter_and_clamp() -> None:
    assert step_speed(1.0, 1) == 1.25
    assert step_speed(0.25, -1) == 0.25
    assert step_speed(2.0, 2) == 2.0
    assert quantize_speed(1.1) == 1.0


def test_progress_bar_shapes() -> None:
    assert progress_bar(0.0, 5) == "●----"
    assert progress_bar(1.0, 5) == "====●"
    assert progress_bar(0.5, 5) == "==●--"
    assert progress_bar(0.5, 1) == "●"
    assert progress_bar(0.5, 0) == ""
