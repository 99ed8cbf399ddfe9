"""Tests for playback state snapshots and tuning values."""

from __future__ import annotations

import pytest

from synced_player.services.playback_state import (
    PlaybackState,
    PlaylistContext,
    PlaylistEntry,
    VideoDescriptor,
)
from synced_player.services.sync_tuning import SyncTuning, clamp_rate, clamp_volume


def test_playlist_context_from_entries_locates_current_video() -> None:
    entries = [PlaylistEntry("A", "a"), PlaylistEntry("B", "b"), PlaylistEntry("C", "c")]
    context = PlaylistContext.from_entries("P", entries, current_video_id="B")
    assert context.ordered_video_ids == ("A", "B", "C")
    assert context.current_index == 1
    assert context.next_video_id == "C"
    assert context.with_index(2).next_index is None
    assert context.with_index(99).current_index == 2
    assert PlaylistContext.from_entries("P", entries, current_video_id="Z").current_index == 0


def test_playback_state_derived_values() -> None:
    state = PlaybackState()
    assert state.is_idle
    assert state.progress == 0.0
    assert state.has_next is False
    loaded = PlaybackState(
        current_video=VideoDescriptor("A", "a", "memory://a"),
        position=30.0,
        duration=120.0,
        playlist=PlaylistContext("P", ("A", "B")),
    )
    assert not loaded.is_idle
    assert loaded.progress == 0.25
    assert loaded.has_next is True


def test_tuning_scaling_only_touches_timing() -> None:
    tuning = SyncTuning().scaled(0.5)
    assert tuning.reconcile_debounce_s == pytest.approx(0.125)
    assert tuning.load_guard_s == pytest.approx(0.25)
    assert tuning.ready_poll_interval_s == pytest.approx(0.05)
    assert tuning.reconcile_drift_s == 0.5
    assert tuning.handover_drift_s == 0.2
    assert tuning.ready_max_attempts == 50
    assert SyncTuning().ready_timeout_s == pytest.approx(5.0)
    with pytest.raises(ValueError):
        SyncTuning().scaled(0)


def test_level_clamps() -> None:
    assert clamp_volume(-1) == 0.0
    assert clamp_volume(2) == 1.0
    assert clamp_rate(5) == 2.0
    assert clamp_rate(0.01) == 0.25
