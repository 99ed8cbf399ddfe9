"""Thresholds and delays governing surface synchronization.

Values are empirical (tuned against visible seek stutter) and can be overridden
per run through `runtime_config.tuning_from_env`.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace

VOLUME_MIN = 0.0
VOLUME_MAX = 1.0
RATE_MIN = 0.25
RATE_MAX = 2.0


@dataclass(frozen=True)
class SyncTuning:
    """Synchronization thresholds (seconds unless noted)."""

    # Minimum change before a position update is published to state.
    publish_threshold_s: float = 0.1
    # Drift tolerated when handing control to a freshly activated surface.
    handover_drift_s: float = 0.2
    # Drift tolerated by the steady-state reconciliation pass.
    reconcile_drift_s: float = 0.5
    # Volume/rate differences below this are treated as equal.
    level_epsilon: float = 0.01
    # Main surface visible fraction required to count as visible.
    visibility_threshold: float = 0.5

    reconcile_debounce_s: float = 0.25
    reconcile_cooldown_s: float = 0.2
    handover_cooldown_s: float = 0.15
    post_handover_sync_delay_s: float = 0.3
    post_play_sync_delay_s: float = 0.1
    post_pause_sync_delay_s: float = 0.05
    load_guard_s: float = 0.5
    seek_guard_s: float = 0.1
    mount_delay_s: float = 0.2
    resume_delay_s: float = 0.15
    scroll_delay_s: float = 0.5
    ready_poll_interval_s: float = 0.1
    ready_max_attempts: int = 50

    def scaled(self, factor: float) -> SyncTuning:
        """Return a copy with every delay multiplied by `factor`.

        Thresholds are left untouched; only timing changes.
        """
        if factor <= 0:
            raise ValueError("factor must be > 0")
        updates = {
            item.name: getattr(self, item.name) * factor
            for item in fields(self)
            if item.name.endswith("_delay_s")
            or item.name.endswith("_guard_s")
            or item.name.endswith("_cooldown_s")
            or item.name in {"reconcile_debounce_s", "ready_poll_interval_s"}
        }
        return replace(self, **updates)

    @property
    def ready_timeout_s(self) -> float:
        return self.ready_poll_interval_s * self.ready_max_attempts


def clamp_volume(volume: float) -> float:
    return max(VOLUME_MIN, min(float(volume), VOLUME_MAX))


def clamp_rate(rate: float) -> float:
    return max(RATE_MIN, min(float(rate), RATE_MAX))
