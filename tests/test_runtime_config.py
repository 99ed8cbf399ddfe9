"""Tests for runtime config precedence behavior."""

from __future__ import annotations

import logging

from synced_player.app import build_parser
from synced_player.runtime_config import (
    resolve_api_base_url,
    resolve_log_level,
    tuning_from_env,
)
from synced_player.services.sync_tuning import SyncTuning


def test_resolve_log_level_precedence_matrix() -> None:
    assert resolve_log_level(verbose=False, quiet=False) == "INFO"
    assert resolve_log_level(verbose=True, quiet=False) == "DEBUG"
    assert resolve_log_level(verbose=False, quiet=True) == "WARNING"
    assert resolve_log_level(verbose=True, quiet=True) == "WARNING"


def test_parser_flags_and_log_resolution() -> None:
    args = build_parser().parse_args(
        ["--verbose", "--quiet", "--video", "A", "--playlist", "P", "--index", "2"]
    )
    assert resolve_log_level(verbose=args.verbose, quiet=args.quiet) == "WARNING"
    assert args.video == "A"
    assert args.playlist == "P"
    assert args.index == 2


def test_api_base_url_prefers_cli_then_env() -> None:
    env = {"SYNCED_PLAYER_API_BASE_URL": "http://env/api/"}
    assert resolve_api_base_url("http://cli/api/", env) == "http://cli/api"
    assert resolve_api_base_url(None, env) == "http://env/api"
    assert resolve_api_base_url("  ", env) == "http://env/api"
    assert resolve_api_base_url(None, {}) is None


def test_tuning_from_env_applies_valid_overrides(caplog) -> None:
    env = {
        "SYNCED_PLAYER_RECONCILE_DRIFT_S": "0.8",
        "SYNCED_PLAYER_READY_MAX_ATTEMPTS": "10",
        "SYNCED_PLAYER_LOAD_GUARD_S": "-1",
        "SYNCED_PLAYER_SEEK_GUARD_S": "nan",
        "SYNCED_PLAYER_MOUNT_DELAY_S": "soon",
    }
    with caplog.at_level(logging.WARNING, logger="synced_player.runtime_config"):
        tuning = tuning_from_env(env)

    defaults = SyncTuning()
    assert tuning.reconcile_drift_s == 0.8
    assert tuning.ready_max_attempts == 10
    assert tuning.load_guard_s == defaults.load_guard_s
    assert tuning.seek_guard_s == defaults.seek_guard_s
    assert tuning.mount_delay_s == defaults.mount_delay_s
    ignored = [r for r in caplog.records if r.getMessage().startswith("Ignoring invalid")]
    assert len(ignored) == 3


def test_tuning_from_env_rejects_zero_attempts() -> None:
    tuning = tuning_from_env({"SYNCED_PLAYER_READY_MAX_ATTEMPTS": "0"})
    assert tuning.ready_max_attempts == SyncTuning().ready_max_attempts
    base = SyncTuning().scaled(0.5)
    assert tuning_from_env({}, base=base) is base
