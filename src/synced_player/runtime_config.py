"""Runtime configuration normalization helpers.

These helpers keep CLI flag and environment interpretation deterministic
across entrypoints. Tuning overrides are read from `SYNCED_PLAYER_<FIELD>`
variables (for example `SYNCED_PLAYER_RECONCILE_DRIFT_S=0.8`); invalid values
are ignored with a warning.
"""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from dataclasses import fields, replace

from synced_player.services.sync_tuning import SyncTuning

logger = logging.getLogger(__name__)

ENV_PREFIX = "SYNCED_PLAYER_"
API_BASE_URL_ENV = f"{ENV_PREFIX}API_BASE_URL"
DEFAULT_API_BASE_URL = "http://localhost:8000/api/v1"


def resolve_log_level(*, verbose: bool, quiet: bool) -> str:
    """Resolve effective log level from CLI flags.

    Precedence is deterministic: --quiet overrides --verbose.
    """
    if quiet:
        return "WARNING"
    if verbose:
        return "DEBUG"
    return "INFO"


def resolve_api_base_url(
    cli_value: str | None, env: Mapping[str, str] | None = None
) -> str | None:
    """Pick the media API base URL: CLI flag, then environment, else None.

    None means no remote API is configured and the offline catalog is used.
    """
    environ = os.environ if env is None else env
    for candidate in (cli_value, environ.get(API_BASE_URL_ENV)):
        if candidate is None:
            continue
        normalized = candidate.strip().rstrip("/")
        if normalized:
            return normalized
    return None


def tuning_from_env(
    env: Mapping[str, str] | None = None, *, base: SyncTuning | None = None
) -> SyncTuning:
    """Apply `SYNCED_PLAYER_<FIELD>` overrides onto `base` (defaults if None)."""
    environ = os.environ if env is None else env
    tuning = base or SyncTuning()
    updates: dict[str, float | int] = {}
    for item in fields(SyncTuning):
        key = f"{ENV_PREFIX}{item.name.upper()}"
        raw = environ.get(key)
        if raw is None:
            continue
        parsed = _parse_tuning_value(raw, integer=item.name == "ready_max_attempts")
        if parsed is None:
            logger.warning("Ignoring invalid %s=%r", key, raw)
            continue
        updates[item.name] = parsed
    if not updates:
        return tuning
    logger.info("Sync tuning overrides: %s", sorted(updates))
    return replace(tuning, **updates)


def _parse_tuning_value(raw: str, *, integer: bool) -> float | int | None:
    text = raw.strip()
    try:
        value = int(text) if integer else float(text)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    if integer and value < 1:
        return None
    return value
