"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Data cache settings and explicit config loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .contracts import FreshnessPolicy


def _env(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _env_float(name: str, default: float) -> float:
    """Read a number of seconds from `name`; blank or missing means `default`."""
    raw = _env(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


@dataclass(frozen=True, slots=True)
class DataCacheSettings:
    """Explicit settings used by the data cache service and its transport."""

    api_base_url: str | None = None
    request_timeout_s: float = 30.0

    stale_time_s: float = 300.0
    cache_time_s: float = 600.0
    sweep_interval_s: float = 60.0

    prefetch_max_age_s: float = 300.0
    prefetch_repeat_delay_s: float = 2.0

    notifier: str = "logging"

    @staticmethod
    def from_env() -> "DataCacheSettings":
        """Load settings from `LODGE_*` environment variables."""
        return DataCacheSettings(
            api_base_url=_env("LODGE_API_BASE_URL"),
            request_timeout_s=_env_float("LODGE_REQUEST_TIMEOUT_S", 30.0),
            stale_time_s=_env_float("LODGE_STALE_TIME_S", 300.0),
            cache_time_s=_env_float("LODGE_CACHE_TIME_S", 600.0),
            sweep_interval_s=_env_float("LODGE_SWEEP_INTERVAL_S", 60.0),
            prefetch_max_age_s=_env_float("LODGE_PREFETCH_MAX_AGE_S", 300.0),
            prefetch_repeat_delay_s=_env_float("LODGE_PREFETCH_REPEAT_DELAY_S", 2.0),
            notifier=(_env("LODGE_NOTIFIER") or "logging").lower(),
        )

    def default_policy(self) -> FreshnessPolicy:
        """Freshness policy used by handles that do not pass their own."""
        return FreshnessPolicy(
            stale_time_s=self.stale_time_s,
            cache_time_s=self.cache_time_s,
        )
