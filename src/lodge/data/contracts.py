"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed per-call policies for cached reads and one-shot writes.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Literal

from .types import JSONValue

MutationMethod = Literal["POST", "PUT", "PATCH", "DELETE"]
MUTATION_METHODS: tuple[str, ...] = ("POST", "PUT", "PATCH", "DELETE")

SuccessCallback = Callable[[JSONValue], Awaitable[None] | None]
ErrorCallback = Callable[[str], Awaitable[None] | None]


@dataclass(frozen=True, slots=True)
class FreshnessPolicy:
    """
    Freshness rules for one query handle.

    Attributes:
        stale_time_s: Age after which cached data is refreshed in background.
        cache_time_s: Age after which cached data is treated as absent.
        refetch_on_mount: Run the staleness decision when the handle mounts.
        refetch_on_window_focus: Run the staleness decision on focus signals.
        error_title: Title attached to error notifications.
        notify_errors: Emit a notification when a fetch fails.
    """

    stale_time_s: float = 300.0
    cache_time_s: float = 600.0
    refetch_on_mount: bool = True
    refetch_on_window_focus: bool = False
    error_title: str = "Request failed"
    notify_errors: bool = True

    def __post_init__(self) -> None:
        if self.stale_time_s < 0 or self.cache_time_s < 0:
            raise ValueError("stale_time_s and cache_time_s must be non-negative")


@dataclass(frozen=True, slots=True)
class MutationOptions:
    """Behaviour of one mutation handle."""

    method: MutationMethod = "POST"
    invalidate_keys: tuple[str, ...] = field(default_factory=tuple)
    on_success: SuccessCallback | None = None
    on_error: ErrorCallback | None = None
    success_title: str = "Action completed"
    notify_success: bool = True
    error_title: str = "Request failed"
    notify_errors: bool = True

    def __post_init__(self) -> None:
        method = str(self.method).upper()
        if method not in MUTATION_METHODS:
            raise ValueError(f"Unsupported mutation method: {self.method}")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "invalidate_keys", tuple(self.invalidate_keys))

