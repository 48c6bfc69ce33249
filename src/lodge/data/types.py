"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Value types shared by the cache store, the handles and the transport.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Generic, TypeAlias, TypeVar

JSONPrimitive: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """
    Last known state of one resource key.

    Attributes:
        data: Last successfully fetched payload, or ``None`` when the key has
            never been fetched successfully.
        timestamp: Clock reading (seconds) of the last write.
        is_loading: Whether a fetch for the key is currently running.
        error: Message of the last failed fetch, ``None`` after a success.
    """

    data: JSONValue | None
    timestamp: float
    is_loading: bool = False
    error: str | None = None

    def age(self, now: float) -> float:
        return now - self.timestamp

    def is_stale(self, now: float, stale_time_s: float) -> bool:
        return self.age(now) > stale_time_s

    def is_expired(self, now: float, cache_time_s: float) -> bool:
        return self.age(now) > cache_time_s


@dataclass(frozen=True, slots=True)
class QueryState(Generic[T]):
    """Snapshot of one query handle as seen by its consumer."""

    data: T | None
    loading: bool
    error: str | None
    is_stale: bool


@dataclass(frozen=True, slots=True)
class RawResponse:
    """Undecoded HTTP response handed from the wire to the normaliser."""

    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

