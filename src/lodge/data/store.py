"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: data/store.py.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping

from .types import CacheEntry

logger = logging.getLogger("lodge.data.store")

StoreListener = Callable[[str, CacheEntry | None], None]


class CacheStore:
    """
    Process-wide key -> entry map shared by every handle of one service.

    All methods are synchronous, so each one runs atomically on the event
    loop and no locking is needed. Writes are last-write-wins.

    Write tokens let a fetch that started before an invalidation (``delete``)
    or a ``clear`` detect that its result no longer belongs in the store.
    """

    def __init__(self) -> None:
        self._rows: dict[str, CacheEntry] = {}
        self._listeners: dict[str, list[StoreListener]] = {}
        self._key_epochs: dict[str, int] = {}
        self._generation = 0

    def get(self, key: str) -> CacheEntry | None:
        return self._rows.get(key)

    def set(self, key: str, entry: CacheEntry) -> None:
        self._rows[key] = entry
        self._emit(key, entry)

    def delete(self, key: str) -> None:
        self._key_epochs[key] = self._key_epochs.get(key, 0) + 1
        if self._rows.pop(key, None) is not None:
            self._emit(key, None)

    def clear(self) -> None:
        self._generation += 1
        self._key_epochs.clear()
        removed = list(self._rows)
        self._rows.clear()
        for key in removed:
            self._emit(key, None)

    def keys(self) -> list[str]:
        return list(self._rows)

    def __contains__(self, key: object) -> bool:
        return key in self._rows

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._rows))

    def token(self, key: str) -> tuple[int, int]:
        """Opaque marker identifying the current lifetime of `key`."""
        return (self._generation, self._key_epochs.get(key, 0))

    def set_if_current(self, key: str, entry: CacheEntry, token: tuple[int, int]) -> bool:
        """Write `entry` only if `key` was not deleted or cleared since `token`."""
        if token != self.token(key):
            logger.debug("Dropping superseded cache write for %s", key)
            return False
        self.set(key, entry)
        return True

    def sweep_expired(
        self,
        now: float,
        cache_time_s: float,
        *,
        retention: Mapping[str, float] | None = None,
    ) -> list[str]:
        """
        Delete every entry older than its retention and return their keys.

        `retention` maps keys to their own ``cache_time_s``; other keys use
        the `cache_time_s` argument.
        """
        limits = retention or {}
        expired = [
            key
            for key, entry in self._rows.items()
            if entry.is_expired(now, limits.get(key, cache_time_s))
        ]
        for key in expired:
            self._rows.pop(key, None)
            self._emit(key, None)
        return expired

    def subscribe(self, key: str, listener: StoreListener) -> Callable[[], None]:
        """Call `listener` after every change to `key`; returns an unsubscribe."""
        self._listeners.setdefault(key, []).append(listener)

        def _unsubscribe() -> None:
            rows = self._listeners.get(key)
            if not rows:
                return
            try:
                rows.remove(listener)
            except ValueError:
                return
            if not rows:
                self._listeners.pop(key, None)

        return _unsubscribe

    def listener_count(self, key: str) -> int:
        return len(self._listeners.get(key, ()))

    def _emit(self, key: str, entry: CacheEntry | None) -> None:
        for listener in list(self._listeners.get(key, ())):
            listener(key, entry)
