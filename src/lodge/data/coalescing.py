"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: data/coalescing.py.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")

logger = logging.getLogger("lodge.data.coalescing")


class InFlightRegistry:
    """Deduplicate identical in-flight fetches by resource key."""

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[Any]] = {}

    def get(self, key: str) -> asyncio.Task[Any] | None:
        return self._tasks.get(key)

    def begin_or_join(
        self,
        key: str,
        factory: Callable[[], Awaitable[T]],
    ) -> asyncio.Task[T]:
        """Return the running task for `key`, starting one if none exists."""
        existing = self._tasks.get(key)
        if existing is not None and not existing.done():
            logger.debug("Joining in-flight fetch for %s", key)
            return existing

        task: asyncio.Task[T] = asyncio.ensure_future(self._settle(key, factory))
        self._tasks[key] = task
        return task

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Await the shared fetch for `key`; cancelling the caller spares the fetch."""
        return await asyncio.shield(self.begin_or_join(key, factory))

    def forget(self, key: str) -> None:
        """Drop the marker for `key`; the running fetch itself keeps going."""
        self._tasks.pop(key, None)

    def clear(self) -> None:
        self._tasks.clear()

    def tasks(self) -> list[asyncio.Task[Any]]:
        return list(self._tasks.values())

    def __contains__(self, key: object) -> bool:
        return key in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    async def _settle(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        try:
            return await factory()
        finally:
            # Runs before waiters resume, so a failed fetch never blocks a retry.
            if self._tasks.get(key) is asyncio.current_task():
                self._tasks.pop(key, None)
