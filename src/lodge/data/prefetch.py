"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Prefetch plans that warm the cache ahead of likely navigation.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from .transport import TokenStore

if TYPE_CHECKING:
    from .service import DataCacheService

logger = logging.getLogger("lodge.data.prefetch")

COMMON_KEYS: tuple[str, ...] = ("/api/rooms",)
ALL_KEYS: tuple[str, ...] = ("/api/rooms", "/api/users", "/api/bookings", "/api/auth/me")

ROLE_KEYS: dict[str, tuple[str, ...]] = {
    "admin": ("/api/users", "/api/bookings", "/api/rooms"),
    "staff": ("/api/users", "/api/bookings", "/api/rooms"),
    "guest": ("/api/rooms", "/api/bookings/my"),
}

HOVER_KEYS: dict[str, str] = {
    "/rooms": "/api/rooms",
    "/users": "/api/users",
    "/booking": "/api/bookings",
}

MOUNT_KEYS: dict[str, str] = {
    "RoomsList": "/api/rooms",
    "UsersPageWrapper": "/api/users",
    "BookingDataTable": "/api/bookings",
}


def prefetch_keys(service: "DataCacheService", keys: Iterable[str]) -> list[asyncio.Task[None]]:
    """Prefetch every key; returns the tasks that were actually started."""
    tasks: list[asyncio.Task[None]] = []
    for key in keys:
        task = service.prefetch_data(key)
        if task is not None:
            tasks.append(task)
    return tasks


def prefetch_common_data(service: "DataCacheService") -> list[asyncio.Task[None]]:
    """Public data needed before sign-in."""
    return prefetch_keys(service, COMMON_KEYS)


def prefetch_all_data(service: "DataCacheService") -> list[asyncio.Task[None]]:
    return prefetch_keys(service, ALL_KEYS)


def prefetch_user_specific_data(
    service: "DataCacheService",
    role: str | None,
) -> list[asyncio.Task[None]]:
    """Keys a user with `role` is likely to open next."""
    return prefetch_keys(service, ROLE_KEYS.get((role or "").lower(), ()))


def prefetch_on_hover(service: "DataCacheService", href: str) -> list[asyncio.Task[None]]:
    key = HOVER_KEYS.get(href)
    return prefetch_keys(service, (key,) if key else ())


def prefetch_on_mount(service: "DataCacheService", component: str) -> list[asyncio.Task[None]]:
    key = MOUNT_KEYS.get(component)
    return prefetch_keys(service, (key,) if key else ())


class DataPrefetcher:
    """
    Warms the cache once at application start.

    Signed-in sessions get every main resource, with a second pass after
    ``prefetch_repeat_delay_s``; anonymous sessions only the public data.
    """

    def __init__(self, service: "DataCacheService", tokens: TokenStore) -> None:
        self._service = service
        self._tokens = tokens
        self._repeat: asyncio.Task[None] | None = None

    def start(self) -> list[asyncio.Task[None]]:
        if not self._tokens.is_authenticated:
            return prefetch_common_data(self._service)

        tasks = prefetch_all_data(self._service)
        self.stop()
        self._repeat = self._service.spawn(self._repeat_after_delay())
        return tasks

    def stop(self) -> None:
        if self._repeat is not None and not self._repeat.done():
            self._repeat.cancel()
        self._repeat = None

    async def wait(self) -> None:
        """Wait for the delayed second pass, if one is scheduled."""
        if self._repeat is not None:
            await self._repeat

    async def _repeat_after_delay(self) -> None:
        await asyncio.sleep(self._service.settings.prefetch_repeat_delay_s)
        if not self._tokens.is_authenticated:
            return
        tasks = prefetch_all_data(self._service)
        logger.debug("Repeat prefetch started %d request(s)", len(tasks))
        if tasks:
            await asyncio.gather(*tasks)
