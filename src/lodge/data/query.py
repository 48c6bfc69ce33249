"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Read handle over the shared cache.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .contracts import FreshnessPolicy
from .errors import ApiError
from .types import CacheEntry, JSONValue, QueryState

if TYPE_CHECKING:
    from .service import DataCacheService

T = TypeVar("T")

logger = logging.getLogger("lodge.data.query")

StateListener = Callable[[QueryState[Any]], None]

_UNSET: Any = object()


class QueryHandle(Generic[T]):
    """
    One consumer's view of a cached resource.

    The handle seeds itself from the shared cache when created, then on
    ``mount`` (and on focus signals when enabled) decides between serving
    the cache, refreshing in background or fetching in the foreground:

    - no entry, or entry older than ``cache_time_s``: foreground fetch,
      ``loading`` stays true until it settles.
    - entry younger than ``stale_time_s``: served as is, no request.
    - anything in between: served immediately and refreshed in background.

    A failed fetch never clears data the handle already shows. After
    ``unmount`` the handle stops updating itself, but fetches it started
    keep running and still update the shared cache.
    """

    def __init__(
        self,
        service: "DataCacheService",
        key: str,
        policy: FreshnessPolicy,
        *,
        parse: Callable[[JSONValue], T] | None = None,
    ) -> None:
        self._service = service
        self.key = key
        self.policy = policy
        self._parse = parse

        self._disposed = False
        self._mounted = False
        self._listeners: list[StateListener] = []
        self._subscriptions: list[Callable[[], None]] = []
        self._refresh_task: asyncio.Task[None] | None = None

        self._data: T | None = None
        self._error: str | None = None
        self._loading = True

        entry = service.store.get(key)
        if entry is not None and not entry.is_expired(service.now(), policy.cache_time_s):
            self._data, self._error = self._decode(entry)
            self._loading = False

    @property
    def data(self) -> T | None:
        return self._data

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_stale(self) -> bool:
        entry = self._service.store.get(self.key)
        if entry is None:
            return False
        return entry.is_stale(self._service.now(), self.policy.stale_time_s)

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def state(self) -> QueryState[T]:
        return QueryState(
            data=self._data,
            loading=self._loading,
            error=self._error,
            is_stale=self.is_stale,
        )

    def on_change(self, listener: StateListener) -> Callable[[], None]:
        """Call `listener` with the new state after every local change."""
        self._listeners.append(listener)

        def _remove() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                return

        return _remove

    async def mount(self) -> None:
        """Start observing the cache and run the mount-time staleness decision."""
        if self._mounted:
            return
        self._mounted = True
        self._disposed = False
        self._subscriptions.append(
            self._service.store.subscribe(self.key, self._on_store_change)
        )
        self._subscriptions.append(self._service.retain(self.key, self.policy.cache_time_s))
        if self.policy.refetch_on_window_focus:
            self._subscriptions.append(self._service.add_focus_listener(self.revalidate))
        if self.policy.refetch_on_mount:
            await self.revalidate()

    def unmount(self) -> None:
        self._disposed = True
        self._mounted = False
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()

    async def revalidate(self) -> None:
        """Serve, refresh in background or fetch, depending on entry age."""
        entry = self._service.store.get(self.key)
        now = self._service.now()
        if entry is None or entry.is_expired(now, self.policy.cache_time_s):
            await self._fetch(blocking=True)
            return

        self._apply_entry(entry)
        if entry.is_stale(now, self.policy.stale_time_s):
            self._start_background_refresh()

    async def refetch(self) -> None:
        """Fetch in the foreground regardless of staleness."""
        await self._fetch(blocking=True)

    async def settle(self) -> None:
        """Wait for the background refresh started by this handle, if any."""
        task = self._refresh_task
        if task is not None:
            await task

    async def __aenter__(self) -> "QueryHandle[T]":
        await self.mount()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.unmount()

    def _start_background_refresh(self) -> None:
        if self._refresh_task is not None and not self._refresh_task.done():
            return
        logger.debug("Refreshing stale entry for %s in background", self.key)
        self._refresh_task = self._service.spawn(self._fetch(blocking=False))

    async def _fetch(self, *, blocking: bool) -> None:
        if blocking:
            self._update(loading=True, error=None)
        try:
            entry = await self._service.fetch(self.key, policy=self.policy)
        except ApiError as error:
            self._update(loading=False, error=str(error))
            return
        self._apply_entry(entry)

    def _on_store_change(self, key: str, entry: CacheEntry | None) -> None:
        _ = key
        if entry is None or entry.is_loading:
            return
        self._apply_entry(entry)

    def _apply_entry(self, entry: CacheEntry) -> None:
        data, error = self._decode(entry)
        if entry.error is not None and entry.data is None:
            self._update(loading=False, error=error)
            return
        self._update(data=data, loading=False, error=error)

    def _decode(self, entry: CacheEntry) -> tuple[T | None, str | None]:
        if entry.data is None or self._parse is None:
            return entry.data, entry.error  # type: ignore[return-value]
        try:
            return self._parse(entry.data), entry.error
        except (ValueError, TypeError) as e:
            logger.warning("Unparseable payload for %s: %s", self.key, e)
            return None, f"Invalid response payload: {e}"

    def _update(
        self,
        *,
        data: Any = _UNSET,
        loading: bool | None = None,
        error: Any = _UNSET,
    ) -> None:
        if self._disposed:
            return
        changed = False
        if data is not _UNSET and data is not self._data:
            self._data = data
            changed = True
        if loading is not None and loading != self._loading:
            self._loading = loading
            changed = True
        if error is not _UNSET and error != self._error:
            self._error = error
            changed = True
        if changed:
            snapshot = self.state
            for listener in list(self._listeners):
                listener(snapshot)
