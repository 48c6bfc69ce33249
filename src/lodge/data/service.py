"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Data cache service: the single owner of the shared store and the in-flight
registry for one application process.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, TypeVar

from .coalescing import InFlightRegistry
from .contracts import FreshnessPolicy, MutationOptions
from .errors import ApiError, classify_error
from .notify import Notifier, create_notifier
from .settings import DataCacheSettings
from .store import CacheStore
from .transport import ApiTransport, HttpApiTransport, TokenProvider
from .types import CacheEntry, JSONValue

if TYPE_CHECKING:
    from .mutation import MutationHandle
    from .query import QueryHandle

T = TypeVar("T")

logger = logging.getLogger("lodge.data.service")

FocusListener = Callable[[], Awaitable[None]]


@dataclass(slots=True)
class _FetchMode:
    """Failure side effects of one physical fetch, widened by joining callers."""

    record_errors: bool
    notify_errors: bool
    error_title: str

    def widen(self, policy: FreshnessPolicy, record_errors: bool) -> None:
        self.record_errors = self.record_errors or record_errors
        if policy.notify_errors and not self.notify_errors:
            self.notify_errors = True
            self.error_title = policy.error_title


class DataCacheService:
    """
    Shared data cache with request deduplication and stale-while-revalidate.

    One instance is created at application start and handed to every view
    that reads or writes API resources. Tests create one per test case.

    Concurrency follows the event loop: every store mutation is synchronous,
    so the only ordering hazard is across awaits. For one key the cache
    holds whatever fetch completed last; fetches that started before an
    invalidation or a ``clear_cache`` never write their result back.
    """

    def __init__(
        self,
        transport: ApiTransport,
        *,
        settings: DataCacheSettings | None = None,
        notifier: str | Notifier | None = None,
        clock: Callable[[], float] = time.time,
        store: CacheStore | None = None,
        registry: InFlightRegistry | None = None,
    ) -> None:
        self.settings = settings or DataCacheSettings()
        self.transport = transport
        self.notifier = create_notifier(
            notifier if notifier is not None else self.settings.notifier
        )
        self.store = store or CacheStore()
        self.registry = registry or InFlightRegistry()
        self._clock = clock

        self._fetch_modes: dict[str, _FetchMode] = {}
        self._retention: dict[str, list[float]] = {}
        self._focus_listeners: list[FocusListener] = []
        self._background: set[asyncio.Task[Any]] = set()
        self._sweeper: asyncio.Task[None] | None = None

    def now(self) -> float:
        return self._clock()

    # ------------------------------------------------------------------
    # Handles
    # ------------------------------------------------------------------

    def query(
        self,
        key: str,
        policy: FreshnessPolicy | None = None,
        *,
        parse: Callable[[JSONValue], T] | None = None,
        **overrides: Any,
    ) -> "QueryHandle[T]":
        """Create a read handle for `key`; keyword overrides patch the policy."""
        from .query import QueryHandle

        resolved = policy or self.settings.default_policy()
        if overrides:
            resolved = replace(resolved, **overrides)
        return QueryHandle(self, key, resolved, parse=parse)

    def mutation(
        self,
        key: str,
        options: MutationOptions | None = None,
        **overrides: Any,
    ) -> "MutationHandle":
        """Create a write handle for `key`; keyword overrides patch the options."""
        from .mutation import MutationHandle

        resolved = options or MutationOptions()
        if overrides:
            resolved = replace(resolved, **overrides)
        return MutationHandle(self, key, resolved)

    # ------------------------------------------------------------------
    # Fetch and store
    # ------------------------------------------------------------------

    async def fetch(
        self,
        key: str,
        *,
        policy: FreshnessPolicy | None = None,
        record_errors: bool = True,
    ) -> CacheEntry:
        """
        Fetch `key` through the in-flight registry and store the outcome.

        Concurrent callers for the same key share one physical request. The
        caller that starts it picks the notification title; a caller that
        joins can only turn error recording and notification on, never off.

        Raises:
            ApiError: Raised to every joined caller when the request fails.
        """
        resolved = policy or self.settings.default_policy()
        mode = self._fetch_modes.get(key)
        if mode is not None and key in self.registry:
            mode.widen(resolved, record_errors)
        else:
            mode = _FetchMode(
                record_errors=record_errors,
                notify_errors=resolved.notify_errors,
                error_title=resolved.error_title,
            )
            self._fetch_modes[key] = mode
        return await self.registry.run(key, lambda: self._load(key, mode))

    async def _load(self, key: str, mode: _FetchMode) -> CacheEntry:
        try:
            return await self._load_entry(key, mode)
        finally:
            if self._fetch_modes.get(key) is mode:
                self._fetch_modes.pop(key, None)

    async def _load_entry(self, key: str, mode: _FetchMode) -> CacheEntry:
        token = self.store.token(key)
        previous = self.store.get(key)
        if previous is not None and not previous.is_loading:
            self.store.set(key, replace(previous, is_loading=True))

        try:
            payload = await self.transport.get(key)
        except Exception as exc:  # noqa: BLE001
            error = classify_error(exc)
            message = str(error)
            logger.warning("Fetch failed for %s: %s", key, message)

            current = self.store.get(key)
            if mode.record_errors:
                self.store.set_if_current(
                    key,
                    CacheEntry(
                        data=current.data if current is not None else None,
                        timestamp=self.now(),
                        error=message,
                    ),
                    token,
                )
            elif current is not None and current.is_loading:
                self.store.set_if_current(key, replace(current, is_loading=False), token)

            if mode.notify_errors:
                self.notifier.error(message, title=mode.error_title)
            if error is exc:
                raise
            raise error from exc

        entry = CacheEntry(data=payload, timestamp=self.now())
        self.store.set_if_current(key, entry, token)
        return entry

    # ------------------------------------------------------------------
    # Cache utilities
    # ------------------------------------------------------------------

    def invalidate(self, keys: tuple[str, ...] | list[str]) -> None:
        """Drop `keys` so the next read fetches them again."""
        for key in keys:
            self.store.delete(key)
            self.registry.forget(key)
            self._fetch_modes.pop(key, None)

    def clear_cache(self, key: str | None = None) -> None:
        """Delete one entry, or with no key every entry and in-flight marker."""
        if key is not None:
            self.invalidate((key,))
            return
        self.store.clear()
        self.registry.clear()
        self._fetch_modes.clear()
        logger.info("Data cache cleared")

    def prefetch_data(self, key: str) -> asyncio.Task[None] | None:
        """
        Warm the cache for `key` in background.

        Skipped when an entry younger than ``prefetch_max_age_s`` exists.
        Failures are logged at debug level and never surfaced.
        """
        entry = self.store.get(key)
        if entry is not None and not entry.is_stale(
            self.now(), self.settings.prefetch_max_age_s
        ):
            return None
        policy = replace(self.settings.default_policy(), notify_errors=False)
        return self.spawn(self._prefetch(key, policy))

    async def _prefetch(self, key: str, policy: FreshnessPolicy) -> None:
        try:
            await self.fetch(key, policy=policy, record_errors=False)
        except ApiError as error:
            logger.debug("Prefetch failed for %s: %s", key, error)

    def retain(self, key: str, cache_time_s: float) -> Callable[[], None]:
        """Keep `key` for `cache_time_s` while the returned release is not called."""
        self._retention.setdefault(key, []).append(cache_time_s)

        def _release() -> None:
            rows = self._retention.get(key)
            if not rows:
                return
            rows.remove(cache_time_s)
            if not rows:
                self._retention.pop(key, None)

        return _release

    def sweep(self, now: float | None = None) -> list[str]:
        """
        Run one expiry pass.

        Keys watched by mounted handles expire after the longest
        ``cache_time_s`` among those handles; all other keys after
        ``settings.cache_time_s``.
        """
        expired = self.store.sweep_expired(
            self.now() if now is None else now,
            self.settings.cache_time_s,
            retention={key: max(rows) for key, rows in self._retention.items()},
        )
        if expired:
            logger.debug("Evicted %d expired cache entries", len(expired))
        return expired

    # ------------------------------------------------------------------
    # Focus signal
    # ------------------------------------------------------------------

    def add_focus_listener(self, listener: FocusListener) -> Callable[[], None]:
        self._focus_listeners.append(listener)

        def _remove() -> None:
            try:
                self._focus_listeners.remove(listener)
            except ValueError:
                return

        return _remove

    async def notify_focus(self) -> None:
        """Signal that the application regained focus."""
        listeners = list(self._focus_listeners)
        if listeners:
            await asyncio.gather(*(listener() for listener in listeners))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def spawn(self, coro: Coroutine[Any, Any, T]) -> asyncio.Task[T]:
        """Run `coro` as a background task owned by this service."""
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    @property
    def running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start(self) -> None:
        """Start the periodic expiry sweeper."""
        if self.running:
            return
        self._sweeper = asyncio.create_task(self._sweep_loop())
        logger.debug(
            "Cache sweeper started (interval=%.1fs, cache_time=%.1fs)",
            self.settings.sweep_interval_s,
            self.settings.cache_time_s,
        )

    async def close(self) -> None:
        """Stop the sweeper and cancel background work and in-flight fetches."""
        if self._sweeper is not None and not self._sweeper.done():
            self._sweeper.cancel()
            await asyncio.gather(self._sweeper, return_exceptions=True)
        self._sweeper = None

        pending = [task for task in self._background if not task.done()]
        pending.extend(task for task in self.registry.tasks() if not task.done())
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.settings.sweep_interval_s)
            try:
                self.sweep()
            except Exception:  # noqa: BLE001
                logger.exception("Cache sweep failed")

    async def __aenter__(self) -> "DataCacheService":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def create_data_cache_service(
    settings: DataCacheSettings | None = None,
    *,
    transport: ApiTransport | None = None,
    notifier: str | Notifier | None = None,
    token_provider: TokenProvider | None = None,
) -> DataCacheService:
    """Build a service from explicit settings or `LODGE_*` environment."""
    resolved = settings or DataCacheSettings.from_env()
    return DataCacheService(
        transport
        or HttpApiTransport(
            resolved.api_base_url,
            timeout_s=resolved.request_timeout_s,
            token_provider=token_provider,
        ),
        settings=resolved,
        notifier=notifier,
    )
