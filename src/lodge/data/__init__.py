"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Client-side data cache for the guest-house API.

Reads go through ``QueryHandle`` (shared cache, request deduplication,
stale-while-revalidate); writes go through ``MutationHandle`` (one-shot call,
then invalidation of related keys).

Quick start::

    from lodge.data import create_data_cache_service

    async with create_data_cache_service() as service:
        rooms = service.query("/api/rooms", stale_time_s=60, cache_time_s=300)
        await rooms.mount()
        print(rooms.data, rooms.error)

        add_room = service.mutation("/api/rooms", invalidate_keys=("/api/rooms",))
        await add_room.mutate({"number": "102", "type": "double"})
"""

from .coalescing import InFlightRegistry
from .contracts import MUTATION_METHODS, FreshnessPolicy, MutationMethod, MutationOptions
from .errors import (
    ApiEnvelopeError,
    ApiError,
    ApiStatusError,
    ApiTransportError,
    classify_error,
)
from .mutation import MutationHandle
from .notify import (
    InMemoryNotifier,
    LoggingNotifier,
    Notification,
    Notifier,
    NotifierError,
    NullNotifier,
    create_notifier,
)
from .prefetch import (
    DataPrefetcher,
    prefetch_all_data,
    prefetch_common_data,
    prefetch_keys,
    prefetch_on_hover,
    prefetch_on_mount,
    prefetch_user_specific_data,
)
from .query import QueryHandle
from .service import DataCacheService, create_data_cache_service
from .settings import DataCacheSettings
from .store import CacheStore
from .transport import (
    ApiTransport,
    HttpApiTransport,
    TokenStore,
    collect_headers,
    http_send,
    normalize_response,
)
from .types import CacheEntry, JSONValue, QueryState, RawResponse

__all__ = [
    "ApiEnvelopeError",
    "ApiError",
    "ApiStatusError",
    "ApiTransport",
    "ApiTransportError",
    "CacheEntry",
    "CacheStore",
    "DataCacheService",
    "DataCacheSettings",
    "DataPrefetcher",
    "FreshnessPolicy",
    "HttpApiTransport",
    "InFlightRegistry",
    "InMemoryNotifier",
    "JSONValue",
    "LoggingNotifier",
    "MUTATION_METHODS",
    "MutationHandle",
    "MutationMethod",
    "MutationOptions",
    "Notification",
    "Notifier",
    "NotifierError",
    "NullNotifier",
    "QueryHandle",
    "QueryState",
    "RawResponse",
    "TokenStore",
    "classify_error",
    "collect_headers",
    "create_data_cache_service",
    "create_notifier",
    "http_send",
    "normalize_response",
    "prefetch_all_data",
    "prefetch_common_data",
    "prefetch_keys",
    "prefetch_on_hover",
    "prefetch_on_mount",
    "prefetch_user_specific_data",
]
