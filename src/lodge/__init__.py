"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

lodge: data layer of the guest-house management client.
"""

from .data import (
    ApiError,
    CacheEntry,
    DataCacheService,
    DataCacheSettings,
    FreshnessPolicy,
    HttpApiTransport,
    MutationHandle,
    MutationOptions,
    QueryHandle,
    TokenStore,
    create_data_cache_service,
)

__all__ = [
    "ApiError",
    "CacheEntry",
    "DataCacheService",
    "DataCacheSettings",
    "FreshnessPolicy",
    "HttpApiTransport",
    "MutationHandle",
    "MutationOptions",
    "QueryHandle",
    "TokenStore",
    "create_data_cache_service",
]
