"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

User list resource used by the staff dashboard.
"""

from __future__ import annotations

from pydantic import Field, TypeAdapter

from ..data.contracts import FreshnessPolicy
from ..data.query import QueryHandle
from ..data.service import DataCacheService
from ..data.types import JSONValue
from .base import ApiModel, unwrap

USERS_KEY = "/api/users"

USERS_POLICY = FreshnessPolicy(
    stale_time_s=60.0,
    cache_time_s=300.0,
    refetch_on_window_focus=False,
)


class User(ApiModel):
    id: str = Field(alias="_id")
    name: str | None = None
    email: str | None = None
    role: str = "guest"


_USER_LIST = TypeAdapter(list[User])


def parse_users(payload: JSONValue) -> list[User]:
    """Anything other than a list of users reads as an empty table."""
    rows = unwrap(payload)
    if not isinstance(rows, list):
        return []
    return _USER_LIST.validate_python(rows)


def users_query(
    service: DataCacheService,
    policy: FreshnessPolicy | None = None,
) -> QueryHandle[list[User]]:
    return service.query(USERS_KEY, policy or USERS_POLICY, parse=parse_users)
