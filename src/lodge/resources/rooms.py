"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Room resources: models, filter keys and ready-made handles.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Literal
from urllib.parse import quote, urlencode

from pydantic import BaseModel, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from ..data.contracts import FreshnessPolicy
from ..data.mutation import MutationHandle
from ..data.query import QueryHandle
from ..data.service import DataCacheService
from ..data.types import JSONValue
from .base import ApiModel, unwrap

ROOMS_KEY = "/api/rooms"

RoomType = Literal[
    "single",
    "double",
    "suite",
    "deluxe",
    "family",
    "presidential",
    "standard",
    "premium",
]
RoomStatus = Literal["available", "occupied", "maintenance", "cleaning", "out_of_order"]


class RoomCapacity(ApiModel):
    adults: int
    children: int = 0


class RoomFeatures(ApiModel):
    has_balcony: bool | None = None
    has_sea_view: bool | None = None
    has_kitchen: bool | None = None
    has_jacuzzi: bool | None = None
    is_accessible: bool | None = None


class Room(ApiModel):
    """One bookable room as returned by ``/api/rooms``."""

    id: str = Field(alias="_id")
    number: str
    type: RoomType
    price_per_night: float
    status: RoomStatus
    images: list[str] = Field(default_factory=list)
    description: str | None = None
    amenities: list[str] = Field(default_factory=list)
    guest_capacity: int | None = None
    capacity: RoomCapacity | None = None
    size: float | None = None
    floor: int | None = None
    features: RoomFeatures | None = None
    is_active: bool | None = None
    is_available: bool | None = None
    active_bookings: int | None = None
    created_at: str | None = None
    updated_at: str | None = None


class Pagination(ApiModel):
    current: int
    pages: int
    total: int
    limit: int


class RoomPage(BaseModel):
    """Rooms of one list request plus server pagination when present."""

    rooms: list[Room]
    pagination: Pagination | None = None


_ROOM_LIST = TypeAdapter(list[Room])


@dataclass(frozen=True, slots=True)
class RoomFilters:
    """Query filters accepted by the room list endpoint."""

    page: int | None = None
    limit: int | None = None
    sort: str | None = None
    order: Literal["asc", "desc"] | None = None
    type: str | None = None
    status: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    floor: int | None = None
    has_balcony: bool | None = None
    has_sea_view: bool | None = None
    has_kitchen: bool | None = None
    has_jacuzzi: bool | None = None
    is_accessible: bool | None = None
    search: str | None = None

    def query_params(self) -> list[tuple[str, str]]:
        """Wire parameters in declaration order, unset and empty values skipped."""
        params: list[tuple[str, str]] = []
        for item in fields(self):
            value = getattr(self, item.name)
            if value is None or value == "":
                continue
            if isinstance(value, bool):
                rendered = "true" if value else "false"
            else:
                rendered = str(value)
            params.append((to_camel(item.name), rendered))
        return params


def rooms_key(filters: RoomFilters | None = None) -> str:
    """Cache key for the room list, e.g. ``/api/rooms?type=suite&page=2``."""
    params = filters.query_params() if filters is not None else []
    if not params:
        return ROOMS_KEY
    return f"{ROOMS_KEY}?{urlencode(params)}"


def room_key(room_id: str) -> str:
    return f"{ROOMS_KEY}/{quote(str(room_id), safe='')}"


def parse_room_page(payload: JSONValue) -> RoomPage:
    """Accept both ``{data, pagination}`` envelopes and bare room lists."""
    pagination = payload.get("pagination") if isinstance(payload, dict) else None
    return RoomPage(
        rooms=_ROOM_LIST.validate_python(unwrap(payload)),
        pagination=Pagination.model_validate(pagination) if pagination else None,
    )


def parse_room(payload: JSONValue) -> Room:
    return Room.model_validate(unwrap(payload))


def rooms_query(
    service: DataCacheService,
    filters: RoomFilters | None = None,
    policy: FreshnessPolicy | None = None,
) -> QueryHandle[RoomPage]:
    return service.query(
        rooms_key(filters),
        policy,
        parse=parse_room_page,
        error_title="Unable to load rooms",
    )


def room_query(
    service: DataCacheService,
    room_id: str,
    policy: FreshnessPolicy | None = None,
) -> QueryHandle[Room]:
    return service.query(
        room_key(room_id),
        policy,
        parse=parse_room,
        error_title="Unable to load room",
    )


def create_room_mutation(service: DataCacheService, **overrides: Any) -> MutationHandle:
    """POST a new room and invalidate the unfiltered room list."""
    return service.mutation(
        ROOMS_KEY,
        **{
            "method": "POST",
            "invalidate_keys": (ROOMS_KEY,),
            "success_title": "Room created",
            **overrides,
        },
    )


def update_room_mutation(
    service: DataCacheService,
    room_id: str,
    **overrides: Any,
) -> MutationHandle:
    return service.mutation(
        room_key(room_id),
        **{
            "method": "PUT",
            "invalidate_keys": (ROOMS_KEY, room_key(room_id)),
            "success_title": "Room updated",
            **overrides,
        },
    )


def delete_room_mutation(
    service: DataCacheService,
    room_id: str,
    **overrides: Any,
) -> MutationHandle:
    return service.mutation(
        room_key(room_id),
        **{
            "method": "DELETE",
            "invalidate_keys": (ROOMS_KEY, room_key(room_id)),
            "success_title": "Room deleted",
            **overrides,
        },
    )
