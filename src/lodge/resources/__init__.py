"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed presets over the data cache for the guest-house API resources.
"""

from .base import ApiModel, unwrap
from .dashboard import (
    DASHBOARD_KEY,
    DASHBOARD_POLICY,
    ChartDataPoint,
    DashboardData,
    DashboardMetrics,
    dashboard_query,
    parse_dashboard,
)
from .rooms import (
    ROOMS_KEY,
    Pagination,
    Room,
    RoomCapacity,
    RoomFeatures,
    RoomFilters,
    RoomPage,
    create_room_mutation,
    delete_room_mutation,
    parse_room,
    parse_room_page,
    room_key,
    room_query,
    rooms_key,
    rooms_query,
    update_room_mutation,
)
from .session import LOGOUT_KEY, sign_out
from .users import USERS_KEY, USERS_POLICY, User, parse_users, users_query

__all__ = [
    "ApiModel",
    "ChartDataPoint",
    "DASHBOARD_KEY",
    "DASHBOARD_POLICY",
    "DashboardData",
    "DashboardMetrics",
    "LOGOUT_KEY",
    "Pagination",
    "ROOMS_KEY",
    "Room",
    "RoomCapacity",
    "RoomFeatures",
    "RoomFilters",
    "RoomPage",
    "USERS_KEY",
    "USERS_POLICY",
    "User",
    "create_room_mutation",
    "dashboard_query",
    "delete_room_mutation",
    "parse_dashboard",
    "parse_room",
    "parse_room_page",
    "parse_users",
    "room_key",
    "room_query",
    "rooms_key",
    "rooms_query",
    "sign_out",
    "unwrap",
    "update_room_mutation",
    "users_query",
]
