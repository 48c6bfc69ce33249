"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Admin dashboard metrics resource.
"""

from __future__ import annotations

from pydantic import Field

from ..data.contracts import FreshnessPolicy
from ..data.query import QueryHandle
from ..data.service import DataCacheService
from ..data.types import JSONValue
from .base import ApiModel, unwrap

DASHBOARD_KEY = "/api/dashboard"

DASHBOARD_POLICY = FreshnessPolicy(
    stale_time_s=120.0,
    cache_time_s=600.0,
    refetch_on_window_focus=False,
)


class DashboardMetrics(ApiModel):
    total_revenue: float = 0
    monthly_revenue: float = 0
    total_bookings: int = 0
    active_bookings: int = 0
    total_rooms: int = 0
    available_rooms: int = 0
    occupied_rooms: int = 0
    maintenance_rooms: int = 0
    occupancy_rate: float = 0
    total_users: int = 0
    guest_users: int = 0
    staff_users: int = 0


class ChartDataPoint(ApiModel):
    date: str
    bookings: int = 0
    revenue: float = 0


class DashboardData(ApiModel):
    metrics: DashboardMetrics
    chart_data: list[ChartDataPoint] = Field(default_factory=list)


def parse_dashboard(payload: JSONValue) -> DashboardData:
    return DashboardData.model_validate(unwrap(payload))


def dashboard_query(
    service: DataCacheService,
    policy: FreshnessPolicy | None = None,
) -> QueryHandle[DashboardData]:
    return service.query(DASHBOARD_KEY, policy or DASHBOARD_POLICY, parse=parse_dashboard)
