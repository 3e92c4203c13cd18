"""
Dashboard service.

Fetches a fresh snapshot from the record store on every call and hands it to the
pure aggregator in analytics_service. There is no caching and no incremental state;
each call recomputes from the full current dataset.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sized, Union

from domain.time_range import Granularity, TimeRange
from repositories.store import RecordStore
from services.analytics_service import (
    ActivityFeedItem,
    ConversionFunnel,
    KPIMetrics,
    LeadAnalytics,
    ProductPerformance,
    QuotationAnalytics,
    Snapshot,
    TeamPerformance,
    TrendPoint,
    compute_conversion_funnel,
    compute_kpis,
    compute_lead_analytics,
    compute_product_performance,
    compute_quotation_analytics,
    compute_recent_activity,
    compute_revenue_trends,
    compute_team_performance,
)
from services.settings import get_settings

logger = logging.getLogger(__name__)


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def load_snapshot(store: RecordStore, *, include_users: bool = False) -> Snapshot:
    """Read the current leads, quotations, orders (and optionally users) from the store."""

    snapshot = Snapshot(
        leads=tuple(store.list_leads()),
        quotations=tuple(store.list_quotations()),
        orders=tuple(store.list_orders()),
        users=tuple(store.list_users()) if include_users else (),
    )
    logger.debug(
        "Loaded analytics snapshot",
        extra={
            "leads": len(snapshot.leads),
            "quotations": len(snapshot.quotations),
            "orders": len(snapshot.orders),
            "users": len(snapshot.users),
        },
    )
    return snapshot


def get_kpis(store: RecordStore, *, now: Optional[datetime] = None) -> KPIMetrics:
    period_days = get_settings().revenue_growth_period_days
    return compute_kpis(load_snapshot(store), _now(now), period_days)


def get_lead_analytics(store: RecordStore) -> LeadAnalytics:
    return compute_lead_analytics(store.list_leads())


def get_revenue_trends(
    store: RecordStore,
    time_range: TimeRange = TimeRange.LAST_30_DAYS,
    *,
    granularity: Granularity = Granularity.DAY,
    zero_fill: Optional[bool] = None,
    now: Optional[datetime] = None,
) -> List[TrendPoint]:
    """Revenue series for the range. zero_fill defaults to the CRM_TREND_ZERO_FILL setting."""

    if zero_fill is None:
        zero_fill = get_settings().trend_zero_fill
    return compute_revenue_trends(
        store.list_orders(),
        TimeRange(time_range),
        _now(now),
        granularity=granularity,
        zero_fill=zero_fill,
    )


def get_quotation_analytics(store: RecordStore, *, now: Optional[datetime] = None) -> QuotationAnalytics:
    return compute_quotation_analytics(store.list_quotations(), _now(now))


def get_team_performance(store: RecordStore) -> List[TeamPerformance]:
    return compute_team_performance(load_snapshot(store, include_users=True))


def get_recent_activity(store: RecordStore, limit: int = 10) -> List[ActivityFeedItem]:
    return compute_recent_activity(load_snapshot(store), limit)


def get_product_performance(store: RecordStore, limit: int = 10) -> List[ProductPerformance]:
    return compute_product_performance(
        store.list_leads(),
        store.list_quotations(),
        store.list_orders(),
        store.list_products(),
        limit,
    )


def get_conversion_funnel(
    leads: Union[int, Sized],
    quotations: Union[int, Sized],
    orders: Union[int, Sized],
) -> ConversionFunnel:
    """Funnel from already-fetched populations (or their counts)."""

    return compute_conversion_funnel(leads, quotations, orders)


def get_store_conversion_funnel(store: RecordStore) -> ConversionFunnel:
    snapshot = load_snapshot(store)
    return compute_conversion_funnel(snapshot.leads, snapshot.quotations, snapshot.orders)


__all__ = [
    "get_conversion_funnel",
    "get_kpis",
    "get_lead_analytics",
    "get_product_performance",
    "get_quotation_analytics",
    "get_recent_activity",
    "get_revenue_trends",
    "get_store_conversion_funnel",
    "get_team_performance",
    "load_snapshot",
]
