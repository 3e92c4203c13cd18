"""
Analytics API Endpoints.

Admin-only dashboard aggregates. Every request recomputes from the current data.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from api.dependencies import Identity, get_store, require_admin, to_http_exception
from api.models import (
    ActivityFeedItemResponse,
    ConversionFunnelResponse,
    FunnelStageResponse,
    KPIResponse,
    LeadAnalyticsResponse,
    ProductPerformanceResponse,
    QuotationAnalyticsResponse,
    QuotationStatusResponse,
    SourceCountResponse,
    StageCountResponse,
    TeamPerformanceResponse,
    TrendPointResponse,
)
from domain.time_range import Granularity, TimeRange
from repositories.store import RecordStore
from services import dashboard_service

router = APIRouter()


@router.get("/kpis", response_model=KPIResponse, summary="Dashboard KPIs")
def get_kpis(
    identity: Identity = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    try:
        kpis = dashboard_service.get_kpis(store)
    except Exception as e:
        raise to_http_exception(e)

    return KPIResponse(
        total_revenue=kpis.total_revenue,
        active_leads=kpis.active_leads,
        conversion_rate=kpis.conversion_rate,
        pending_quotations=kpis.pending_quotations,
        orders_this_month=kpis.orders_this_month,
        revenue_growth=kpis.revenue_growth,
        average_deal_size=kpis.average_deal_size,
        total_leads=kpis.total_leads,
        won_leads=kpis.won_leads,
    )


@router.get(
    "/leads",
    response_model=LeadAnalyticsResponse,
    summary="Lead Pipeline and Sources",
    description="Stage distribution in pipeline order and source distribution. A multi-source lead counts once per source."
)
def get_lead_analytics(
    identity: Identity = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    try:
        analytics = dashboard_service.get_lead_analytics(store)
    except Exception as e:
        raise to_http_exception(e)

    return LeadAnalyticsResponse(
        by_stage=[
            StageCountResponse(stage=row.stage.value, label=row.label, count=row.count)
            for row in analytics.by_stage
        ],
        by_source=[
            SourceCountResponse(source=row.source, label=row.label, count=row.count)
            for row in analytics.by_source
        ],
        total_leads=analytics.total_leads,
    )


@router.get("/revenue", response_model=List[TrendPointResponse], summary="Revenue Trend")
def get_revenue_trends(
    time_range: TimeRange = Query(TimeRange.LAST_30_DAYS, description="7d, 30d, 90d or ytd"),
    granularity: Granularity = Query(Granularity.DAY),
    zero_fill: Optional[bool] = Query(None, description="Emit empty buckets; defaults to CRM_TREND_ZERO_FILL"),
    identity: Identity = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    try:
        points = dashboard_service.get_revenue_trends(
            store, time_range, granularity=granularity, zero_fill=zero_fill
        )
    except Exception as e:
        raise to_http_exception(e)

    return [
        TrendPointResponse(date=p.date, revenue=p.revenue, order_count=p.order_count)
        for p in points
    ]


@router.get("/quotations", response_model=QuotationAnalyticsResponse, summary="Quotation Summary")
def get_quotation_analytics(
    identity: Identity = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    try:
        analytics = dashboard_service.get_quotation_analytics(store)
    except Exception as e:
        raise to_http_exception(e)

    return QuotationAnalyticsResponse(
        by_status=[
            QuotationStatusResponse(status=s.status, count=s.count, total_value=s.total_value)
            for s in analytics.by_status
        ],
        total_quotations=analytics.total_quotations,
        total_value=analytics.total_value,
        expired_count=analytics.expired_count,
    )


@router.get("/team", response_model=List[TeamPerformanceResponse], summary="Team Performance")
def get_team_performance(
    identity: Identity = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    try:
        rows = dashboard_service.get_team_performance(store)
    except Exception as e:
        raise to_http_exception(e)

    return [
        TeamPerformanceResponse(
            user_id=row.user_id,
            user_name=row.user_name,
            lead_count=row.lead_count,
            quotation_count=row.quotation_count,
            order_count=row.order_count,
            revenue=row.revenue,
        )
        for row in rows
    ]


@router.get("/activity", response_model=List[ActivityFeedItemResponse], summary="Recent Activity")
def get_recent_activity(
    limit: int = Query(10, ge=0, le=100),
    identity: Identity = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    try:
        items = dashboard_service.get_recent_activity(store, limit)
    except Exception as e:
        raise to_http_exception(e)

    return [
        ActivityFeedItemResponse(
            type=item.item_type,
            id=item.id,
            title=item.title,
            subtitle=item.subtitle,
            status=item.status,
            created_at=item.created_at,
            value=item.value,
        )
        for item in items
    ]


@router.get("/products", response_model=List[ProductPerformanceResponse], summary="Product Performance")
def get_product_performance(
    limit: int = Query(10, ge=0, le=100),
    identity: Identity = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    try:
        rows = dashboard_service.get_product_performance(store, limit)
    except Exception as e:
        raise to_http_exception(e)

    return [
        ProductPerformanceResponse(
            product_id=row.product_id,
            product_name=row.product_name,
            lead_count=row.lead_count,
            quotation_count=row.quotation_count,
            order_count=row.order_count,
            revenue=row.revenue,
        )
        for row in rows
    ]


@router.get(
    "/funnel",
    response_model=ConversionFunnelResponse,
    summary="Conversion Funnel",
    description="Leads -> Quotations -> Orders. The overall rate is orders over leads, not the product of stage rates."
)
def get_conversion_funnel(
    identity: Identity = Depends(require_admin),
    store: RecordStore = Depends(get_store),
):
    try:
        funnel = dashboard_service.get_store_conversion_funnel(store)
    except Exception as e:
        raise to_http_exception(e)

    return ConversionFunnelResponse(
        stages=[FunnelStageResponse(label=s.label, count=s.count, rate=s.rate) for s in funnel.stages],
        lead_to_quotation_rate=funnel.lead_to_quotation_rate,
        quotation_to_order_rate=funnel.quotation_to_order_rate,
        overall_rate=funnel.overall_rate,
    )
