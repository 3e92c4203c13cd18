"""
Analytics aggregator (pure).

Every function here takes a snapshot of leads / quotations / orders / users and
returns a freshly computed result. Nothing is cached or mutated; the same snapshot
always yields the same numbers.

Numeric policy:
- Percentages are rounded to 2 decimals and are 0 (never NaN/inf) when the
  denominator is 0.
- Money is Decimal, quantized to cents.
- Orders with status cancelled/refunded carry no revenue.
- Empty input yields a zero-valued result of the same shape.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List, Optional, Sequence, Sized, Tuple, Union
from uuid import UUID

from domain.lead import Lead, LeadStage
from domain.sales import Order, Product, Quotation, QuotationStatus, User, UserRole
from domain.time import require_utc_timestamp, start_of_day
from domain.time_range import Granularity, TimeRange

_CENT = Decimal("0.01")
ZERO = Decimal("0.00")
UNKNOWN_USER_NAME = "Unknown"
UNKNOWN_PRODUCT_NAME = "Unknown"


def _money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def _percent(numerator: Union[int, Decimal], denominator: Union[int, Decimal]) -> float:
    if not denominator:
        return 0.0
    return round(float(Decimal(numerator) / Decimal(denominator) * 100), 2)


def _revenue(orders: Sequence[Order]) -> Decimal:
    return _money(sum((o.total_amount for o in orders if o.counts_as_revenue), ZERO))


@dataclass(frozen=True, slots=True)
class Snapshot:
    """The full current population the aggregator reads from."""

    leads: Tuple[Lead, ...] = ()
    quotations: Tuple[Quotation, ...] = ()
    orders: Tuple[Order, ...] = ()
    users: Tuple[User, ...] = ()


# ============================================================================
# KPIs
# ============================================================================


@dataclass(frozen=True, slots=True)
class KPIMetrics:
    total_revenue: Decimal = ZERO
    active_leads: int = 0
    conversion_rate: float = 0.0
    pending_quotations: int = 0
    orders_this_month: int = 0
    revenue_growth: float = 0.0
    average_deal_size: Decimal = ZERO
    total_leads: int = 0
    won_leads: int = 0


def revenue_growth(orders: Sequence[Order], now: datetime, period_days: int = 30) -> float:
    """
    Percentage change of revenue in (now - P, now] against (now - 2P, now - P].

    When the prior period has no revenue, growth is 0.
    """

    require_utc_timestamp("now", now)
    if period_days <= 0:
        raise ValueError("period_days must be > 0")

    period = timedelta(days=period_days)
    current_start = now - period
    prior_start = current_start - period

    current = _revenue([o for o in orders if current_start < o.created_at <= now])
    prior = _revenue([o for o in orders if prior_start < o.created_at <= current_start])

    if prior == 0:
        return 0.0
    return _percent(current - prior, prior)


def compute_kpis(snapshot: Snapshot, now: datetime, period_days: int = 30) -> KPIMetrics:
    require_utc_timestamp("now", now)

    leads = snapshot.leads
    total_leads = len(leads)
    won_leads = sum(1 for lead in leads if lead.stage is LeadStage.WON)
    active_leads = sum(1 for lead in leads if lead.is_active)

    accepted = [q.total_amount for q in snapshot.quotations if q.status == QuotationStatus.ACCEPTED.value]
    average_deal_size = _money(sum(accepted, ZERO) / len(accepted)) if accepted else ZERO

    month_start = start_of_day(now.date().replace(day=1))

    return KPIMetrics(
        total_revenue=_revenue(snapshot.orders),
        active_leads=active_leads,
        conversion_rate=_percent(won_leads, total_leads),
        pending_quotations=sum(1 for q in snapshot.quotations if q.status == QuotationStatus.SENT.value),
        orders_this_month=sum(1 for o in snapshot.orders if o.created_at >= month_start),
        revenue_growth=revenue_growth(snapshot.orders, now, period_days),
        average_deal_size=average_deal_size,
        total_leads=total_leads,
        won_leads=won_leads,
    )


# ============================================================================
# Lead pipeline and sources
# ============================================================================


@dataclass(frozen=True, slots=True)
class StageCount:
    stage: LeadStage
    count: int

    @property
    def label(self) -> str:
        return self.stage.label


@dataclass(frozen=True, slots=True)
class SourceCount:
    source: str
    count: int

    @property
    def label(self) -> str:
        return self.source.replace("-", " ").title()


@dataclass(frozen=True, slots=True)
class LeadAnalytics:
    by_stage: List[StageCount] = field(default_factory=list)
    by_source: List[SourceCount] = field(default_factory=list)
    total_leads: int = 0


def compute_lead_analytics(leads: Sequence[Lead]) -> LeadAnalytics:
    """
    Pipeline distribution and source distribution.

    - by_stage groups on the raw stage value, in pipeline order, stages with leads only.
    - by_source counts a lead once in every source it lists; the bucket sum can
      exceed the number of leads.
    """

    stage_counts = Counter(lead.stage for lead in leads)
    by_stage = [StageCount(stage=stage, count=stage_counts[stage]) for stage in LeadStage if stage_counts[stage]]

    source_counts: Counter[str] = Counter()
    for lead in leads:
        for source in dict.fromkeys(lead.sources):
            source_counts[source.value] += 1

    by_source = [
        SourceCount(source=source, count=count)
        for source, count in sorted(source_counts.items(), key=lambda item: (-item[1], item[0]))
    ]

    return LeadAnalytics(by_stage=by_stage, by_source=by_source, total_leads=len(leads))


# ============================================================================
# Revenue trend
# ============================================================================


@dataclass(frozen=True, slots=True)
class TrendPoint:
    date: date
    revenue: Decimal
    order_count: int


def compute_revenue_trends(
    orders: Sequence[Order],
    time_range: TimeRange,
    now: datetime,
    *,
    granularity: Granularity = Granularity.DAY,
    zero_fill: bool = True,
) -> List[TrendPoint]:
    """
    Revenue and order count per bucket over the reporting window, ascending.

    With zero_fill every bucket in the window is present (contiguous chart axis);
    without it only buckets that had revenue-bearing orders are returned.
    """

    window = TimeRange(time_range).window(now)
    granularity = Granularity(granularity)

    revenue: Dict[date, Decimal] = defaultdict(lambda: ZERO)
    counts: Dict[date, int] = defaultdict(int)
    for order in orders:
        if not order.counts_as_revenue or not window.contains(order.created_at):
            continue
        bucket = granularity.bucket_for(order.created_at.date())
        revenue[bucket] += order.total_amount
        counts[bucket] += 1

    buckets = list(window.buckets(granularity)) if zero_fill else sorted(counts)
    return [
        TrendPoint(date=bucket, revenue=_money(revenue.get(bucket, ZERO)), order_count=counts.get(bucket, 0))
        for bucket in buckets
    ]


# ============================================================================
# Quotations
# ============================================================================


@dataclass(frozen=True, slots=True)
class QuotationStatusSummary:
    status: str
    count: int
    total_value: Decimal


@dataclass(frozen=True, slots=True)
class QuotationAnalytics:
    by_status: List[QuotationStatusSummary] = field(default_factory=list)
    total_quotations: int = 0
    total_value: Decimal = ZERO
    expired_count: int = 0


def compute_quotation_analytics(quotations: Sequence[Quotation], now: datetime) -> QuotationAnalytics:
    """Count and value per status, plus how many are past valid_until right now."""

    require_utc_timestamp("now", now)

    counts: Dict[str, int] = {}
    values: Dict[str, Decimal] = {}
    for quotation in quotations:
        status = quotation.status or QuotationStatus.DRAFT.value
        counts[status] = counts.get(status, 0) + 1
        values[status] = values.get(status, ZERO) + quotation.total_amount

    by_status = [
        QuotationStatusSummary(status=status, count=counts[status], total_value=_money(values[status]))
        for status in counts
    ]

    return QuotationAnalytics(
        by_status=by_status,
        total_quotations=len(quotations),
        total_value=_money(sum((s.total_value for s in by_status), ZERO)),
        expired_count=sum(1 for q in quotations if q.is_expired(now)),
    )


# ============================================================================
# Conversion funnel
# ============================================================================


@dataclass(frozen=True, slots=True)
class FunnelStage:
    label: str
    count: int
    rate: Optional[float] = None


@dataclass(frozen=True, slots=True)
class ConversionFunnel:
    stages: List[FunnelStage]
    lead_to_quotation_rate: float
    quotation_to_order_rate: float
    overall_rate: float


def _count(value: Union[int, Sized]) -> int:
    return value if isinstance(value, int) else len(value)


def compute_conversion_funnel(
    leads: Union[int, Sized],
    quotations: Union[int, Sized],
    orders: Union[int, Sized],
) -> ConversionFunnel:
    """
    leads -> quotations -> orders.

    Each stage rate is this stage over the previous stage. The overall rate is
    orders over leads computed directly, not the product of the stage rates.
    """

    lead_count, quotation_count, order_count = _count(leads), _count(quotations), _count(orders)

    lead_to_quotation = _percent(quotation_count, lead_count)
    quotation_to_order = _percent(order_count, quotation_count)

    return ConversionFunnel(
        stages=[
            FunnelStage(label="Leads", count=lead_count),
            FunnelStage(label="Quotations", count=quotation_count, rate=lead_to_quotation),
            FunnelStage(label="Orders", count=order_count, rate=quotation_to_order),
        ],
        lead_to_quotation_rate=lead_to_quotation,
        quotation_to_order_rate=quotation_to_order,
        overall_rate=_percent(order_count, lead_count),
    )


# ============================================================================
# Team performance
# ============================================================================


@dataclass(frozen=True, slots=True)
class TeamPerformance:
    user_id: str
    user_name: str
    lead_count: int = 0
    quotation_count: int = 0
    order_count: int = 0
    revenue: Decimal = ZERO


def compute_team_performance(snapshot: Snapshot) -> List[TeamPerformance]:
    """
    Per-user leads (assigned), quotations and orders (created), and revenue.

    Users come from the union of employees, lead assignees, quotation creators and
    order owners, so an order owner with no leads still appears. Admins appear only
    when they own leads, quotations or orders.
    Ordered by revenue desc, then lead count desc, then user id.
    """

    names = {user.id: user.full_name for user in snapshot.users}
    employees = {user.id for user in snapshot.users if user.role is UserRole.EMPLOYEE}

    lead_counts = Counter(lead.assigned_to for lead in snapshot.leads if lead.assigned_to)
    quotation_counts = Counter(q.created_by for q in snapshot.quotations if q.created_by)
    order_counts = Counter(o.created_by for o in snapshot.orders if o.created_by)
    revenue: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for order in snapshot.orders:
        if order.created_by and order.counts_as_revenue:
            revenue[order.created_by] += order.total_amount

    user_ids = employees | set(lead_counts) | set(quotation_counts) | set(order_counts)

    rows = [
        TeamPerformance(
            user_id=user_id,
            user_name=names.get(user_id) or UNKNOWN_USER_NAME,
            lead_count=lead_counts[user_id],
            quotation_count=quotation_counts[user_id],
            order_count=order_counts[user_id],
            revenue=_money(revenue.get(user_id, ZERO)),
        )
        for user_id in user_ids
    ]
    return sorted(rows, key=lambda row: (-row.revenue, -row.lead_count, row.user_id))


# ============================================================================
# Recent activity feed
# ============================================================================


@dataclass(frozen=True, slots=True)
class ActivityFeedItem:
    item_type: str  # lead, order, quotation
    id: UUID
    title: str
    subtitle: str
    status: str
    created_at: datetime
    value: Optional[Decimal] = None


def compute_recent_activity(snapshot: Snapshot, limit: int = 10) -> List[ActivityFeedItem]:
    """
    The `limit` most recent leads, orders and quotations merged into one feed.

    The limit applies to the merged feed, not per type. Equal timestamps keep the
    order lead, order, quotation.
    """

    if limit <= 0:
        return []

    items: List[ActivityFeedItem] = []
    for lead in snapshot.leads:
        items.append(
            ActivityFeedItem(
                item_type="lead",
                id=lead.id,
                title=lead.full_name or "Unknown Lead",
                subtitle=f"Lead ID: {lead.lead_code or 'N/A'}",
                status=lead.stage.value,
                created_at=lead.created_at,
            )
        )
    for order in snapshot.orders:
        items.append(
            ActivityFeedItem(
                item_type="order",
                id=order.id,
                title=f"Order {order.order_code or 'N/A'}",
                subtitle=f"Status: {order.status or 'pending'}",
                status=order.status or "pending",
                created_at=order.created_at,
                value=_money(order.total_amount),
            )
        )
    for quotation in snapshot.quotations:
        items.append(
            ActivityFeedItem(
                item_type="quotation",
                id=quotation.id,
                title=f"Quote {quotation.quote_number or 'N/A'}",
                subtitle=f"Status: {quotation.status or 'draft'}",
                status=quotation.status or "draft",
                created_at=quotation.created_at,
                value=_money(quotation.total_amount),
            )
        )

    # sorted() stays stable with reverse=True.
    return sorted(items, key=lambda item: item.created_at, reverse=True)[:limit]


# ============================================================================
# Product performance
# ============================================================================


@dataclass(frozen=True, slots=True)
class ProductPerformance:
    product_id: str
    product_name: str = UNKNOWN_PRODUCT_NAME
    lead_count: int = 0
    quotation_count: int = 0
    order_count: int = 0
    revenue: Decimal = ZERO


def compute_product_performance(
    leads: Sequence[Lead],
    quotations: Sequence[Quotation],
    orders: Sequence[Order],
    products: Sequence[Product] = (),
    limit: int = 10,
) -> List[ProductPerformance]:
    """
    Top products by inquiry volume.

    lead_count: leads listing the product in product_inquiry
    quotation_count: quotations with a line item for the product, any status
    order_count / revenue: revenue-bearing orders with a line item for the product

    Catalogue products with no activity are included with zero counts. Names come
    from the catalogue; a product referenced but not catalogued is "Unknown".
    """

    if limit <= 0:
        return []

    names = {product.id: product.name for product in products}

    lead_counts: Counter[str] = Counter()
    for lead in leads:
        for product_id in dict.fromkeys(lead.product_inquiry):
            lead_counts[product_id] += 1

    quotation_counts: Counter[str] = Counter()
    for quotation in quotations:
        for product_id in dict.fromkeys(item.product_id for item in quotation.items):
            quotation_counts[product_id] += 1

    order_counts: Counter[str] = Counter()
    revenue: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for order in orders:
        if not order.counts_as_revenue:
            continue
        for product_id in dict.fromkeys(item.product_id for item in order.items):
            order_counts[product_id] += 1
        for item in order.items:
            revenue[item.product_id] += item.line_total

    product_ids = set(names) | set(lead_counts) | set(quotation_counts) | set(order_counts)
    rows = [
        ProductPerformance(
            product_id=product_id,
            product_name=names.get(product_id) or UNKNOWN_PRODUCT_NAME,
            lead_count=lead_counts[product_id],
            quotation_count=quotation_counts[product_id],
            order_count=order_counts[product_id],
            revenue=_money(revenue.get(product_id, ZERO)),
        )
        for product_id in product_ids
    ]
    rows.sort(key=lambda row: (-row.lead_count, -row.revenue, row.product_id))
    return rows[:limit]


__all__ = [
    "ActivityFeedItem",
    "ConversionFunnel",
    "FunnelStage",
    "KPIMetrics",
    "LeadAnalytics",
    "ProductPerformance",
    "QuotationAnalytics",
    "QuotationStatusSummary",
    "Snapshot",
    "SourceCount",
    "StageCount",
    "TeamPerformance",
    "TrendPoint",
    "compute_conversion_funnel",
    "compute_kpis",
    "compute_lead_analytics",
    "compute_product_performance",
    "compute_quotation_analytics",
    "compute_recent_activity",
    "compute_revenue_trends",
    "compute_team_performance",
    "revenue_growth",
]
