#!/usr/bin/env python3
"""
Dashboard Report Script

Prints the KPI snapshot, conversion funnel and revenue trend computed from the
configured Supabase project.

Usage:
    python dashboard_report.py
    python dashboard_report.py --range 90d --granularity week
    python dashboard_report.py --range ytd --no-zero-fill
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Sequence

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.time_range import Granularity, TimeRange
from repositories.store import RecordStore, SupabaseRecordStore
from services import dashboard_service
from services.analytics_service import ConversionFunnel, KPIMetrics, TrendPoint


def format_kpis(kpis: KPIMetrics) -> List[str]:
    return [
        f"Total revenue:       {kpis.total_revenue}",
        f"Revenue growth:      {kpis.revenue_growth}%",
        f"Active leads:        {kpis.active_leads}",
        f"Conversion rate:     {kpis.conversion_rate}% ({kpis.won_leads}/{kpis.total_leads} won)",
        f"Pending quotations:  {kpis.pending_quotations}",
        f"Orders this month:   {kpis.orders_this_month}",
        f"Average deal size:   {kpis.average_deal_size}",
    ]


def format_funnel(funnel: ConversionFunnel) -> List[str]:
    lines = []
    for stage in funnel.stages:
        rate = "" if stage.rate is None else f"  ({stage.rate}%)"
        lines.append(f"{stage.label:<12}{stage.count:>8}{rate}")
    lines.append(f"Overall conversion: {funnel.overall_rate}%")
    return lines


def format_trend(points: Sequence[TrendPoint]) -> List[str]:
    if not points:
        return ["No revenue in range"]
    return [f"{p.date.isoformat()}  {p.revenue:>12}  {p.order_count:>4} orders" for p in points]


def build_report(
    store: RecordStore,
    time_range: TimeRange,
    granularity: Granularity,
    zero_fill: bool,
    now: datetime,
) -> List[str]:
    """Render the full report as lines of text."""

    kpis = dashboard_service.get_kpis(store, now=now)
    funnel = dashboard_service.get_store_conversion_funnel(store)
    trend = dashboard_service.get_revenue_trends(
        store, time_range, granularity=granularity, zero_fill=zero_fill, now=now
    )

    lines = ["=" * 60, "KPIS", "=" * 60]
    lines.extend(format_kpis(kpis))
    lines.extend(["", "=" * 60, "CONVERSION FUNNEL", "=" * 60])
    lines.extend(format_funnel(funnel))
    lines.extend(["", "=" * 60, f"REVENUE TREND ({time_range.value}, by {granularity.value})", "=" * 60])
    lines.extend(format_trend(trend))
    return lines


def main() -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Print dashboard KPIs, funnel and revenue trend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Last 30 days, one row per day
  python dashboard_report.py

  # Last quarter, one row per week
  python dashboard_report.py --range 90d --granularity week

  # Year to date, only days that had orders
  python dashboard_report.py --range ytd --no-zero-fill
        """
    )

    parser.add_argument(
        "--range",
        "-r",
        dest="time_range",
        choices=[r.value for r in TimeRange],
        default=TimeRange.LAST_30_DAYS.value,
        help="Reporting window (default: 30d)"
    )

    parser.add_argument(
        "--granularity",
        "-g",
        choices=[g.value for g in Granularity],
        default=Granularity.DAY.value,
        help="Trend bucket size (default: day)"
    )

    parser.add_argument(
        "--no-zero-fill",
        action="store_true",
        help="Skip buckets without revenue"
    )

    args = parser.parse_args()

    try:
        lines = build_report(
            SupabaseRecordStore(),
            TimeRange(args.time_range),
            Granularity(args.granularity),
            zero_fill=not args.no_zero_fill,
            now=datetime.now(timezone.utc),
        )
        print("\n".join(lines))
        return 0

    except KeyboardInterrupt:
        print("\n\nReport interrupted by user")
        return 130

    except Exception as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
