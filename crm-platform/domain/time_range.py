"""
Domain: Reporting windows and trend granularity.

Windows:
- 7d / 30d / 90d: from midnight UTC N days before today to the end of today.
- ytd: from midnight UTC on January 1st of the current year to the end of today.

Granularity decides the bucket a timestamp falls into:
- day: the calendar date
- week: the Monday of the ISO week
- month: the first day of the month
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterator

from .time import end_of_day, require_utc_timestamp, start_of_day


class TimeRange(str, Enum):
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    YEAR_TO_DATE = "ytd"

    def window(self, now: datetime) -> "ReportingWindow":
        require_utc_timestamp("now", now)
        today = now.date()

        if self is TimeRange.YEAR_TO_DATE:
            first = date(today.year, 1, 1)
        else:
            first = today - timedelta(days=_RANGE_DAYS[self])

        return ReportingWindow(start=start_of_day(first), end=end_of_day(today))


_RANGE_DAYS = {
    TimeRange.LAST_7_DAYS: 7,
    TimeRange.LAST_30_DAYS: 30,
    TimeRange.LAST_90_DAYS: 90,
}


class Granularity(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"

    def bucket_for(self, day: date) -> date:
        if self is Granularity.DAY:
            return day
        if self is Granularity.WEEK:
            return day - timedelta(days=day.weekday())
        return day.replace(day=1)

    def next_bucket(self, bucket: date) -> date:
        if self is Granularity.DAY:
            return bucket + timedelta(days=1)
        if self is Granularity.WEEK:
            return bucket + timedelta(weeks=1)
        if bucket.month == 12:
            return date(bucket.year + 1, 1, 1)
        return date(bucket.year, bucket.month + 1, 1)


@dataclass(frozen=True, slots=True)
class ReportingWindow:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("start", self.start)
        require_utc_timestamp("end", self.end)
        if self.end < self.start:
            raise ValueError("end must be >= start")

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end

    def buckets(self, granularity: Granularity) -> Iterator[date]:
        """Every bucket key touching the window, in ascending order."""

        bucket = granularity.bucket_for(self.start.date())
        last = self.end.date()
        while bucket <= last:
            yield bucket
            bucket = granularity.next_bucket(bucket)


__all__ = ["Granularity", "ReportingWindow", "TimeRange"]
