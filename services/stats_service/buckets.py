"""
Bucket Selector — fixed-length time series for trend graphs.

Three granularities, each a fixed number of buckets ending at "now":
  hour  -> 24 buckets, whole-hour aligned, 23 hours back through the current hour
  day   -> 30 buckets, calendar-day aligned, 29 days back through today
  month -> 12 buckets, calendar-month aligned, 11 months back through this month

Buckets are returned oldest first. The newest bucket carries the present
marker (NOW / TODAY / THIS MONTH) instead of its date label. Empty buckets
are kept so every series has the same length for charting.

Hours are stepped on the absolute timeline (UTC) so DST transitions never
produce a duplicated or missing bucket. Days and months are stepped on the
local calendar.
"""

from __future__ import annotations

import bisect
import enum
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Sequence, Tuple

from services.history_service.models import Sample


class Granularity(str, enum.Enum):
    HOUR = "hour"
    DAY = "day"
    MONTH = "month"


BUCKET_COUNTS = {Granularity.HOUR: 24, Granularity.DAY: 30, Granularity.MONTH: 12}
PRESENT_LABELS = {Granularity.HOUR: "NOW", Granularity.DAY: "TODAY", Granularity.MONTH: "THIS MONTH"}
_LABEL_FORMATS = {Granularity.HOUR: "%H00", Granularity.DAY: "%m-%d-%Y", Granularity.MONTH: "%m-%Y"}


@dataclass
class Bucket:
    label: str
    start: datetime  # inclusive
    end: datetime  # exclusive
    samples: List[Sample] = field(default_factory=list)


def shift_month(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def _local_midnight(day: date, tz) -> datetime:
    return datetime.combine(day, time(0), tzinfo=tz)


def bucket_bounds(granularity: Granularity, now: datetime) -> List[Tuple[datetime, datetime]]:
    """[start, end) pairs, oldest first, for the window ending at `now`."""
    if now.tzinfo is None:
        raise ValueError("bucket selection needs a timezone-aware 'now'")
    granularity = Granularity(granularity)
    tz = now.tzinfo
    count = BUCKET_COUNTS[granularity]

    if granularity is Granularity.HOUR:
        current = now.replace(minute=0, second=0, microsecond=0).astimezone(timezone.utc)
        starts = [current - timedelta(hours=back) for back in range(count - 1, -1, -1)]
        return [(s.astimezone(tz), (s + timedelta(hours=1)).astimezone(tz)) for s in starts]

    if granularity is Granularity.DAY:
        today = now.date()
        days = [today - timedelta(days=back) for back in range(count - 1, -1, -1)]
        return [(_local_midnight(d, tz), _local_midnight(d + timedelta(days=1), tz)) for d in days]

    this_month = now.date().replace(day=1)
    months = [shift_month(this_month, -back) for back in range(count - 1, -1, -1)]
    return [(_local_midnight(m, tz), _local_midnight(shift_month(m, 1), tz)) for m in months]


def bucket_label(granularity: Granularity, start: datetime, newest: bool) -> str:
    granularity = Granularity(granularity)
    if newest:
        return PRESENT_LABELS[granularity]
    return start.strftime(_LABEL_FORMATS[granularity])


def select_buckets(
    samples: Iterable[Sample],
    granularity: Granularity,
    now: datetime,
) -> List[Bucket]:
    """
    Group samples into the fixed buckets for `granularity` ending at `now`.
    Samples outside the whole window are ignored.
    """
    bounds = bucket_bounds(granularity, now)
    buckets = [
        Bucket(label=bucket_label(granularity, start, i == len(bounds) - 1), start=start, end=end)
        for i, (start, end) in enumerate(bounds)
    ]
    # Compare in UTC: same-tzinfo comparisons ignore fold during a DST fall-back hour.
    starts: Sequence[datetime] = [b.start.astimezone(timezone.utc) for b in buckets]
    window_end = buckets[-1].end.astimezone(timezone.utc)

    for sample in samples:
        ts = sample.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=now.tzinfo)
        ts = ts.astimezone(timezone.utc)
        if ts < starts[0] or ts >= window_end:
            continue
        buckets[bisect.bisect_right(starts, ts) - 1].samples.append(sample)
    return buckets
