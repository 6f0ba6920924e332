"""
Unit tests for the bucket selector — fixed series length, alignment,
labels, present markers and idempotence.
"""
import os
import sys
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from services.history_service.models import Action, Sample
from services.stats_service.buckets import (
    Granularity,
    bucket_bounds,
    select_buckets,
    shift_month,
)
from services.stats_service.calculator import PerformanceCalculator

NOW = datetime(2024, 3, 15, 14, 37, 12, tzinfo=timezone.utc)


def _at(ts, i=0, total=10.0):
    return Sample(id=f"s{i}-{ts.isoformat()}", timestamp=ts, authority="X", action=Action.FETCH, total_time_ms=total)


class TestSeriesLength:
    @pytest.mark.parametrize("granularity,count", [
        (Granularity.HOUR, 24),
        (Granularity.DAY, 30),
        (Granularity.MONTH, 12),
    ])
    def test_empty_input(self, granularity, count):
        assert len(select_buckets([], granularity, NOW)) == count

    @pytest.mark.parametrize("granularity,count", [
        (Granularity.HOUR, 24),
        (Granularity.DAY, 30),
        (Granularity.MONTH, 12),
    ])
    def test_dense_input(self, granularity, count):
        samples = [_at(NOW - timedelta(minutes=13 * i), i) for i in range(5000)]
        assert len(select_buckets(samples, granularity, NOW)) == count

    def test_naive_now_rejected(self):
        with pytest.raises(ValueError):
            bucket_bounds(Granularity.HOUR, NOW.replace(tzinfo=None))


class TestHourBuckets:
    def test_alignment_and_labels(self):
        buckets = select_buckets([], Granularity.HOUR, NOW)
        assert buckets[0].start == datetime(2024, 3, 14, 15, 0, tzinfo=timezone.utc)
        assert buckets[0].label == "1500"
        assert buckets[22].label == "1300"
        assert buckets[-1].label == "NOW"
        assert buckets[-1].start == datetime(2024, 3, 15, 14, 0, tzinfo=timezone.utc)
        assert all(b.end - b.start == timedelta(hours=1) for b in buckets)

    def test_assignment(self):
        inside = _at(datetime(2024, 3, 15, 13, 59, 59, tzinfo=timezone.utc), 1)
        current = _at(datetime(2024, 3, 15, 14, 0, tzinfo=timezone.utc), 2)
        too_old = _at(datetime(2024, 3, 14, 14, 59, tzinfo=timezone.utc), 3)
        buckets = select_buckets([inside, current, too_old], Granularity.HOUR, NOW)
        assert buckets[22].samples == [inside]
        assert buckets[23].samples == [current]
        assert sum(len(b.samples) for b in buckets) == 2

    def test_dst_spring_forward_keeps_24_distinct_hours(self):
        tz = ZoneInfo("America/New_York")
        now = datetime(2024, 3, 10, 12, 30, tzinfo=tz)  # 02:00 local was skipped
        buckets = select_buckets([], Granularity.HOUR, now)
        starts = [b.start.astimezone(timezone.utc) for b in buckets]
        assert len(set(starts)) == 24
        assert all(b - a == timedelta(hours=1) for a, b in zip(starts, starts[1:]))


class TestDayBuckets:
    def test_alignment_and_labels(self):
        buckets = select_buckets([], Granularity.DAY, NOW)
        assert buckets[0].start == datetime(2024, 2, 15, tzinfo=timezone.utc)
        assert buckets[0].label == "02-15-2024"
        assert buckets[28].label == "03-14-2024"
        assert buckets[-1].label == "TODAY"
        assert buckets[-1].end == datetime(2024, 3, 16, tzinfo=timezone.utc)

    def test_local_calendar_day(self):
        tz = ZoneInfo("America/New_York")
        now = datetime(2024, 3, 15, 9, 0, tzinfo=tz)
        # 23:30 local on the 14th is 03:30 UTC on the 15th: still yesterday locally.
        late = _at(datetime(2024, 3, 15, 3, 30, tzinfo=timezone.utc))
        buckets = select_buckets([late], Granularity.DAY, now)
        assert buckets[28].samples == [late]
        assert buckets[29].samples == []


class TestMonthBuckets:
    def test_alignment_and_labels(self):
        buckets = select_buckets([], Granularity.MONTH, NOW)
        assert buckets[0].start == datetime(2023, 4, 1, tzinfo=timezone.utc)
        assert buckets[0].label == "04-2023"
        assert buckets[10].label == "02-2024"
        assert buckets[-1].label == "THIS MONTH"

    def test_year_rollover(self):
        assert shift_month(datetime(2024, 1, 20).date(), -1) == datetime(2023, 12, 1).date()
        assert shift_month(datetime(2023, 12, 5).date(), 1) == datetime(2024, 1, 1).date()
        assert shift_month(datetime(2024, 3, 31).date(), -11) == datetime(2023, 4, 1).date()

    def test_leap_day_sample(self):
        leap = _at(datetime(2024, 2, 29, 23, 0, tzinfo=timezone.utc))
        buckets = select_buckets([leap], Granularity.MONTH, NOW)
        assert buckets[10].samples == [leap]


class TestIdempotence:
    def test_same_inputs_same_output(self):
        samples = [_at(NOW - timedelta(hours=h), h, total=float(h)) for h in range(0, 40, 3)]

        def run():
            return [
                (b.label, PerformanceCalculator(b.samples).calculate_stats(avg=True, low=True, high=True))
                for b in select_buckets(samples, Granularity.HOUR, NOW)
            ]

        assert run() == run()
