"""
Timing utilities for performance instrumentation.

Two clocks, two jobs:
  - time.perf_counter_ns() for elapsed durations (monotonic, nanosecond).
  - current_time() for the wall-clock instant a sample is stamped with,
    expressed in the configured time zone so hour/day/month buckets line
    up with what the dashboard reader calls "today".
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Generator, Optional
from zoneinfo import ZoneInfo

from utils.logger import get_logger

_log = get_logger(__name__)


@contextmanager
def timed(label: str) -> Generator[dict, None, None]:
    """
    Context manager that measures elapsed time in milliseconds.

    Usage:
        with timed("performance_rollup") as t:
            data = report.calculate_data()
        print(t["ms"])  # e.g. 4.32

    The dict is populated *after* the block finishes, so you can
    read t["ms"] or t["ns"] after the `with` block.
    """
    result: dict = {}
    start = time.perf_counter_ns()
    try:
        yield result
    finally:
        elapsed_ns = time.perf_counter_ns() - start
        result["ns"] = elapsed_ns
        result["ms"] = elapsed_ns / 1_000_000
        _log.debug(f"{label}", latency_ms=round(result["ms"], 3))


def current_time(tz_name: Optional[str] = None) -> datetime:
    """Timezone-aware 'now' in the configured zone."""
    if tz_name is None:
        from configs.settings import get_settings
        tz_name = get_settings().time_zone
    return datetime.now(ZoneInfo(tz_name))


def to_utc_naive(moment: datetime) -> datetime:
    """Normalize an instant for storage. Naive input is taken as UTC already."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def from_utc_naive(moment: datetime, tz_name: str) -> datetime:
    """Inverse of to_utc_naive: attach UTC, then convert to the configured zone."""
    return moment.replace(tzinfo=timezone.utc).astimezone(ZoneInfo(tz_name))
