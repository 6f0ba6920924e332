"""
Graph data — per-bucket statistics for the 24h / 30d / 12m trend views.

One store query per series: everything from the oldest bucket's start up to
"now" is fetched once, grouped by select_buckets(), and each bucket is
handed to the stats calculator on its own.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Type

from configs.settings import Settings, get_settings
from services.history_service.store import SampleStore
from services.stats_service.buckets import Granularity, bucket_bounds, select_buckets
from services.stats_service.calculator import PerformanceCalculator
from services.stats_service.keys import ALL_ACTIONS, BUCKET_LABEL, BUCKET_STATS
from utils.timing import current_time

Series = List[Dict[str, Any]]


class PerformanceGraphDataService:
    """Bucketed statistics read from a SampleStore."""

    def __init__(
        self,
        store: SampleStore,
        *,
        stats_calculator_class: Type[PerformanceCalculator] = PerformanceCalculator,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        cfg = settings or get_settings()
        self._store = store
        self._calculator_class = stats_calculator_class
        self._clock = clock or (lambda: current_time(cfg.time_zone))

    def average_last_24_hours(self, authority_name: Optional[str] = None, action: str = ALL_ACTIONS,
                              now: Optional[datetime] = None) -> Series:
        return self.series(Granularity.HOUR, authority_name, action, now)

    def average_last_30_days(self, authority_name: Optional[str] = None, action: str = ALL_ACTIONS,
                             now: Optional[datetime] = None) -> Series:
        return self.series(Granularity.DAY, authority_name, action, now)

    def average_last_12_months(self, authority_name: Optional[str] = None, action: str = ALL_ACTIONS,
                               now: Optional[datetime] = None) -> Series:
        return self.series(Granularity.MONTH, authority_name, action, now)

    def series(
        self,
        granularity: Granularity,
        authority_name: Optional[str] = None,
        action: str = ALL_ACTIONS,
        now: Optional[datetime] = None,
    ) -> Series:
        now = now or self._clock()
        bounds = bucket_bounds(granularity, now)
        samples = self._store.samples(authority=authority_name, start=bounds[0][0], end=bounds[-1][1])
        return [
            {
                BUCKET_LABEL: bucket.label,
                BUCKET_STATS: self._calculator_class(bucket.samples, action=action).calculate_stats(
                    avg=True, low=True, high=True
                ),
            }
            for bucket in select_buckets(samples, granularity, now)
        ]
