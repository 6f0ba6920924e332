"""
Performance report — the rollup that feeds the monitoring dashboard.

Shape of the full rollup:

    { "all_authorities":
        { "search":
            { "datatable_stats": { "retrieve_avg_ms": 12.3, ..., "full_request_90th_ms": 16.5 },
              "day":   [ {"label": "1400", "stats": {...}}, ..., {"label": "NOW", "stats": {...}} ],      # 24
              "month": [ {"label": "07-15-2019", "stats": {...}}, ..., {"label": "TODAY", ...} ],        # 30
              "year":  [ {"label": "09-2018", "stats": {...}}, ..., {"label": "THIS MONTH", ...} ] },    # 12
          "fetch": { ... },
          "all_actions": { ... } },
      "AGROVOC_LD4L_CACHE": { ... same per authority ... } }

Collaborators (stats calculator, graph data service, authority list,
graphing service, cache) are constructor arguments with standard defaults,
so tests swap them without touching shared state.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Type

from configs.settings import Settings, get_settings
from services.history_service.models import Sample
from services.history_service.store import SampleStore
from services.stats_service.buckets import shift_month
from services.stats_service.cache import PerformanceCache, Rollup
from services.stats_service.calculator import PerformanceCalculator
from services.stats_service.graph_data import PerformanceGraphDataService
from services.stats_service.keys import (
    ACTION_SCOPES,
    ALL_AUTH,
    FOR_DATATABLE,
    FOR_DAY,
    FOR_MONTH,
    FOR_YEAR,
    GRAPH_VIEWS,
)
from utils.logger import get_logger
from utils.timing import current_time

_log = get_logger(__name__)

DATATYPES = ("datatable", "graph", "all", "none")


def _calculate_datatable(datatype: str) -> bool:
    return datatype in ("datatable", "all")


def _calculate_graphdata(datatype: str) -> bool:
    return datatype in ("graph", "all")


class PerformanceReport:
    """Entry point for rollups: builds, caches, projects and hands off to the grapher."""

    def __init__(
        self,
        store: SampleStore,
        *,
        stats_calculator_class: Type[PerformanceCalculator] = PerformanceCalculator,
        graph_data_service: Optional[PerformanceGraphDataService] = None,
        authority_lister: Optional[Any] = None,
        graphing_service: Optional[Any] = None,
        cache: Optional[PerformanceCache] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        cfg = settings or get_settings()
        self._store = store
        self._settings = cfg
        self._clock = clock or (lambda: current_time(cfg.time_zone))
        self.stats_calculator_class = stats_calculator_class
        self.graph_data_service = graph_data_service or PerformanceGraphDataService(
            store, stats_calculator_class=stats_calculator_class, settings=cfg, clock=self._clock
        )
        if authority_lister is None:
            from services.lookup_service.authority_list import AuthorityLister
            authority_lister = AuthorityLister(settings=cfg)
        self.authority_lister = authority_lister
        if graphing_service is None:
            from services.graph_service.graphing import PerformanceGraphingService
            graphing_service = PerformanceGraphingService(cfg.performance_graph_dir)
        self.graphing_service = graphing_service
        self.cache = cache or PerformanceCache(
            self.calculate_data, ttl_seconds=cfg.performance_cache_ttl_seconds
        )

    # ── Public API ──────────────────────────────────────────

    def performance_data(self, datatype: str = "datatable", refresh: bool = False) -> Optional[Rollup]:
        """
        Rollup for the dashboard.

        datatype: "datatable" (window stats only), "graph" (24h/30d/12m series,
        also handed to the graphing service), "all", or "none" (returns None).
        refresh forces a full recompute instead of serving the cached snapshot.
        """
        if datatype not in DATATYPES:
            raise ValueError(f"datatype must be one of {DATATYPES}, got {datatype!r}")
        if datatype == "none":
            return None
        full = self.cache.write_all() if refresh else self.cache.fetch()
        data = self.project(full, datatype)
        if _calculate_graphdata(datatype):
            self.graphing_service.create_performance_graphs(performance_data=data)
        return data

    @staticmethod
    def project(full: Rollup, datatype: str) -> Rollup:
        """Copy of the rollup holding only the views `datatype` asks for."""
        keep = set()
        if _calculate_datatable(datatype):
            keep.add(FOR_DATATABLE)
        if _calculate_graphdata(datatype):
            keep.update(GRAPH_VIEWS)
        return {
            auth: {action: {view: value for view, value in views.items() if view in keep}
                   for action, views in actions.items()}
            for auth, actions in full.items()
        }

    # ── Full computation (what the cache stores) ────────────

    def calculate_data(self) -> Rollup:
        now = self._clock()
        data: Rollup = {ALL_AUTH: self.data_for_authority(None, now)}
        for auth_name in self.authority_lister.authorities_list():
            if auth_name == ALL_AUTH:
                _log.warning("authority_name_reserved", authority=auth_name)
                continue
            data[auth_name] = self.data_for_authority(auth_name, now)
        _log.info("performance_rollup_calculated", authorities=len(data) - 1, now=now.isoformat())
        return data

    def data_for_authority(self, authority_name: Optional[str], now: datetime) -> Dict[str, Any]:
        table_records = self.datatable_records(authority_name, now)
        action_data: Dict[str, Any] = {}
        for action in ACTION_SCOPES:
            action_data[action] = {
                FOR_DATATABLE: self.stats_calculator_class(table_records, action=action).calculate_stats(
                    avg=True, low=True, high=True
                ),
                FOR_DAY: self.graph_data_service.average_last_24_hours(authority_name, action, now=now),
                FOR_MONTH: self.graph_data_service.average_last_30_days(authority_name, action, now=now),
                FOR_YEAR: self.graph_data_service.average_last_12_months(authority_name, action, now=now),
            }
        return action_data

    # ── Data table window ───────────────────────────────────

    def datatable_records(self, authority_name: Optional[str], now: datetime) -> List[Sample]:
        """
        Samples behind the data table. The first window matching the
        configured period wins: 24 hours, else 30 days, else 12 months,
        else every recorded sample.
        """
        records = self._records_for_last_24_hours(authority_name, now)
        if records is None:
            records = self._records_for_last_30_days(authority_name, now)
        if records is None:
            records = self._records_for_last_12_months(authority_name, now)
        if records is None:
            records = self._store.samples(authority=authority_name)
        return records

    @property
    def _expected_time_period(self) -> str:
        return self._settings.performance_datatable_default_time_period

    def _records_for_last_24_hours(self, authority_name, now) -> Optional[List[Sample]]:
        if self._expected_time_period != "day":
            return None
        start = now.astimezone(timezone.utc) - timedelta(hours=23)
        return self._store.samples(authority=authority_name, start=start, end=now)

    def _records_for_last_30_days(self, authority_name, now) -> Optional[List[Sample]]:
        if self._expected_time_period != "month":
            return None
        start = now.astimezone(timezone.utc) - timedelta(days=29)
        return self._store.samples(authority=authority_name, start=start, end=now)

    def _records_for_last_12_months(self, authority_name, now) -> Optional[List[Sample]]:
        if self._expected_time_period != "year":
            return None
        first = shift_month(now.date(), -11)
        last_day = calendar.monthrange(first.year, first.month)[1]
        start = now.replace(year=first.year, month=first.month, day=min(now.day, last_day))
        return self._store.samples(authority=authority_name, start=start, end=now)
