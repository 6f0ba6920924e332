"""
Stats Service Package — statistics, time buckets and cached rollups.
"""

from services.stats_service.buckets import Granularity, select_buckets
from services.stats_service.cache import PerformanceCache
from services.stats_service.calculator import PerformanceCalculator, nearest_rank
from services.stats_service.graph_data import PerformanceGraphDataService
from services.stats_service.report import PerformanceReport

__all__ = [
    "Granularity",
    "select_buckets",
    "PerformanceCache",
    "PerformanceCalculator",
    "nearest_rank",
    "PerformanceGraphDataService",
    "PerformanceReport",
]
