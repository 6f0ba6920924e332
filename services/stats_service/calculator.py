"""
Stats Calculator — avg / 10th / 90th percentile per timing metric.

Architecture decisions:
  1. Pure function over a finite list of Sample records. No store access,
     no clock. Safe to call from any thread.
  2. Percentiles use the nearest-rank method: sort ascending, take
     index ceil(p/100 * n) - 1 clamped to [0, n-1]. Dashboards compare
     periods against each other, so the method must not change.
  3. An empty input is not an error: every requested statistic is 0.0,
     so renderers never null-check.
  4. A sample missing one metric (e.g. no retrieve/graph-load split) is
     skipped for that metric only.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import numpy as np

from services.history_service.models import Action, Sample
from services.stats_service.keys import (
    ALL_ACTIONS,
    AVG,
    FULL_REQUEST,
    GRAPH_LOAD,
    HIGH,
    LOW,
    METRICS,
    NORMALIZATION,
    RETRIEVE,
    stat_key,
)

Stats = Dict[str, float]


def _retrieve_ms(sample: Sample) -> Optional[float]:
    if sample.retrieve_time_ms is not None:
        return sample.retrieve_time_ms
    return sample.retrieve_plus_parse_time_ms


_EXTRACTORS: Dict[str, Callable[[Sample], Optional[float]]] = {
    RETRIEVE: _retrieve_ms,
    GRAPH_LOAD: lambda s: s.graph_load_time_ms,
    NORMALIZATION: lambda s: s.normalization_time_ms,
    FULL_REQUEST: lambda s: s.total_time_ms,
}


def nearest_rank(sorted_values: Sequence[float], pct: float) -> float:
    """Nearest-rank percentile of an ascending sequence. 0.0 when empty."""
    n = len(sorted_values)
    if n == 0:
        return 0.0
    # round() keeps float noise from pushing an exact rank up by one
    idx = math.ceil(round(pct * n / 100.0, 9)) - 1
    idx = max(0, min(n - 1, idx))
    return float(sorted_values[idx])


def _matches(sample: Sample, action: Optional[str]) -> bool:
    if action is None or action == ALL_ACTIONS:
        return True
    try:
        return sample.action == Action.parse(action)
    except ValueError:
        return False


class PerformanceCalculator:
    """
    Statistics for one set of samples scoped to one action.

    Usage:
        calc = PerformanceCalculator(samples, action="fetch")
        calc.calculate_stats(avg=True, low=True, high=True)
        # {"retrieve_avg_ms": 12.3, ..., "full_request_90th_ms": 40.0}

    An unknown action scope matches nothing and yields zero-valued stats.
    """

    def __init__(self, samples: Iterable[Sample], action: Optional[str] = ALL_ACTIONS) -> None:
        self.action = action
        self.samples: List[Sample] = [s for s in samples if _matches(s, action)]

    def values(self, metric: str) -> np.ndarray:
        """Ascending values of one metric, skipping samples that lack it."""
        extract = _EXTRACTORS[metric]
        vals = [v for v in (extract(s) for s in self.samples) if v is not None]
        return np.sort(np.asarray(vals, dtype=np.float64))

    def calculate_stats(self, avg: bool = False, low: bool = False, high: bool = False) -> Stats:
        stats: Stats = {}
        for metric in METRICS:
            vals = self.values(metric)
            if avg:
                stats[stat_key(metric, AVG)] = float(vals.mean()) if vals.size else 0.0
            if low:
                stats[stat_key(metric, LOW)] = nearest_rank(vals, 10)
            if high:
                stats[stat_key(metric, HIGH)] = nearest_rank(vals, 90)
        return stats


def zero_stats(avg: bool = True, low: bool = True, high: bool = True) -> Stats:
    return PerformanceCalculator([]).calculate_stats(avg=avg, low=low, high=high)
