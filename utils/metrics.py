"""
In-process counters and latency tracker for the monitoring layer itself.

This is NOT the sample store: samples are durable and per-request. These
numbers describe how the instrumentation is behaving in this process
(how many samples were recorded vs discarded, how long rollups take),
and are served by /stats.

Thread-safety: Uses a deque with maxlen (atomic appends in CPython)
plus a lock for snapshotting.
"""

from __future__ import annotations

import statistics
import threading
import time
from collections import defaultdict, deque
from typing import Dict, Any


# Keep the last 1,000 observations per latency series.
_WINDOW = 1_000


class MetricsCollector:
    """Process-global, thread-safe counter + latency tracker."""

    def __init__(self) -> None:
        self._data: Dict[str, deque] = defaultdict(lambda: deque(maxlen=_WINDOW))
        self._counters: Dict[str, int] = defaultdict(int)
        self._lock = threading.Lock()
        self._start_time = time.monotonic()

    def record(self, name: str, value_ms: float) -> None:
        """Record a latency observation in milliseconds."""
        self._data[name].append(value_ms)

    def increment(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counters[name] += amount

    def count(self, name: str) -> int:
        with self._lock:
            return self._counters.get(name, 0)

    def reset(self) -> None:
        with self._lock:
            self._data.clear()
            self._counters.clear()

    def snapshot(self) -> Dict[str, Any]:
        """
        Return a JSON-serializable dict of counters and latency summaries.
        Called by the /stats endpoint.
        """
        with self._lock:
            result: Dict[str, Any] = {
                "uptime_seconds": round(time.monotonic() - self._start_time, 1),
                "counters": dict(self._counters),
            }
            for name, values in list(self._data.items()):
                vals = sorted(values)
                if not vals:
                    continue
                result[name] = {
                    "window": len(vals),
                    "mean_ms": round(statistics.mean(vals), 3),
                    "min_ms": round(vals[0], 3),
                    "max_ms": round(vals[-1], 3),
                }
            return result


# Singleton — import this wherever you need metrics.
metrics = MetricsCollector()
