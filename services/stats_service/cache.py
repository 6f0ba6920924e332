"""
Aggregation Cache — one memoized rollup snapshot per cache instance.

Architecture decisions:
  1. The snapshot is built completely off to the side, then published with
     a single reference assignment. A reader holds whichever snapshot it
     picked up, so it sees fully-old or fully-new data, never a mix.
  2. Readers never take the rebuild lock while the snapshot is fresh.
     Only an expired/invalidated snapshot sends a reader to rebuild.
  3. Rebuilds are serialized: concurrent readers that find the snapshot
     expired wait for the first rebuild and reuse its result instead of
     recomputing N times (double-checked under the lock).
  4. Expiry is lazy (checked on access). There is no background timer.
  5. A rebuild runs to completion once started; there is no cancellation.
  6. invalidate() bumps an epoch. A rebuild that started before the bump
     returns its data to its own caller but does not publish it, so the
     next fetch() recomputes against the changed data.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from utils.logger import get_logger
from utils.metrics import metrics
from utils.timing import timed

_log = get_logger(__name__)

Rollup = Dict[str, Any]


@dataclass(frozen=True)
class _Snapshot:
    data: Rollup
    built_at: float
    generation: int


class PerformanceCache:
    """
    Thread-safe TTL cache around a rollup builder.

    Usage:
        cache = PerformanceCache(report.calculate_data, ttl_seconds=300)
        data = cache.fetch()      # lazy build / rebuild on expiry
        cache.write_all()         # force a full recompute now
        cache.invalidate()        # next fetch() recomputes

    The returned rollup is shared between readers: treat it as read-only.
    """

    def __init__(
        self,
        builder: Callable[[], Rollup],
        *,
        ttl_seconds: float = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._builder = builder
        self._ttl = ttl_seconds
        self._clock = clock
        self._snapshot: Optional[_Snapshot] = None
        self._rebuild_lock = threading.Lock()
        self._generation = 0
        self._epoch = 0
        self._epoch_lock = threading.Lock()

    def _fresh(self, snap: Optional[_Snapshot]) -> bool:
        return snap is not None and (self._clock() - snap.built_at) < self._ttl

    def fetch(self) -> Rollup:
        """Current snapshot, recomputed first if missing or expired."""
        snap = self._snapshot
        if self._fresh(snap):
            return snap.data
        with self._rebuild_lock:
            snap = self._snapshot
            if self._fresh(snap):
                return snap.data
            return self._rebuild().data

    def write_all(self) -> Rollup:
        """Recompute everything now and publish the result."""
        with self._rebuild_lock:
            return self._rebuild().data

    def invalidate(self) -> None:
        with self._epoch_lock:
            self._epoch += 1
            self._snapshot = None
        _log.info("performance_cache_invalidated")

    @property
    def generation(self) -> int:
        """Number of snapshots published so far."""
        return self._generation

    def info(self) -> Dict[str, Any]:
        snap = self._snapshot
        return {
            "cached": snap is not None,
            "fresh": self._fresh(snap),
            "generation": self._generation,
            "age_seconds": round(self._clock() - snap.built_at, 3) if snap else None,
            "ttl_seconds": self._ttl,
        }

    def _rebuild(self) -> _Snapshot:
        epoch = self._epoch
        with timed("performance_cache_rebuild") as t:
            data = self._builder()
        snap = _Snapshot(data=data, built_at=self._clock(), generation=self._generation + 1)
        with self._epoch_lock:
            if epoch != self._epoch:
                _log.info("performance_cache_rebuild_superseded", generation=snap.generation)
                return snap
            self._snapshot = snap
            self._generation = snap.generation
        metrics.record("performance_cache_rebuild", t["ms"])
        _log.info("performance_cache_rebuilt", generation=snap.generation, ms=round(t["ms"], 2))
        return snap
