"""
Performance graphs — chart-ready series files for the dashboard.

The dashboard draws its own charts; this service only lays the rollup's
24h / 30d / 12m series out as one JSON file per authority, action and view:

    <graph_dir>/<authority>_<action>_<view>.json
    {"authority": ..., "action": ..., "view": "day",
     "labels": ["1400", ..., "NOW"],
     "series": {"retrieve_avg_ms": [...], "graph_load_avg_ms": [...], ...},
     "generated_at": 1700000000.0}

Write failures are logged and skipped: a broken chart must not take the
performance data request down with it.
"""

from __future__ import annotations

import json
import re
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from services.stats_service.keys import (
    AVG,
    BUCKET_LABEL,
    BUCKET_STATS,
    GRAPH_VIEWS,
    METRICS,
    stat_key,
)
from utils.logger import get_logger

_log = get_logger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]+")


def graph_filename(authority: str, action: str, view: str) -> str:
    return f"{_UNSAFE.sub('_', authority)}_{action}_{view}.json".lower()


class PerformanceGraphingService:
    """Writes per-series JSON files. Thread-safe: writes are serialized."""

    def __init__(self, graph_dir: str, series_kind: str = AVG) -> None:
        self._graph_dir = Path(graph_dir)
        self._series_kind = series_kind
        self._lock = threading.Lock()

    @property
    def graph_dir(self) -> Path:
        return self._graph_dir

    def create_performance_graphs(self, performance_data: Dict[str, Any]) -> List[Path]:
        """Write every graph view present in the rollup. Returns the files written."""
        written: List[Path] = []
        with self._lock:
            try:
                self._graph_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                _log.warning("performance_graph_dir_failed", path=str(self._graph_dir), error=str(e))
                return written
            for authority, actions in performance_data.items():
                for action, views in actions.items():
                    for view in GRAPH_VIEWS:
                        if view not in views:
                            continue
                        path = self._write(authority, action, view, views[view])
                        if path is not None:
                            written.append(path)
        _log.info("performance_graphs_written", files=len(written), dir=str(self._graph_dir))
        return written

    def series_for(self, buckets: List[Dict[str, Any]]) -> Dict[str, List[float]]:
        return {
            stat_key(metric, self._series_kind): [
                b[BUCKET_STATS].get(stat_key(metric, self._series_kind), 0.0) for b in buckets
            ]
            for metric in METRICS
        }

    def _write(self, authority: str, action: str, view: str, buckets: List[Dict[str, Any]]) -> Optional[Path]:
        path = self._graph_dir / graph_filename(authority, action, view)
        doc = {
            "authority": authority,
            "action": action,
            "view": view,
            "labels": [b[BUCKET_LABEL] for b in buckets],
            "series": self.series_for(buckets),
            "generated_at": time.time(),
        }
        try:
            path.write_text(json.dumps(doc, indent=2))
        except OSError as e:
            _log.warning("performance_graph_write_failed", path=str(path), error=str(e))
            return None
        return path
