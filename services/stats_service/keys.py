"""Keys shared by the rollup structure and its consumers (dashboard, graph writer)."""

from __future__ import annotations

ALL_AUTH = "all_authorities"
ALL_ACTIONS = "all_actions"
ACTION_SCOPES = ("search", "fetch", ALL_ACTIONS)

FOR_DATATABLE = "datatable_stats"
FOR_DAY = "day"
FOR_MONTH = "month"
FOR_YEAR = "year"
GRAPH_VIEWS = (FOR_DAY, FOR_MONTH, FOR_YEAR)

# Bucket entries: {BUCKET_LABEL: "1400", BUCKET_STATS: {...}}
BUCKET_LABEL = "label"
BUCKET_STATS = "stats"

# Timing metrics, in display order.
RETRIEVE = "retrieve"
GRAPH_LOAD = "graph_load"
NORMALIZATION = "normalization"
FULL_REQUEST = "full_request"
METRICS = (RETRIEVE, GRAPH_LOAD, NORMALIZATION, FULL_REQUEST)

AVG = "avg"
LOW = "10th"
HIGH = "90th"


def stat_key(metric: str, kind: str) -> str:
    """stat_key("retrieve", "avg") -> "retrieve_avg_ms"."""
    return f"{metric}_{kind}_ms"
