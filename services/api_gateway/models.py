"""
Request/Response models — strict validation at the API boundary.

The rollup itself is a nested dict (authority -> action -> view); its
shape is documented in services.stats_service.report and passed through
as-is rather than re-modelled field by field.
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


Datatype = Literal["datatable", "graph", "all", "none"]


class PerformanceResponse(BaseModel):
    """Rollup for the monitoring dashboard."""

    datatype: Datatype
    data: Optional[Dict[str, Any]] = Field(
        default=None,
        description="authority -> action -> view rollup; null when datatype is 'none'",
    )
    cache: Dict[str, Any] = Field(default_factory=dict)
    latency_ms: float


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database_connected: bool
    samples: Optional[int] = None


class StatsResponse(BaseModel):
    """Runtime statistics response."""

    metrics: Dict[str, Any]
    performance_cache: Dict[str, Any]
