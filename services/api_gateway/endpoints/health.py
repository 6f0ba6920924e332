"""
Health and stats endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Request

from services.api_gateway.models import HealthResponse, StatsResponse
from utils.logger import get_logger
from utils.metrics import metrics

_log = get_logger(__name__)
router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    """Liveness + readiness probe: can we read the performance history table?"""
    store = request.app.state.sample_store
    try:
        samples = store.count()
    except Exception as e:
        _log.warning("health_database_unavailable", error=str(e))
        return HealthResponse(status="degraded", database_connected=False)
    return HealthResponse(status="healthy", database_connected=True, samples=samples)


@router.get("/stats", response_model=StatsResponse)
def stats(request: Request) -> StatsResponse:
    """Instrumentation counters and aggregation cache state."""
    report = request.app.state.performance_report
    return StatsResponse(metrics=metrics.snapshot(), performance_cache=report.cache.info())
