"""
Performance data endpoint — serves the cached rollup to the dashboard.
"""

from __future__ import annotations

import asyncio
import time

from fastapi import APIRouter, Query, Request

from services.api_gateway.models import Datatype, PerformanceResponse
from utils.logger import get_logger
from utils.metrics import metrics

_log = get_logger(__name__)
router = APIRouter(tags=["performance"])


@router.get("/performance", response_model=PerformanceResponse)
async def performance(
    request: Request,
    datatype: Datatype = Query(default="datatable", description="datatable, graph, all or none"),
    refresh: bool = Query(default=False, description="Recompute instead of serving the cached rollup"),
) -> PerformanceResponse:
    """
    Rollup computation reads the database, so it runs off the event loop.
    A cache hit returns without touching the database at all.
    """
    report = request.app.state.performance_report
    start = time.perf_counter_ns()

    loop = asyncio.get_running_loop()
    data = await loop.run_in_executor(None, lambda: report.performance_data(datatype, refresh=refresh))

    total_ms = (time.perf_counter_ns() - start) / 1_000_000
    metrics.record("performance_request_ms", total_ms)
    _log.info("performance_served", datatype=datatype, refresh=refresh, total_ms=round(total_ms, 2))

    return PerformanceResponse(
        datatype=datatype,
        data=data,
        cache=report.cache.info(),
        latency_ms=round(total_ms, 2),
    )
