"""
FastAPI Gateway — performance dashboard data for the authority lookup service.

Architecture decisions:
  1. The sample store, the report and its aggregation cache live in this
     process and hang off app.state. Endpoints never build their own.
  2. The first dashboard request after startup pays for one rollup; every
     request within the cache TTL after that is served from the snapshot.
  3. Lookup requests are recorded by InstrumentedAuthority wherever the
     authorities run. This app only reads what they wrote.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from configs.settings import get_settings
from services.api_gateway.endpoints import health_router, performance_router
from services.history_service.store import SampleStore, get_sample_store
from services.stats_service.report import PerformanceReport
from utils.logger import get_logger, setup_logging

_log = get_logger(__name__)


# ── Lifespan: startup + shutdown ────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: logging, schema, report. Anything pre-set on app.state is kept."""
    cfg = get_settings()
    setup_logging(level=cfg.log_level, json_output=cfg.log_json)
    _log.info("startup_begin")

    if getattr(app.state, "sample_store", None) is None:
        app.state.sample_store = get_sample_store()
    if getattr(app.state, "performance_report", None) is None:
        app.state.performance_report = PerformanceReport(app.state.sample_store, settings=cfg)

    _log.info("startup_complete", database=cfg.database_url)
    yield
    _log.info("shutdown_complete")


# ── FastAPI App ─────────────────────────────────────────────

def create_app(
    store: Optional[SampleStore] = None,
    report: Optional[PerformanceReport] = None,
) -> FastAPI:
    app = FastAPI(
        title="Authority Lookup Performance Monitor",
        description="Timed find/search samples rolled up by hour, day and month",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url=None,
    )
    app.state.sample_store = store
    app.state.performance_report = report

    # CORS — the dashboard is served from a different origin in dev.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.include_router(performance_router)
    app.include_router(health_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    cfg = get_settings()
    uvicorn.run(app, host=cfg.api_host, port=cfg.api_port)
