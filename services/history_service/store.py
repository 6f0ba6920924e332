"""
Sample Store — durable table of individual timed authority requests.

Architecture decisions:
  1. SQLAlchemy ORM over whatever database_url points at (sqlite file by
     default, Postgres in production). The store only needs keyed
     insert/update/delete plus a range scan on (authority, dt_stamp).
  2. Every create/update/delete runs in its own session and commits on
     its own. A sample's lifecycle spans the wrapped request, and holding a
     transaction open across a remote authority call is worse than the
     narrow crash window where a row exists without timing data.
  3. create_sample() returns the id before any timing exists. That id is
     the correlation token threaded through the request.
  4. Timestamps are stored as naive UTC and handed back in the configured
     zone, so hour/day/month bucketing is done in local time.
  5. Concurrent writers never touch the same row: each request only
     updates/deletes the id it created. No cross-row locking.
"""

from __future__ import annotations

import threading
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from configs.settings import Settings, get_settings
from services.history_service.errors import SampleNotFoundError
from services.history_service.models import (
    SAMPLE_FIELDS,
    Action,
    Base,
    PerformanceSample,
    Sample,
    new_sample_id,
)
from utils.logger import get_logger
from utils.timing import current_time, from_utc_naive, to_utc_naive

_log = get_logger(__name__)


def _make_engine(url: str, echo: bool = False) -> Engine:
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection, otherwise every session sees an empty database.
            kwargs["poolclass"] = StaticPool
        else:
            db_path = url.split("///", 1)[-1]
            if db_path:
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(url, echo=echo, future=True, **kwargs)
    return create_engine(url, echo=echo, future=True, pool_pre_ping=True)


class SampleStore:
    """
    Keyed access to the performance_history table.
    Thread-safe: sessions are per call, never shared.
    """

    def __init__(
        self,
        database_url: Optional[str] = None,
        *,
        engine: Optional[Engine] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        cfg = settings or get_settings()
        self._tz = cfg.time_zone
        self._engine = engine or _make_engine(database_url or cfg.database_url, echo=cfg.database_echo)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False)

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        """Create the performance_history table if it does not exist."""
        Base.metadata.create_all(self._engine)

    # ── Lifecycle writes ────────────────────────────────────

    def create_sample(
        self,
        authority: str,
        action: Action | str,
        timestamp: Optional[datetime] = None,
    ) -> Sample:
        """Insert a row with only the identifying fields and return it (with id)."""
        action = Action.parse(action)
        stamp = timestamp or current_time(self._tz)
        row = PerformanceSample(
            id=new_sample_id(),
            dt_stamp=to_utc_naive(stamp),
            authority=authority,
            action=int(action),
        )
        with self._session_factory() as session, session.begin():
            session.add(row)
        _log.debug("sample_created", sample_id=row.id, authority=authority, action=action.label)
        return self._to_sample(row)

    def update_sample(self, sample_id: str, **fields: Any) -> Sample:
        """
        Set timing/size fields on an existing row.
        Accepts the public Sample field names (total_time_ms, size_bytes, ...).
        """
        unknown = set(fields) - set(SAMPLE_FIELDS)
        if unknown:
            raise TypeError(f"unknown sample fields: {sorted(unknown)}")
        with self._session_factory() as session, session.begin():
            row = session.get(PerformanceSample, sample_id)
            if row is None:
                raise SampleNotFoundError(sample_id)
            for name, value in fields.items():
                setattr(row, SAMPLE_FIELDS[name], value)
        return self._to_sample(row)

    def delete_sample(self, sample_id: str) -> None:
        """Remove a row. A missing id raises SampleNotFoundError."""
        with self._session_factory() as session, session.begin():
            row = session.get(PerformanceSample, sample_id)
            if row is None:
                raise SampleNotFoundError(sample_id)
            session.delete(row)

    # ── Reads ───────────────────────────────────────────────

    def find_sample(self, sample_id: str) -> Optional[Sample]:
        with self._session_factory() as session:
            row = session.get(PerformanceSample, sample_id)
            return self._to_sample(row) if row is not None else None

    def samples(
        self,
        authority: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Sample]:
        """
        Rows for one authority (None = all authorities) with
        start <= timestamp <= end, ordered by timestamp ascending.
        """
        stmt = select(PerformanceSample)
        if authority is not None:
            stmt = stmt.where(PerformanceSample.authority == authority)
        if start is not None:
            stmt = stmt.where(PerformanceSample.dt_stamp >= to_utc_naive(start))
        if end is not None:
            stmt = stmt.where(PerformanceSample.dt_stamp <= to_utc_naive(end))
        stmt = stmt.order_by(PerformanceSample.dt_stamp.asc(), PerformanceSample.id.asc())
        with self._session_factory() as session:
            return [self._to_sample(row) for row in session.scalars(stmt)]

    def count(self, authority: Optional[str] = None) -> int:
        stmt = select(func.count()).select_from(PerformanceSample)
        if authority is not None:
            stmt = stmt.where(PerformanceSample.authority == authority)
        with self._session_factory() as session:
            return int(session.scalar(stmt) or 0)

    def _to_sample(self, row: PerformanceSample) -> Sample:
        return Sample(
            id=row.id,
            timestamp=from_utc_naive(row.dt_stamp, self._tz),
            authority=row.authority,
            action=Action(row.action),
            total_time_ms=row.action_time_ms,
            retrieve_plus_parse_time_ms=row.retrieve_plus_graph_load_time_ms,
            retrieve_time_ms=row.retrieve_time_ms,
            graph_load_time_ms=row.graph_load_time_ms,
            normalization_time_ms=row.normalization_time_ms,
            size_bytes=row.size_bytes,
        )


# ── Module-level singleton ──────────────────────────────────

_instance: Optional[SampleStore] = None
_lock = threading.Lock()


def get_sample_store() -> SampleStore:
    """Get or create the singleton SampleStore (schema created on first use)."""
    global _instance
    if _instance is not None:
        return _instance
    with _lock:
        if _instance is not None:
            return _instance
        store = SampleStore()
        store.create_schema()
        _instance = store
        return _instance
