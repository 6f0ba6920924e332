"""
Performance history table — one row per timed authority request.

The ORM row is an implementation detail of the store. Everything outside
services.history_service sees immutable Sample records instead, so the
statistics code never touches a session.
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, Index, Integer, SmallInteger, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Action(enum.IntEnum):
    """Tracked authority actions. Stored as a small integer code."""

    FETCH = 0
    SEARCH = 1

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: "Action | str | int") -> "Action":
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"unknown action: {value!r}") from None


def new_sample_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    pass


class PerformanceSample(Base):
    __tablename__ = "performance_history"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_sample_id)
    dt_stamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)  # UTC
    authority: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    action: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    action_time_ms: Mapped[Optional[float]] = mapped_column(Float, default=None)
    retrieve_plus_graph_load_time_ms: Mapped[Optional[float]] = mapped_column(Float, default=None)
    retrieve_time_ms: Mapped[Optional[float]] = mapped_column(Float, default=None)
    graph_load_time_ms: Mapped[Optional[float]] = mapped_column(Float, default=None)
    normalization_time_ms: Mapped[Optional[float]] = mapped_column(Float, default=None)
    size_bytes: Mapped[Optional[int]] = mapped_column(Integer, default=None)

    __table_args__ = (
        Index("ix_performance_history_authority_dt_stamp", "authority", "dt_stamp"),
    )


# Public field name -> ORM column name, for update_sample(**fields).
SAMPLE_FIELDS = {
    "total_time_ms": "action_time_ms",
    "retrieve_plus_parse_time_ms": "retrieve_plus_graph_load_time_ms",
    "retrieve_time_ms": "retrieve_time_ms",
    "graph_load_time_ms": "graph_load_time_ms",
    "normalization_time_ms": "normalization_time_ms",
    "size_bytes": "size_bytes",
}


@dataclass(frozen=True)
class Sample:
    """Read-only view of one performance history row."""

    id: str
    timestamp: datetime
    authority: str
    action: Action
    total_time_ms: Optional[float] = None
    retrieve_plus_parse_time_ms: Optional[float] = None
    retrieve_time_ms: Optional[float] = None
    graph_load_time_ms: Optional[float] = None
    normalization_time_ms: Optional[float] = None
    size_bytes: Optional[int] = None
