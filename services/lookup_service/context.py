"""
Correlation context and performance payload for one instrumented request.

The context is handed to the wrapped authority operation as a keyword
argument. Anything downstream (e.g. the remote graph loader) that wants to
attribute sub-phase timing to this request calls record_phases() on it,
which writes straight to the sample row keyed by the context's id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from services.history_service.models import Action
from services.history_service.store import SampleStore
from utils.logger import get_logger

_log = get_logger(__name__)


@dataclass(frozen=True)
class PerformanceContext:
    """Typed correlation token for one sample."""

    sample_id: str
    authority: str
    action: Action
    store: Optional[SampleStore] = field(default=None, repr=False, compare=False)

    def record_phases(
        self,
        *,
        retrieve_time_s: Optional[float] = None,
        graph_load_time_s: Optional[float] = None,
    ) -> None:
        """Attribute the retrieve / graph-load split to this sample."""
        fields = {}
        if retrieve_time_s is not None:
            fields["retrieve_time_ms"] = retrieve_time_s * 1000
        if graph_load_time_s is not None:
            fields["graph_load_time_ms"] = graph_load_time_s * 1000
        if not fields or self.store is None:
            return
        self.store.update_sample(self.sample_id, **fields)
        _log.debug("sample_phases_recorded", sample_id=self.sample_id, **fields)


@dataclass(frozen=True)
class PerformancePayload:
    """The `performance` block an authority operation attaches to its result."""

    fetch_time_s: float
    normalization_time_s: float
    fetched_bytes: Optional[int] = None
    retrieve_time_s: Optional[float] = None
    graph_load_time_s: Optional[float] = None

    @classmethod
    def from_result(cls, result: Any) -> Optional["PerformancePayload"]:
        """
        Extract the payload from {"results": ..., "performance": {...}}.
        Returns None for plain results or a malformed block.
        """
        if not isinstance(result, Mapping):
            return None
        block = result.get("performance")
        if not isinstance(block, Mapping):
            return None
        try:
            return cls(
                fetch_time_s=float(block["fetch_time_s"]),
                normalization_time_s=float(block["normalization_time_s"]),
                fetched_bytes=_optional_int(block.get("fetched_bytes")),
                retrieve_time_s=_optional_float(block.get("retrieve_time_s")),
                graph_load_time_s=_optional_float(block.get("graph_load_time_s")),
            )
        except (KeyError, TypeError, ValueError) as e:
            _log.warning("performance_payload_malformed", error=str(e))
            return None

    def sample_fields(self) -> dict:
        """Sample columns this payload fills (all timings in milliseconds)."""
        fields = {
            "retrieve_plus_parse_time_ms": self.fetch_time_s * 1000,
            "normalization_time_ms": self.normalization_time_s * 1000,
            "size_bytes": self.fetched_bytes,
        }
        if self.retrieve_time_s is not None:
            fields["retrieve_time_ms"] = self.retrieve_time_s * 1000
        if self.graph_load_time_s is not None:
            fields["graph_load_time_ms"] = self.graph_load_time_s * 1000
        return fields


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)
