"""
Instrumentation Wrapper — exactly one performance sample per authority call.

Architecture decisions:
  1. The sample row is acquired BEFORE the operation runs, so its id can be
     threaded through the call as a typed PerformanceContext.
  2. The row is released on every exit path by one context manager:
       - operation returned a performance payload -> row finalized
       - operation returned a plain result        -> row deleted (not a data point)
       - operation raised / was cancelled         -> row deleted, error re-raised as-is
  3. Cleanup failures are logged, never raised: the caller must see the
     authority's own error, not a store hiccup that happened afterwards.
  4. The wrapped operation is always asked for performance data. What the
     caller gets back is projected to what the caller asked for.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Callable, Generator, Mapping, Optional, Protocol

from services.history_service.errors import SampleNotFoundError
from services.history_service.models import Action
from services.history_service.store import SampleStore, get_sample_store
from services.lookup_service.context import PerformanceContext, PerformancePayload
from utils.logger import get_logger
from utils.metrics import metrics

_log = get_logger(__name__)


class AuthorityOperations(Protocol):
    """What an authority must offer to be instrumented."""

    def find(self, term_id: str, *, context: PerformanceContext, performance_data: bool, **options: Any) -> Any:
        ...

    def search(self, query: str, *, context: PerformanceContext, performance_data: bool, **options: Any) -> Any:
        ...


class SampleRecording:
    """Handle given to the instrumented block; holds the outcome until exit."""

    def __init__(self, context: PerformanceContext, started: float) -> None:
        self.context = context
        self._started = started
        self.elapsed_ms: Optional[float] = None
        self.payload: Optional[PerformancePayload] = None

    @property
    def sample_id(self) -> str:
        return self.context.sample_id

    def complete(self, result: Any) -> None:
        """Stop the clock and capture the result's performance payload (if any)."""
        self.elapsed_ms = (time.perf_counter() - self._started) * 1000
        self.payload = PerformancePayload.from_result(result)


def _discard(store: SampleStore, sample_id: str, reason: str) -> None:
    try:
        store.delete_sample(sample_id)
    except SampleNotFoundError:
        _log.warning("sample_cleanup_missing", sample_id=sample_id, reason=reason)
    except Exception as e:
        _log.warning("sample_cleanup_failed", sample_id=sample_id, reason=reason, error=str(e))
    else:
        _log.debug("sample_discarded", sample_id=sample_id, reason=reason)


@contextmanager
def record_performance(
    store: SampleStore,
    authority: str,
    action: Action | str,
) -> Generator[SampleRecording, None, None]:
    """
    Scoped sample lifecycle.

    Usage:
        with record_performance(store, "LOCNAMES_LD4L_CACHE", Action.FETCH) as rec:
            result = authority.find(term_id, context=rec.context, performance_data=True)
            rec.complete(result)
    """
    action = Action.parse(action)
    started = time.perf_counter()
    sample = store.create_sample(authority, action)
    recording = SampleRecording(
        PerformanceContext(sample_id=sample.id, authority=authority, action=action, store=store),
        started,
    )
    try:
        yield recording
    except BaseException:
        _discard(store, sample.id, reason="operation_failed")
        metrics.increment("samples_failed")
        raise

    if recording.payload is None:
        _discard(store, sample.id, reason="no_performance_data")
        metrics.increment("samples_discarded")
        return

    try:
        store.update_sample(
            sample.id,
            total_time_ms=recording.elapsed_ms,
            **recording.payload.sample_fields(),
        )
    except Exception:
        _discard(store, sample.id, reason="finalize_failed")
        metrics.increment("samples_failed")
        raise
    metrics.increment("samples_recorded")
    _log.info(
        "sample_recorded",
        sample_id=sample.id,
        authority=authority,
        action=action.label,
        total_ms=round(recording.elapsed_ms, 2),
    )


def project_result(result: Any, performance_data: bool) -> Any:
    """Strip the performance block unless the caller asked for it."""
    if performance_data or not isinstance(result, Mapping) or "results" not in result:
        return result
    return result["results"]


class InstrumentedAuthority:
    """
    Wraps one authority so every find/search is recorded in the sample store.

    Usage:
        authority = InstrumentedAuthority(LinkedDataAuthority(...), "OCLC_FAST")
        term = authority.find("fst01204458")
        hits = authority.search("mark twain", performance_data=True)
    """

    def __init__(
        self,
        operations: AuthorityOperations,
        authority_name: str,
        store: Optional[SampleStore] = None,
    ) -> None:
        self._operations = operations
        self.authority_name = authority_name
        self._store = store or get_sample_store()

    def find(self, term_id: str, *, performance_data: bool = False, **options: Any) -> Any:
        return self._perform(Action.FETCH, self._operations.find, term_id, performance_data, options)

    def search(self, query: str, *, performance_data: bool = False, **options: Any) -> Any:
        return self._perform(Action.SEARCH, self._operations.search, query, performance_data, options)

    def _perform(
        self,
        action: Action,
        operation: Callable[..., Any],
        argument: str,
        performance_data: bool,
        options: dict,
    ) -> Any:
        with record_performance(self._store, self.authority_name, action) as recording:
            result = operation(argument, context=recording.context, performance_data=True, **options)
            recording.complete(result)
        return project_result(result, performance_data)
