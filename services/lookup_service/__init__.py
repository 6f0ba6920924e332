"""
Lookup Service Package — instrumentation around authority find/search calls.
"""

from services.lookup_service.authority_list import AuthorityLister
from services.lookup_service.context import PerformanceContext, PerformancePayload
from services.lookup_service.instrumentation import (
    InstrumentedAuthority,
    project_result,
    record_performance,
)

__all__ = [
    "AuthorityLister",
    "PerformanceContext",
    "PerformancePayload",
    "InstrumentedAuthority",
    "project_result",
    "record_performance",
]
