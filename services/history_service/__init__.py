"""
History Service Package — durable performance samples.
"""

from services.history_service.errors import PerformanceHistoryError, SampleNotFoundError
from services.history_service.models import Action, Sample
from services.history_service.store import SampleStore, get_sample_store

__all__ = [
    "Action",
    "Sample",
    "SampleStore",
    "get_sample_store",
    "PerformanceHistoryError",
    "SampleNotFoundError",
]
