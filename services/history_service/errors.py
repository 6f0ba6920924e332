"""Errors raised by the sample store."""

from __future__ import annotations


class PerformanceHistoryError(Exception):
    """Base class for sample store failures."""


class SampleNotFoundError(PerformanceHistoryError, LookupError):
    """The sample id does not (or no longer) exist in the store."""

    def __init__(self, sample_id: str) -> None:
        super().__init__(f"performance sample {sample_id} not found")
        self.sample_id = sample_id
