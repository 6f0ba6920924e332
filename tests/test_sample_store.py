"""
Unit tests for the sample store — create/update/delete lifecycle,
time-zone round trip, range queries and ordering.
"""
import os
import sys
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from configs.settings import Settings
from services.history_service.errors import SampleNotFoundError
from services.history_service.models import Action
from services.history_service.store import SampleStore


@pytest.fixture()
def store(tmp_path):
    cfg = Settings(database_url=f"sqlite:///{tmp_path / 'history.db'}", time_zone="America/New_York")
    s = SampleStore(settings=cfg)
    s.create_schema()
    return s


class TestLifecycle:
    def test_create_returns_id_before_timing(self, store):
        sample = store.create_sample("OCLC_FAST", "fetch")
        assert sample.id
        assert sample.action is Action.FETCH
        assert sample.total_time_ms is None
        assert store.find_sample(sample.id) == sample

    def test_ids_unique(self, store):
        ids = {store.create_sample("X", Action.SEARCH).id for _ in range(50)}
        assert len(ids) == 50

    def test_update(self, store):
        sample = store.create_sample("X", Action.FETCH)
        updated = store.update_sample(sample.id, total_time_ms=12.5, size_bytes=2048,
                                      retrieve_plus_parse_time_ms=8.0, normalization_time_ms=3.0)
        assert updated.total_time_ms == 12.5
        found = store.find_sample(sample.id)
        assert found.size_bytes == 2048
        assert found.retrieve_plus_parse_time_ms == 8.0
        assert found.normalization_time_ms == 3.0

    def test_update_unknown_field(self, store):
        sample = store.create_sample("X", Action.FETCH)
        with pytest.raises(TypeError):
            store.update_sample(sample.id, latency=1.0)

    def test_update_missing(self, store):
        with pytest.raises(SampleNotFoundError):
            store.update_sample("nope", total_time_ms=1.0)

    def test_delete(self, store):
        sample = store.create_sample("X", Action.FETCH)
        store.delete_sample(sample.id)
        assert store.find_sample(sample.id) is None
        assert store.count() == 0

    def test_delete_missing_raises(self, store):
        with pytest.raises(SampleNotFoundError) as exc:
            store.delete_sample("nope")
        assert exc.value.sample_id == "nope"

    def test_unknown_action(self, store):
        with pytest.raises(ValueError):
            store.create_sample("X", "browse")


class TestTimestamps:
    def test_returned_in_configured_zone(self, store):
        stamp = datetime(2024, 7, 4, 16, 0, tzinfo=timezone.utc)
        sample = store.create_sample("X", Action.FETCH, timestamp=stamp)
        found = store.find_sample(sample.id)
        assert found.timestamp == stamp
        assert found.timestamp.utcoffset() == timedelta(hours=-4)
        assert found.timestamp.hour == 12

    def test_default_is_now(self, store):
        before = datetime.now(timezone.utc)
        sample = store.create_sample("X", Action.FETCH)
        after = datetime.now(timezone.utc)
        assert before - timedelta(seconds=1) <= sample.timestamp <= after + timedelta(seconds=1)


class TestQueries:
    def test_filter_and_order(self, store):
        base = datetime(2024, 1, 10, 12, 0, tzinfo=ZoneInfo("America/New_York"))
        for hours, auth in [(3, "A"), (1, "A"), (2, "B"), (0, "A")]:
            store.create_sample(auth, Action.FETCH, timestamp=base + timedelta(hours=hours))

        a = store.samples(authority="A")
        assert [s.timestamp for s in a] == [base, base + timedelta(hours=1), base + timedelta(hours=3)]
        assert len(store.samples()) == 4
        assert store.count("B") == 1

    def test_range_inclusive(self, store):
        base = datetime(2024, 1, 10, tzinfo=timezone.utc)
        for hours in range(5):
            store.create_sample("A", Action.SEARCH, timestamp=base + timedelta(hours=hours))
        got = store.samples(start=base + timedelta(hours=1), end=base + timedelta(hours=3))
        assert len(got) == 3

    def test_unknown_authority_empty(self, store):
        store.create_sample("A", Action.FETCH)
        assert store.samples(authority="ZZZ") == []


class TestInMemory:
    def test_memory_url_shares_one_database(self):
        s = SampleStore(settings=Settings(database_url="sqlite://"))
        s.create_schema()
        sample = s.create_sample("X", Action.FETCH)
        assert s.find_sample(sample.id) is not None
