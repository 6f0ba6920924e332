"""
Unit tests for the stats calculator — nearest-rank percentiles, zero
defaults, action scoping and the requested-statistics subset.
"""
import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from services.history_service.models import Action, Sample
from services.stats_service.calculator import PerformanceCalculator, nearest_rank

_T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _sample(i, action=Action.FETCH, total=None, retrieve=None, split_retrieve=None,
            graph_load=None, normalization=None):
    return Sample(
        id=f"s{i}",
        timestamp=_T0,
        authority="X",
        action=action,
        total_time_ms=total,
        retrieve_plus_parse_time_ms=retrieve,
        retrieve_time_ms=split_retrieve,
        graph_load_time_ms=graph_load,
        normalization_time_ms=normalization,
    )


def _totals(values, action=Action.FETCH):
    return [_sample(i, action=action, total=v) for i, v in enumerate(values)]


class TestNearestRank:
    def test_empty(self):
        assert nearest_rank([], 90) == 0.0

    def test_single(self):
        assert nearest_rank([7.0], 10) == 7.0
        assert nearest_rank([7.0], 90) == 7.0

    def test_ten_values(self):
        vals = [10, 20, 30, 40, 50, 60, 70, 80, 90, 100]
        assert nearest_rank(vals, 10) == 10
        assert nearest_rank(vals, 90) == 90

    def test_rank_rounds_up(self):
        # ceil(0.1 * 5) - 1 = 0, ceil(0.9 * 5) - 1 = 4
        vals = [1, 2, 3, 4, 5]
        assert nearest_rank(vals, 10) == 1
        assert nearest_rank(vals, 90) == 5

    def test_clamped(self):
        assert nearest_rank([1, 2, 3], 0) == 1
        assert nearest_rank([1, 2, 3], 100) == 3


class TestCalculateStats:
    def test_reference_distribution(self):
        calc = PerformanceCalculator(_totals([10, 20, 30, 40, 50, 60, 70, 80, 90, 100]), action="fetch")
        stats = calc.calculate_stats(avg=True, low=True, high=True)
        assert stats["full_request_avg_ms"] == pytest.approx(55)
        assert stats["full_request_10th_ms"] == pytest.approx(10)
        assert stats["full_request_90th_ms"] == pytest.approx(90)

    def test_unsorted_input(self):
        calc = PerformanceCalculator(_totals([100, 10, 90, 20, 80, 30, 70, 40, 60, 50]))
        stats = calc.calculate_stats(low=True, high=True)
        assert stats["full_request_10th_ms"] == 10
        assert stats["full_request_90th_ms"] == 90

    def test_empty_is_all_zero(self):
        stats = PerformanceCalculator([]).calculate_stats(avg=True, low=True, high=True)
        assert len(stats) == 12
        assert all(v == 0.0 for v in stats.values())

    def test_subset_only(self):
        stats = PerformanceCalculator(_totals([1, 2, 3])).calculate_stats(avg=True)
        assert set(stats) == {
            "retrieve_avg_ms", "graph_load_avg_ms", "normalization_avg_ms", "full_request_avg_ms",
        }

    def test_nothing_requested(self):
        assert PerformanceCalculator(_totals([1, 2, 3])).calculate_stats() == {}


class TestActionScope:
    def test_filters_by_action(self):
        samples = _totals([10, 20], Action.FETCH) + _totals([1000], Action.SEARCH)
        fetch = PerformanceCalculator(samples, action="fetch").calculate_stats(avg=True)
        search = PerformanceCalculator(samples, action="search").calculate_stats(avg=True)
        assert fetch["full_request_avg_ms"] == pytest.approx(15)
        assert search["full_request_avg_ms"] == pytest.approx(1000)

    def test_all_actions(self):
        samples = _totals([10], Action.FETCH) + _totals([30], Action.SEARCH)
        stats = PerformanceCalculator(samples, action="all_actions").calculate_stats(avg=True)
        assert stats["full_request_avg_ms"] == pytest.approx(20)

    def test_unknown_action_is_zero(self):
        stats = PerformanceCalculator(_totals([10, 20]), action="browse").calculate_stats(avg=True, high=True)
        assert all(v == 0.0 for v in stats.values())


class TestMetrics:
    def test_retrieve_falls_back_to_retrieve_plus_parse(self):
        samples = [_sample(0, retrieve=40.0), _sample(1, retrieve=60.0, split_retrieve=20.0)]
        stats = PerformanceCalculator(samples).calculate_stats(avg=True)
        assert stats["retrieve_avg_ms"] == pytest.approx(40.0)

    def test_missing_metric_skipped_per_metric(self):
        samples = [
            _sample(0, total=10.0, graph_load=5.0, normalization=2.0),
            _sample(1, total=30.0, normalization=4.0),
        ]
        stats = PerformanceCalculator(samples).calculate_stats(avg=True)
        assert stats["full_request_avg_ms"] == pytest.approx(20.0)
        assert stats["graph_load_avg_ms"] == pytest.approx(5.0)
        assert stats["normalization_avg_ms"] == pytest.approx(3.0)
        assert stats["retrieve_avg_ms"] == 0.0
