"""Tests for run statistics."""

import math

import pytest

from src.benchmark.metrics import compute_stats, success_rate
from src.benchmark.models import RunStats, TimedRun


def _runs(*durations, success=True):
    return [TimedRun(duration_ms=d, success=success) for d in durations]


class TestComputeStats:
    """Tests for compute_stats."""

    def test_empty_list_gives_zeroed_stats(self):
        stats = compute_stats([])

        assert stats == RunStats()
        assert stats.to_dict() == {
            "minMs": 0,
            "maxMs": 0,
            "meanMs": 0.0,
            "medianMs": 0.0,
            "stdDevMs": 0.0,
        }

    def test_all_failed_runs_give_zeroed_stats(self):
        stats = compute_stats(_runs(100, 200, success=False))

        assert stats.sample_count == 0
        assert stats.mean_ms == 0.0

    def test_odd_count(self):
        stats = compute_stats(_runs(1000, 2000, 3000))

        assert stats.min_ms == 1000
        assert stats.max_ms == 3000
        assert stats.mean_ms == pytest.approx(2000)
        assert stats.median_ms == pytest.approx(2000)
        assert stats.std_dev_ms == pytest.approx(math.sqrt(2_000_000 / 3))
        assert stats.std_dev_ms == pytest.approx(816.5, abs=0.1)

    def test_even_count_median_is_mean_of_middle_pair(self):
        stats = compute_stats(_runs(4000, 1000, 3000, 2000))

        assert stats.median_ms == pytest.approx(2500)

    def test_population_standard_deviation(self):
        stats = compute_stats(_runs(10, 20))

        # Population: sqrt(((10-15)^2 + (20-15)^2) / 2) = 5, sample would be ~7.07
        assert stats.std_dev_ms == pytest.approx(5.0)

    def test_failed_runs_are_excluded(self):
        runs = _runs(1000, 3000) + _runs(99999, success=False)

        stats = compute_stats(runs)

        assert stats.max_ms == 3000
        assert stats.sample_count == 2

    def test_single_run(self):
        stats = compute_stats(_runs(1234))

        assert stats.min_ms == stats.max_ms == 1234
        assert stats.std_dev_ms == 0.0


def test_success_rate():
    runs = _runs(1, 2, 3) + _runs(4, success=False)

    assert success_rate(runs) == pytest.approx(0.75)
    assert success_rate([]) == 0.0

