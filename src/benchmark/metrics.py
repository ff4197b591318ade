"""
Statistics for timed build runs.

Only successful runs contribute. The standard deviation is the population
value (divide by N) since it describes the measured sample.
"""

from typing import Iterable, List

import numpy as np

from .models import RunStats, TimedRun


def successful_durations(runs: Iterable[TimedRun]) -> List[int]:
    """Durations (ms) of successful runs, in execution order."""
    return [run.duration_ms for run in runs if run.success]


def compute_stats(runs: Iterable[TimedRun]) -> RunStats:
    """
    Calculate min/max/mean/median/stddev over successful runs.

    Args:
        runs: Timed runs in execution order

    Returns:
        RunStats; all fields are zero when no run succeeded
    """
    durations = successful_durations(runs)
    if not durations:
        return RunStats()

    durations_array = np.array(durations, dtype=np.float64)

    return RunStats(
        min_ms=int(np.min(durations_array)),
        max_ms=int(np.max(durations_array)),
        mean_ms=float(np.mean(durations_array)),
        median_ms=float(np.median(durations_array)),
        std_dev_ms=float(np.std(durations_array)),
        sample_count=len(durations),
    )


def success_rate(runs: List[TimedRun]) -> float:
    """Fraction of runs that succeeded (0.0 for an empty list)."""
    if not runs:
        return 0.0
    return len(successful_durations(runs)) / len(runs)

