"""
Data Processor for DevBench.

This module loads stored submissions from the results directory and
flattens them for comparison across runs and machines.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

HISTORY_COLUMNS = [
    "timestamp",
    "submitter",
    "platform",
    "cpu",
    "benchmark",
    "cold_ms",
    "warm_median_ms",
    "warm_std_dev_ms",
    "incremental_ms",
]


def _run_duration(run: Optional[Dict[str, Any]]) -> Optional[float]:
    if not run or not run.get("success"):
        return None
    return run.get("durationMs")


def _timestamp_key(submission: Dict[str, Any]) -> float:
    """Sort key in nanoseconds since the epoch; missing/bad timestamps sort last."""
    timestamp = pd.to_datetime(submission.get("timestamp"), utc=True, errors="coerce")
    if timestamp is None or pd.isna(timestamp):
        return float("-inf")
    return float(timestamp.value)


class DataProcessor:
    """
    Benchmark data processor.

    Loads submissions (newest first) and produces one row per benchmark per
    submission.
    """

    def __init__(self):
        """Initialize DataProcessor."""
        self.submissions: List[Dict[str, Any]] = []

    def load_results(self, results_dir: Union[str, Path]) -> List[Dict[str, Any]]:
        """
        Load every submission JSON file in a directory.

        Unparseable files are reported and skipped.

        Args:
            results_dir: Results directory

        Returns:
            Submissions sorted by timestamp, newest first
        """
        results_dir = Path(results_dir)
        if not results_dir.is_dir():
            print(f"⚠️  Results directory not found: {results_dir}")
            self.submissions = []
            return self.submissions

        submissions = []
        for path in sorted(results_dir.glob("*.json")):
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                print(f"⚠️  Failed to parse {path.name}: {e}")
                continue

            if not isinstance(data, dict):
                print(f"⚠️  Failed to parse {path.name}: not a submission")
                continue

            data["fileName"] = path.name
            submissions.append(data)

        submissions.sort(key=_timestamp_key, reverse=True)
        self.submissions = submissions

        print(f"✓ Loaded {len(self.submissions)} submissions")
        return self.submissions

    def to_dataframe(self) -> pd.DataFrame:
        """
        Flatten loaded submissions.

        Returns:
            DataFrame with one row per benchmark result; failed runs are NaN
        """
        rows = []
        for submission in self.submissions:
            machine = submission.get("machine") or {}
            for benchmark in submission.get("benchmarks") or []:
                stats = benchmark.get("warmRunStats") or {}
                has_warm = any(run.get("success") for run in benchmark.get("warmRuns") or [])
                rows.append(
                    {
                        "timestamp": submission.get("timestamp"),
                        "submitter": submission.get("submitter"),
                        "platform": (machine.get("os") or {}).get("platform"),
                        "cpu": (machine.get("cpu") or {}).get("model"),
                        "benchmark": benchmark.get("name"),
                        "cold_ms": _run_duration(benchmark.get("coldRun")),
                        "warm_median_ms": stats.get("medianMs") if has_warm else None,
                        "warm_std_dev_ms": stats.get("stdDevMs") if has_warm else None,
                        "incremental_ms": _run_duration(benchmark.get("incrementalBuild")),
                    }
                )

        return pd.DataFrame(rows, columns=HISTORY_COLUMNS)

    def best_by_benchmark(self) -> pd.DataFrame:
        """
        Fastest warm median per benchmark across all submissions.

        Returns:
            DataFrame indexed by benchmark with the best row for each
        """
        df = self.to_dataframe().dropna(subset=["warm_median_ms"])
        if df.empty:
            return df
        best = df.loc[df.groupby("benchmark")["warm_median_ms"].idxmin()]
        return best.sort_values("benchmark").reset_index(drop=True)

    def export_summary_csv(self, output_path: Union[str, Path]) -> None:
        """
        Export the flattened history to CSV.

        Args:
            output_path: Path to save CSV file
        """
        self.to_dataframe().to_csv(output_path, index=False)
        print(f"✓ Summary exported to {output_path}")

    def __repr__(self) -> str:
        """String representation."""
        return f"DataProcessor(loaded_submissions={len(self.submissions)})"
