"""
Report Generator for DevBench.

This module renders the terminal summary table and a Markdown report for a
submission.
"""

from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd

from ..benchmark.metrics import success_rate
from ..benchmark.models import BenchmarkResult, Submission, TimedRun

SUMMARY_COLUMNS = ["Benchmark", "Cold Build", "Warm (median)", "Incremental"]
FAILED = "failed"
MISSING = "-"


def format_duration(duration_ms: Optional[float]) -> str:
    """Format milliseconds with thousands separators, e.g. 1,234ms."""
    if duration_ms is None:
        return MISSING
    return f"{duration_ms:,.0f}ms"


def _format_run(run: Optional[TimedRun], missing: str = MISSING) -> str:
    if run is None:
        return missing
    if not run.success:
        return FAILED
    return format_duration(run.duration_ms)


def _format_warm(result: BenchmarkResult) -> str:
    stats = result.warm_run_stats
    if stats is None:
        return MISSING
    if stats.sample_count == 0:
        return FAILED if result.warm_runs else MISSING
    return format_duration(stats.median_ms)


class ReportGenerator:
    """
    Benchmark report generator.

    Creates the human-readable summary shown at the end of a run and a
    Markdown report stored next to the results file.
    """

    def summary_table(self, results: List[BenchmarkResult]) -> pd.DataFrame:
        """
        Build the summary table.

        A benchmark with no cold run (aborted by a pre-build step) shows
        'failed' in the Cold Build column.

        Args:
            results: Benchmark results

        Returns:
            DataFrame with one row per benchmark
        """
        rows = []
        for result in results:
            rows.append(
                {
                    "Benchmark": result.name,
                    "Cold Build": _format_run(result.cold_run, missing=FAILED),
                    "Warm (median)": _format_warm(result),
                    "Incremental": _format_run(result.incremental_build),
                }
            )
        return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)

    def format_summary(self, results: List[BenchmarkResult]) -> str:
        """Render the summary table as plain text."""
        if not results:
            return "No benchmark results"
        return self.summary_table(results).to_string(index=False)

    def print_summary(self, results: List[BenchmarkResult]) -> None:
        print("\n📊 Benchmark Summary")
        print(self.format_summary(results))

    def generate_markdown_report(self, submission: Submission, output_path: Path) -> None:
        """
        Generate Markdown report.

        Args:
            submission: Submission to describe
            output_path: Path to save Markdown report
        """
        md = self._create_markdown_template(submission)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            f.write(md)

        print(f"✓ Markdown report saved to {output_path}")

    def _create_markdown_template(self, submission: Submission) -> str:
        """Create Markdown report template."""
        machine = submission.machine or {}
        os_info = machine.get("os", {})
        cpu_info = machine.get("cpu", {})
        memory_info = machine.get("memory", {})

        md = f"""# DevBench Results

**Submission**: {submission.submission_id}
**Submitter**: {submission.submitter}
**Timestamp**: {submission.timestamp}
**Generated**: {datetime.now().strftime("%Y-%m-%d %H:%M:%S")}

## Machine

- **OS**: {os_info.get('platform', 'N/A')} {os_info.get('version', '')} ({os_info.get('architecture', 'N/A')})
- **CPU**: {cpu_info.get('model') or 'N/A'} ({cpu_info.get('cores', 'N/A')} cores)
- **Memory**: {memory_info.get('capacityGB', 'N/A')} GB

## Results

| Benchmark | Cold Build | Warm (median) | Warm (stddev) | Incremental | Warm success |
|-----------|------------|---------------|---------------|-------------|--------------|
"""

        for result in submission.benchmarks:
            stats = result.warm_run_stats
            std_dev = format_duration(stats.std_dev_ms) if stats and stats.sample_count else MISSING
            rate = f"{success_rate(result.warm_runs):.0%}" if result.warm_runs else MISSING
            md += (
                f"| {result.name} | {_format_run(result.cold_run, missing=FAILED)} "
                f"| {_format_warm(result)} | {std_dev} "
                f"| {_format_run(result.incremental_build)} | {rate} |\n"
            )

        return md

    def __repr__(self) -> str:
        """String representation."""
        return "ReportGenerator()"
