"""
DevBench - Developer PC Build Benchmark - Main Entry Point

Command-line interface for running benchmarks.
"""

import contextlib
import json
import signal
import sys
import threading
from pathlib import Path
from typing import List, Optional

import click

if __package__ is None or __package__ == "":
    # Allow running as a script via `python src/main.py`
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
    from src.benchmark import BenchmarkRunner, build_submission, save_submission
    from src.benchmark.runner import INCREMENTAL_MODES, INCREMENTAL_WARM
    from src.config import ManifestLoader
    from src.reporting import DataProcessor, ReportGenerator
    from src.system import collect_system_info
else:
    from .benchmark import BenchmarkRunner, build_submission, save_submission
    from .benchmark.runner import INCREMENTAL_MODES, INCREMENTAL_WARM
    from .config import ManifestLoader
    from .reporting import DataProcessor, ReportGenerator
    from .system import collect_system_info

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


@contextlib.contextmanager
def _cancel_on_sigterm(runner):
    """Cancel the runner (killing the running build) when SIGTERM arrives."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = signal.signal(signal.SIGTERM, lambda signum, frame: runner.cancel())
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


def run_cli(
    benchmarks_dir: Optional[str],
    benchmark_names: List[str],
    list_benchmarks: bool,
    verbose: bool,
    restore_only: bool,
    system_info_only: bool,
    incremental_mode: str,
    results_dir: str,
    cache_dir: str,
    history: bool,
) -> int:
    """Run the selected command and return the process exit code."""
    if system_info_only:
        print(json.dumps(collect_system_info(verbose=verbose), indent=2))
        return EXIT_SUCCESS

    if history:
        processor = DataProcessor()
        processor.load_results(results_dir)
        df = processor.to_dataframe()
        print(df.to_string(index=False) if not df.empty else "No results found")
        return EXIT_SUCCESS

    print("\n" + "=" * 70)
    print("DevBench - Developer PC Build Benchmark")
    print("=" * 70)

    benchmarks_path = Path(benchmarks_dir) if benchmarks_dir else Path.cwd() / "benchmarks"
    print(f"\n📋 Loading benchmarks: {benchmarks_path}")
    try:
        loader = ManifestLoader(benchmarks_path)
    except FileNotFoundError as e:
        print(f"✗ Error: {e}")
        return EXIT_FAILURE

    if len(loader) == 0:
        print("✗ Error: No benchmarks found")
        return EXIT_FAILURE
    print(f"✓ {len(loader)} benchmarks loaded")

    if list_benchmarks:
        for manifest in loader.manifests:
            description = f" - {manifest.description}" if manifest.description else ""
            print(f"  {manifest.folder_name}: {manifest.name}{description}")
        return EXIT_SUCCESS

    try:
        selected = loader.select(benchmark_names)
    except KeyError as e:
        print(f"✗ Error: {e.args[0]}")
        return EXIT_FAILURE

    machine = {}
    if not restore_only:
        print("\n📋 Collecting system information...")
        machine = collect_system_info(verbose=verbose)

    try:
        runner = BenchmarkRunner(
            benchmarks_path,
            cache_dir=cache_dir,
            incremental_mode=incremental_mode,
            verbose=verbose,
        )
    except OSError as e:
        print(f"✗ Error: cannot create cache directory: {e}")
        return EXIT_FAILURE

    try:
        with _cancel_on_sigterm(runner):
            if restore_only:
                runner.run_restore_all(selected)
                print("\n✓ Restore completed")
                return EXIT_SUCCESS

            results = runner.run_all(selected)
    except KeyboardInterrupt:
        print("\n⚠️  Interrupted")
        return EXIT_FAILURE

    try:
        submission = build_submission(results, machine)
        results_file = save_submission(submission, results_dir)
        ReportGenerator().generate_markdown_report(submission, results_file.with_suffix(".md"))
    except (OSError, TypeError, ValueError) as e:
        print(f"✗ Error: cannot write results: {e}")
        return EXIT_FAILURE

    print("\nTo submit your results:")
    print("  1. Fork the DevBench repository")
    print("  2. Add your results file to the results/ folder")
    print("  3. Submit a pull request")

    ReportGenerator().print_summary(results)
    return EXIT_SUCCESS


@click.command()
@click.option(
    "--benchmarks-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory containing benchmark folders (default: ./benchmarks)",
)
@click.option(
    "--benchmark",
    "-b",
    "benchmark_names",
    multiple=True,
    help="Benchmark name or folder to run (repeatable; default: all)",
)
@click.option(
    "--list",
    "list_benchmarks",
    is_flag=True,
    help="List available benchmarks and exit",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Verbose output",
)
@click.option(
    "--restore-only",
    is_flag=True,
    help="Only restore dependencies, no timing",
)
@click.option(
    "--system-info-only",
    is_flag=True,
    help="Print system information as JSON and exit",
)
@click.option(
    "--incremental-mode",
    type=click.Choice(list(INCREMENTAL_MODES)),
    default=INCREMENTAL_WARM,
    help="warm: measure from the warm state; clean: clear cache and rebuild first",
)
@click.option(
    "--results-dir",
    type=click.Path(file_okay=False),
    default="./results",
    help="Results directory",
)
@click.option(
    "--cache-dir",
    type=click.Path(file_okay=False),
    default="./.cache",
    help="Cache directory for cloned repositories",
)
@click.option(
    "--history",
    is_flag=True,
    help="Show stored results and exit",
)
def main(
    benchmarks_dir,
    benchmark_names,
    list_benchmarks,
    verbose,
    restore_only,
    system_info_only,
    incremental_mode,
    results_dir,
    cache_dir,
    history,
):
    """DevBench build benchmark harness."""
    sys.exit(
        run_cli(
            benchmarks_dir=benchmarks_dir,
            benchmark_names=list(benchmark_names),
            list_benchmarks=list_benchmarks,
            verbose=verbose,
            restore_only=restore_only,
            system_info_only=system_info_only,
            incremental_mode=incremental_mode,
            results_dir=results_dir,
            cache_dir=cache_dir,
            history=history,
        )
    )


if __name__ == "__main__":
    main()
