"""
Benchmark Runner for DevBench.

This module sequences the phases of each benchmark: prerequisite check,
source acquisition, cache clear, restore, pre-build hooks, cold build,
warmup builds, measured warm builds and an optional incremental build.
Benchmarks run strictly one at a time so builds never compete for CPU/disk.
"""

import os
import shutil
import threading
import time
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from .metrics import compute_stats
from .models import (
    BenchmarkManifest,
    BenchmarkResult,
    ClearCacheConfig,
    CommandResult,
    PhaseConfig,
    TimedRun,
)
from .platform import PlatformKey, detect_platform, resolve_command
from .prerequisites import PrerequisiteChecker
from .process import CommandStartError, run_command
from .repo_fetcher import RepoFetcher

INCREMENTAL_WARM = "warm"
INCREMENTAL_CLEAN = "clean"
INCREMENTAL_MODES = (INCREMENTAL_WARM, INCREMENTAL_CLEAN)


class BenchmarkRunner:
    """
    Main benchmark runner.

    Orchestrates phase execution for a list of benchmark manifests and
    collects one BenchmarkResult per executed benchmark.
    """

    def __init__(
        self,
        benchmarks_dir: Union[str, Path],
        cache_dir: Union[str, Path] = ".cache",
        platform: Optional[PlatformKey] = None,
        incremental_mode: str = INCREMENTAL_WARM,
        verbose: bool = False,
    ):
        """
        Initialize BenchmarkRunner.

        Args:
            benchmarks_dir: Directory holding in-repo benchmark folders
            cache_dir: Directory for cloned external repositories
            platform: Platform to resolve commands for (detected when None)
            incremental_mode: 'warm' (measure from the warm state) or
                'clean' (clear cache and rebuild before the incremental run)
            verbose: Echo subprocess output

        Raises:
            ValueError: If incremental_mode is unknown
            OSError: If the cache directory cannot be created
        """
        if incremental_mode not in INCREMENTAL_MODES:
            raise ValueError(
                f"Unknown incremental mode '{incremental_mode}'. "
                f"Available modes: {list(INCREMENTAL_MODES)}"
            )

        self.benchmarks_dir = Path(benchmarks_dir)
        self.platform = platform or detect_platform()
        self.incremental_mode = incremental_mode
        self.verbose = verbose
        self.results: List[BenchmarkResult] = []

        self.cancel_event = threading.Event()
        self.checker = PrerequisiteChecker(platform=self.platform, verbose=verbose)
        self.fetcher = RepoFetcher(cache_dir, cancel_event=self.cancel_event, verbose=verbose)

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """
        Kill the running command and stop scheduling further phases.

        Safe to call from a signal handler or another thread; the CLI calls
        it on SIGTERM.
        """
        self.cancel_event.set()

    @property
    def is_cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def supports_platform(self, manifest: BenchmarkManifest) -> bool:
        """A manifest without a platforms list runs everywhere."""
        if not manifest.platforms:
            return True
        return self.platform.value in [p.lower() for p in manifest.platforms]

    def validate(self, manifest: BenchmarkManifest) -> bool:
        """
        Check that the benchmark has a full build command for this platform.

        Returns:
            False for a configuration error (the benchmark is skipped)
        """
        full = manifest.build.full
        if full is None:
            print(f"✗ {manifest.name}: no build.full command defined")
            return False
        if resolve_command(full.command, self.platform) is None:
            print(
                f"✗ {manifest.name}: build.full has no command for "
                f"{self.platform.display_name}"
            )
            return False
        return True

    def acquire(self, manifest: BenchmarkManifest) -> Optional[Path]:
        """
        Determine the working directory, cloning external repositories.

        Returns:
            Working directory, or None if the repository could not be fetched
        """
        if manifest.is_external:
            if not manifest.repo_url:
                print(f"✗ {manifest.name}: external-repo benchmark has no repoUrl")
                return None
            work_dir = self.fetcher.fetch(manifest.repo_url, manifest.repo_ref)
            if work_dir is None:
                print(f"✗ Failed to clone {manifest.repo_url}")
                return None
        else:
            work_dir = self.benchmarks_dir / manifest.folder_name

        if manifest.working_directory:
            work_dir = work_dir / manifest.working_directory

        return work_dir

    def prepare(self, manifest: BenchmarkManifest) -> Optional[Path]:
        """
        Run the gating phases: platform filter, prerequisites, acquisition.

        Returns:
            Working directory if the benchmark can run, otherwise None
        """
        if not self.supports_platform(manifest):
            print(
                f"⚠️  Skipping {manifest.name}: not supported on "
                f"{self.platform.display_name}"
            )
            return None

        if not self.checker.check_all(manifest.prerequisites):
            print(f"⚠️  Skipping {manifest.name}: prerequisites not met")
            return None

        return self.acquire(manifest)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run_all(self, manifests: Iterable[BenchmarkManifest]) -> List[BenchmarkResult]:
        """
        Run the given benchmarks in order.

        Returns:
            Results of every benchmark that executed
        """
        for manifest in manifests:
            if self.is_cancelled:
                print("⚠️  Run cancelled, remaining benchmarks skipped")
                break

            print(f"\n🏃 Running benchmark: {manifest.name}")

            if not self.validate(manifest):
                continue

            work_dir = self.prepare(manifest)
            if work_dir is None:
                continue

            result = self.run_benchmark(manifest, work_dir)
            if result is not None:
                self.results.append(result)

        return self.results

    def run_restore_all(self, manifests: Iterable[BenchmarkManifest]) -> None:
        """Run only the restore phase of each benchmark, with no timing recorded."""
        for manifest in manifests:
            if self.is_cancelled:
                break

            print(f"\n📦 Restoring benchmark: {manifest.name}")
            work_dir = self.prepare(manifest)
            if work_dir is None:
                continue

            self.run_restore_only(manifest, work_dir)

    def run_benchmark(self, manifest: BenchmarkManifest, work_dir: Path) -> Optional[BenchmarkResult]:
        """
        Run all build phases of one benchmark.

        Args:
            manifest: Benchmark manifest
            work_dir: Directory the commands run in

        Returns:
            BenchmarkResult, partially empty if a pre-build step failed;
            None for a configuration error
        """
        if not self.validate(manifest):
            return None

        env = manifest.environment_variables
        result = BenchmarkResult(name=manifest.name)
        build_full = manifest.build.full

        if manifest.clear_cache is not None:
            print("  Clearing cache...")
            self.clear_cache(manifest.clear_cache, work_dir, env)

        if manifest.restore is not None:
            print("  Restoring dependencies...")
            restore = self._run_phase(manifest.restore, work_dir, env)
            if restore is not None and not restore.success:
                print("⚠️  Restore failed, continuing")

        for index, step in enumerate(manifest.pre_build, start=1):
            print(f"  Pre-build step {index}/{len(manifest.pre_build)}...")
            step_result = self._run_phase(step, work_dir, env)
            if step_result is not None and not step_result.success:
                print(f"✗ Pre-build step {index} failed, aborting {manifest.name}")
                return result

        if self.is_cancelled:
            return result

        print("  Running cold build...")
        result.cold_run = self._timed_build(build_full, work_dir, env)

        for i in range(manifest.warmup_iterations):
            if self.is_cancelled:
                return result
            print(f"  Warmup {i + 1}/{manifest.warmup_iterations}...")
            self._timed_build(build_full, work_dir, env)

        warm_runs: List[TimedRun] = []
        for i in range(manifest.measured_iterations):
            if self.is_cancelled:
                break
            print(f"  Measured run {i + 1}/{manifest.measured_iterations}...")
            warm_runs.append(self._timed_build(build_full, work_dir, env))
        result.warm_runs = warm_runs
        result.warm_run_stats = compute_stats(warm_runs)

        incremental = manifest.build.incremental
        if incremental is not None and not self.is_cancelled:
            result.incremental_build = self._incremental_build(manifest, work_dir, env)

        self._print_result(result)
        return result

    def run_restore_only(self, manifest: BenchmarkManifest, work_dir: Path) -> Optional[CommandResult]:
        """
        Run the restore phase and report its outcome.

        Returns:
            CommandResult of the restore, or None if there is nothing to run
        """
        if manifest.restore is None:
            print("⚠️  No restore command defined")
            return None

        command = resolve_command(manifest.restore.command, self.platform)
        if command is None:
            print(f"⚠️  No restore command for {self.platform.display_name}")
            return None

        print(f"  Working directory: {work_dir}")
        print(f"  Command: {command}")

        start_time = time.perf_counter()
        result = self._run_phase(manifest.restore, work_dir, manifest.environment_variables)
        duration_ms = int((time.perf_counter() - start_time) * 1000)

        if result is not None and result.success:
            print(f"✓ Restore completed in {duration_ms}ms")
        elif result is not None:
            exit_code = result.exit_code if result.exit_code is not None else "none"
            print(f"✗ Restore failed (exit code: {exit_code})")
            if result.stderr.strip():
                print(result.stderr.rstrip())

        return result

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    def clear_cache(self, config: ClearCacheConfig, work_dir: Path, env: Optional[Dict[str, str]] = None) -> None:
        """
        Run the clear-cache command and delete additional paths.

        Best-effort: failures never block later phases.
        """
        if config.command is not None:
            phase = PhaseConfig(command=config.command, timeout=config.timeout)
            self._run_phase(phase, work_dir, env)

        for relative_path in config.additional_paths:
            path = Path(work_dir) / relative_path
            try:
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                elif path.exists() or path.is_symlink():
                    path.unlink()
            except OSError as e:
                if self.verbose:
                    print(f"⚠️  Could not delete {path}: {e}")

    def _incremental_build(self, manifest: BenchmarkManifest, work_dir: Path, env: Dict[str, str]) -> Optional[TimedRun]:
        incremental = manifest.build.incremental
        if resolve_command(incremental.command, self.platform) is None:
            print(f"⚠️  No incremental command for {self.platform.display_name}, skipped")
            return None

        if self.incremental_mode == INCREMENTAL_CLEAN:
            if manifest.clear_cache is not None:
                self.clear_cache(manifest.clear_cache, work_dir, env)
            print("  Rebuilding before incremental build...")
            self._timed_build(manifest.build.full, work_dir, env)

        if incremental.touch_file:
            self._touch(work_dir / incremental.touch_file)

        print("  Running incremental build...")
        return self._timed_build(incremental, work_dir, env)

    def _touch(self, path: Path) -> None:
        """Update a file's modification time to simulate a source edit."""
        if path.is_file():
            os.utime(path, None)
        elif self.verbose:
            print(f"⚠️  Touch file not found: {path}")

    def _run_phase(self, phase: PhaseConfig, work_dir: Path, env: Optional[Dict[str, str]] = None) -> Optional[CommandResult]:
        """
        Run an untimed phase command.

        Returns:
            CommandResult, or None when the command does not apply to this
            platform
        """
        command = resolve_command(phase.command, self.platform)
        if command is None:
            if self.verbose:
                print(f"  Skipped: no command for {self.platform.display_name}")
            return None

        try:
            return run_command(
                command,
                work_dir=work_dir,
                timeout=phase.timeout,
                env=env,
                cancel_event=self.cancel_event,
                verbose=self.verbose,
            )
        except CommandStartError as e:
            print(f"✗ {e}")
            return CommandResult(success=False)

    def _timed_build(self, phase: PhaseConfig, work_dir: Path, env: Optional[Dict[str, str]] = None) -> TimedRun:
        """Run a build command and time it."""
        command = resolve_command(phase.command, self.platform)

        start_time = time.perf_counter()
        try:
            result = run_command(
                command,
                work_dir=work_dir,
                timeout=phase.timeout,
                env=env,
                cancel_event=self.cancel_event,
                verbose=self.verbose,
            )
            success = result.success
        except CommandStartError as e:
            print(f"✗ {e}")
            success = False
        duration_ms = int((time.perf_counter() - start_time) * 1000)

        if not success:
            print(f"⚠️  Build failed after {duration_ms}ms")

        return TimedRun(duration_ms=duration_ms, success=success)

    def _print_result(self, result: BenchmarkResult) -> None:
        print(f"\n✓ {result.name} completed")
        if result.cold_run is not None:
            status = "" if result.cold_run.success else " (failed)"
            print(f"  Cold build: {result.cold_run.duration_ms}ms{status}")
        if result.warm_run_stats is not None and result.warm_run_stats.sample_count:
            print(f"  Warm median: {result.warm_run_stats.median_ms:.0f}ms")
        if result.incremental_build is not None:
            status = "" if result.incremental_build.success else " (failed)"
            print(f"  Incremental: {result.incremental_build.duration_ms}ms{status}")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"BenchmarkRunner(results={len(self.results)}, "
            f"platform={self.platform.value}, incremental_mode={self.incremental_mode})"
        )
