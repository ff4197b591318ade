"""Benchmark execution package."""

from .metrics import compute_stats
from .models import (
    BenchmarkManifest,
    BenchmarkResult,
    BuildConfig,
    ClearCacheConfig,
    CommandResult,
    PhaseConfig,
    Prerequisite,
    RunStats,
    Submission,
    TimedRun,
)
from .platform import PlatformKey, detect_platform, resolve_command
from .prerequisites import PrerequisiteChecker
from .process import CommandError, CommandStartError, run_command
from .repo_fetcher import RepoFetcher
from .runner import BenchmarkRunner
from .submission import build_submission, save_submission

__all__ = [
    "BenchmarkManifest",
    "BenchmarkResult",
    "BenchmarkRunner",
    "BuildConfig",
    "ClearCacheConfig",
    "CommandError",
    "CommandResult",
    "CommandStartError",
    "PhaseConfig",
    "PlatformKey",
    "Prerequisite",
    "PrerequisiteChecker",
    "RepoFetcher",
    "RunStats",
    "Submission",
    "TimedRun",
    "build_submission",
    "compute_stats",
    "detect_platform",
    "resolve_command",
    "run_command",
    "save_submission",
]
