"""
Data records for the DevBench harness.

Manifest records are parsed once from benchmark manifests and treated as
read-only. Run records (TimedRun, RunStats, BenchmarkResult) are produced by
the runner and serialized into the camelCase submission format.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

# A literal command for every platform, or a map of platform key -> command.
CommandSpec = Union[str, Dict[str, str]]

DEFAULT_PHASE_TIMEOUT = 300
DEFAULT_CLEAR_CACHE_TIMEOUT = 120
DEFAULT_WARMUP_ITERATIONS = 2
DEFAULT_MEASURED_ITERATIONS = 5

TYPE_IN_REPO = "in-repo"
TYPE_EXTERNAL_REPO = "external-repo"


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    """Remove keys whose value is None (matches the published JSON format)."""
    return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class Prerequisite:
    command: CommandSpec
    min_version: Optional[str] = None


@dataclass(frozen=True)
class PhaseConfig:
    """A command plus its timeout; touch_file is only used by incremental builds."""

    command: CommandSpec
    timeout: int = DEFAULT_PHASE_TIMEOUT
    touch_file: Optional[str] = None


@dataclass(frozen=True)
class ClearCacheConfig:
    command: Optional[CommandSpec] = None
    additional_paths: List[str] = field(default_factory=list)
    timeout: int = DEFAULT_CLEAR_CACHE_TIMEOUT


@dataclass(frozen=True)
class BuildConfig:
    full: Optional[PhaseConfig] = None
    incremental: Optional[PhaseConfig] = None


@dataclass(frozen=True)
class BenchmarkManifest:
    """
    Declarative description of one benchmark.

    folder_name is the directory the manifest was loaded from and doubles as
    an identifier for selection.
    """

    name: str
    folder_name: str = ""
    description: str = ""
    type: str = TYPE_IN_REPO
    repo_url: Optional[str] = None
    repo_ref: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    platforms: List[str] = field(default_factory=list)
    working_directory: Optional[str] = None
    environment_variables: Dict[str, str] = field(default_factory=dict)
    prerequisites: List[Prerequisite] = field(default_factory=list)
    clear_cache: Optional[ClearCacheConfig] = None
    restore: Optional[PhaseConfig] = None
    pre_build: List[PhaseConfig] = field(default_factory=list)
    build: BuildConfig = field(default_factory=BuildConfig)
    warmup_iterations: int = DEFAULT_WARMUP_ITERATIONS
    measured_iterations: int = DEFAULT_MEASURED_ITERATIONS

    @property
    def is_external(self) -> bool:
        return self.type == TYPE_EXTERNAL_REPO


@dataclass
class CommandResult:
    """
    Outcome of one subprocess invocation.

    exit_code is None when the process was killed (timeout or cancellation).
    """

    success: bool
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    cancelled: bool = False


@dataclass(frozen=True)
class TimedRun:
    duration_ms: int
    success: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"durationMs": self.duration_ms, "success": self.success}


@dataclass(frozen=True)
class RunStats:
    min_ms: int = 0
    max_ms: int = 0
    mean_ms: float = 0.0
    median_ms: float = 0.0
    std_dev_ms: float = 0.0
    sample_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minMs": self.min_ms,
            "maxMs": self.max_ms,
            "meanMs": self.mean_ms,
            "medianMs": self.median_ms,
            "stdDevMs": self.std_dev_ms,
        }


@dataclass
class BenchmarkResult:
    name: str
    cold_run: Optional[TimedRun] = None
    warm_runs: Optional[List[TimedRun]] = None
    warm_run_stats: Optional[RunStats] = None
    incremental_build: Optional[TimedRun] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "name": self.name,
                "coldRun": self.cold_run.to_dict() if self.cold_run else None,
                "warmRuns": (
                    [run.to_dict() for run in self.warm_runs]
                    if self.warm_runs is not None
                    else None
                ),
                "warmRunStats": (
                    self.warm_run_stats.to_dict() if self.warm_run_stats else None
                ),
                "incrementalBuild": (
                    self.incremental_build.to_dict() if self.incremental_build else None
                ),
            }
        )


@dataclass(frozen=True)
class Submission:
    """Write-once record combining host metadata with all benchmark results."""

    submission_id: str
    submitter: str
    timestamp: str
    machine: Dict[str, Any]
    benchmarks: List[BenchmarkResult]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "submissionId": self.submission_id,
            "submitter": self.submitter,
            "timestamp": self.timestamp,
            "machine": self.machine,
            "benchmarks": [result.to_dict() for result in self.benchmarks],
        }
