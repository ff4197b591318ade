"""
Manifest Loader for DevBench.

This module loads, validates, and converts benchmark manifests. Each
benchmark lives in its own folder under the benchmarks directory and is
described by a benchmark.json (or benchmark.yaml) file.
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..benchmark.models import (
    DEFAULT_CLEAR_CACHE_TIMEOUT,
    DEFAULT_MEASURED_ITERATIONS,
    DEFAULT_PHASE_TIMEOUT,
    DEFAULT_WARMUP_ITERATIONS,
    TYPE_EXTERNAL_REPO,
    TYPE_IN_REPO,
    BenchmarkManifest,
    BuildConfig,
    ClearCacheConfig,
    PhaseConfig,
    Prerequisite,
)
from ..benchmark.repo_fetcher import repo_dir_name

MANIFEST_FILENAMES = ("benchmark.json", "benchmark.yaml", "benchmark.yml")
ENV_PREFIX = "DEVBENCH_"
ITERATION_OVERRIDES = {
    "WARMUP_ITERATIONS": "warmupIterations",
    "MEASURED_ITERATIONS": "measuredIterations",
}


class ManifestError(ValueError):
    """Raised when a manifest file is malformed."""

    pass


def _convert_type(value: str) -> Union[str, int, float, bool]:
    """
    Convert an environment variable string to an appropriate type.

    Args:
        value: String value from environment variable

    Returns:
        Converted value
    """
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def _validate_iterations(data: Dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ManifestError(f"'{key}' must be a non-negative integer, got {value!r}")
    return value


def _validate_timeout(value: Any, where: str, default: float) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ManifestError(f"{where}: 'timeout' must be a positive number, got {value!r}")
    return value


def _validate_string_list(value: Any, where: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ManifestError(f"{where}: expected a list of strings, got {value!r}")
    return list(value)


def _validate_command(value: Any, where: str) -> Any:
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        return {k.lower(): v for k, v in value.items()}
    raise ManifestError(f"{where}: 'command' must be a string or a platform map")


def _parse_phase(data: Any, where: str, default_timeout: int = DEFAULT_PHASE_TIMEOUT) -> Optional[PhaseConfig]:
    if data is None:
        return None
    if isinstance(data, str):
        return PhaseConfig(command=data, timeout=default_timeout)
    if not isinstance(data, dict) or "command" not in data:
        raise ManifestError(f"{where}: expected an object with a 'command'")

    return PhaseConfig(
        command=_validate_command(data["command"], where),
        timeout=_validate_timeout(data.get("timeout"), where, default_timeout),
        touch_file=data.get("touchFile"),
    )


def parse_manifest(data: Dict[str, Any], folder_name: str = "") -> BenchmarkManifest:
    """
    Convert a raw manifest dictionary into a BenchmarkManifest.

    Args:
        data: Parsed manifest (camelCase keys)
        folder_name: Folder the manifest was loaded from

    Returns:
        BenchmarkManifest

    Raises:
        ManifestError: If the manifest is invalid
    """
    if not isinstance(data, dict):
        raise ManifestError("Manifest must be an object")

    name = data.get("name") or folder_name
    if not name:
        raise ManifestError("Manifest has no 'name'")

    benchmark_type = data.get("type", TYPE_IN_REPO)
    if benchmark_type not in (TYPE_IN_REPO, TYPE_EXTERNAL_REPO):
        raise ManifestError(
            f"Unknown benchmark type '{benchmark_type}'. "
            f"Expected '{TYPE_IN_REPO}' or '{TYPE_EXTERNAL_REPO}'"
        )
    if benchmark_type == TYPE_EXTERNAL_REPO and not data.get("repoUrl"):
        raise ManifestError("'external-repo' benchmarks require a 'repoUrl'")

    repo_url = data.get("repoUrl")
    if repo_url is not None:
        if not isinstance(repo_url, str):
            raise ManifestError(f"'repoUrl' must be a string, got {repo_url!r}")
        try:
            repo_dir_name(repo_url)
        except ValueError as e:
            raise ManifestError(str(e)) from e

    prerequisites_data = data.get("prerequisites") or []
    if not isinstance(prerequisites_data, list):
        raise ManifestError("prerequisites: expected a list")
    prerequisites = []
    for index, item in enumerate(prerequisites_data):
        where = f"prerequisites[{index}]"
        if not isinstance(item, dict) or "command" not in item:
            raise ManifestError(f"{where}: expected an object with a 'command'")
        min_version = item.get("minVersion")
        prerequisites.append(
            Prerequisite(
                command=_validate_command(item["command"], where),
                min_version=str(min_version) if min_version is not None else None,
            )
        )

    clear_cache = None
    clear_cache_data = data.get("clearCache")
    if clear_cache_data is not None:
        if not isinstance(clear_cache_data, dict):
            raise ManifestError("clearCache: expected an object")
        command = clear_cache_data.get("command")
        clear_cache = ClearCacheConfig(
            command=_validate_command(command, "clearCache") if command is not None else None,
            additional_paths=_validate_string_list(
                clear_cache_data.get("additionalPaths"), "clearCache.additionalPaths"
            ),
            timeout=_validate_timeout(
                clear_cache_data.get("timeout"), "clearCache", DEFAULT_CLEAR_CACHE_TIMEOUT
            ),
        )

    build_data = data.get("build") or {}
    if not isinstance(build_data, dict):
        raise ManifestError("build: expected an object")

    pre_build_data = data.get("preBuild") or []
    if not isinstance(pre_build_data, list):
        raise ManifestError("preBuild: expected a list of steps")
    pre_build = [
        _parse_phase(step, f"preBuild[{index}]")
        for index, step in enumerate(pre_build_data)
        if step is not None
    ]

    environment = data.get("environmentVariables") or {}
    if not isinstance(environment, dict):
        raise ManifestError("environmentVariables: expected an object")

    return BenchmarkManifest(
        name=str(name),
        folder_name=folder_name,
        description=data.get("description", ""),
        type=benchmark_type,
        repo_url=repo_url,
        repo_ref=data.get("repoRef"),
        tags=_validate_string_list(data.get("tags"), "tags"),
        platforms=[p.lower() for p in _validate_string_list(data.get("platforms"), "platforms")],
        working_directory=data.get("workingDirectory"),
        environment_variables={str(k): str(v) for k, v in environment.items()},
        prerequisites=prerequisites,
        clear_cache=clear_cache,
        restore=_parse_phase(data.get("restore"), "restore"),
        pre_build=pre_build,
        build=BuildConfig(
            full=_parse_phase(build_data.get("full"), "build.full"),
            incremental=_parse_phase(build_data.get("incremental"), "build.incremental"),
        ),
        warmup_iterations=_validate_iterations(
            data, "warmupIterations", DEFAULT_WARMUP_ITERATIONS
        ),
        measured_iterations=_validate_iterations(
            data, "measuredIterations", DEFAULT_MEASURED_ITERATIONS
        ),
    )


class ManifestLoader:
    """
    Benchmark manifest loader.

    Discovers benchmark folders, loads their manifests, applies environment
    variable overrides, and validates them. A broken manifest only drops its
    own benchmark.
    """

    def __init__(self, benchmarks_dir: Union[str, Path]):
        """
        Initialize ManifestLoader.

        Args:
            benchmarks_dir: Directory containing one folder per benchmark

        Raises:
            FileNotFoundError: If the benchmarks directory doesn't exist
        """
        self.benchmarks_dir = Path(benchmarks_dir)
        if not self.benchmarks_dir.is_dir():
            raise FileNotFoundError(f"Benchmarks directory not found: {benchmarks_dir}")

        self.manifests: List[BenchmarkManifest] = self._load_all()

    def _find_manifest_file(self, folder: Path) -> Optional[Path]:
        for filename in MANIFEST_FILENAMES:
            candidate = folder / filename
            if candidate.is_file():
                return candidate
        return None

    def _load_all(self) -> List[BenchmarkManifest]:
        manifests = []

        for folder in sorted(p for p in self.benchmarks_dir.iterdir() if p.is_dir()):
            manifest_path = self._find_manifest_file(folder)
            if manifest_path is None:
                continue

            try:
                manifests.append(self.load_file(manifest_path, folder.name))
            except (ManifestError, yaml.YAMLError, OSError) as e:
                print(f"⚠️  Failed to load {manifest_path}: {e}")

        return manifests

    def load_file(self, manifest_path: Union[str, Path], folder_name: Optional[str] = None) -> BenchmarkManifest:
        """
        Load a single manifest file.

        Raises:
            ManifestError: If the manifest is invalid
            yaml.YAMLError: If the file is not valid JSON/YAML
        """
        manifest_path = Path(manifest_path)
        with open(manifest_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            raise ManifestError("Manifest file is empty")

        self._apply_environment_overrides(data)
        return parse_manifest(data, folder_name or manifest_path.parent.name)

    def _apply_environment_overrides(self, data: Dict[str, Any]) -> None:
        """
        Apply environment variable overrides to a raw manifest.

        Examples:
            DEVBENCH_WARMUP_ITERATIONS=0
            DEVBENCH_MEASURED_ITERATIONS=10
        """
        if not isinstance(data, dict):
            return

        for suffix, key in ITERATION_OVERRIDES.items():
            value = os.environ.get(ENV_PREFIX + suffix)
            if value is None or value == "":
                continue
            data[key] = _convert_type(value)

    def get(self, name: str) -> Optional[BenchmarkManifest]:
        """
        Find a benchmark by name or folder name (case-insensitive).

        Returns:
            Matching manifest or None
        """
        wanted = name.lower()
        for manifest in self.manifests:
            if manifest.name.lower() == wanted or manifest.folder_name.lower() == wanted:
                return manifest
        return None

    def select(self, names: Optional[List[str]] = None) -> List[BenchmarkManifest]:
        """
        Select benchmarks by name, preserving the requested order.

        Args:
            names: Names or folder names; all manifests when empty

        Raises:
            KeyError: If a name matches no benchmark
        """
        if not names:
            return list(self.manifests)

        selected = []
        for name in names:
            manifest = self.get(name)
            if manifest is None:
                raise KeyError(f"Benchmark '{name}' not found")
            selected.append(manifest)
        return selected

    def __len__(self) -> int:
        return len(self.manifests)

    def __repr__(self) -> str:
        """String representation of ManifestLoader."""
        return f"ManifestLoader(benchmarks_dir='{self.benchmarks_dir}')"

    def __str__(self) -> str:
        """Human-readable string representation."""
        return f"Benchmarks(count={len(self.manifests)}, source='{self.benchmarks_dir}')"
