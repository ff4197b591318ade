"""
Pytest configuration and fixtures.

This file is automatically loaded by pytest and provides:
- Path setup for importing src modules
- Common fixtures for tests (manifest factories, benchmark folders)
- Markers for tests that need a POSIX shell
"""

import json
import os
import sys
from pathlib import Path

import pytest

# Add project root to Python path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

IS_WINDOWS = os.name == "nt"


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "posix: mark test as requiring a POSIX shell (sh, sleep, touch)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip tests that spawn POSIX shell commands on Windows."""
    skip_posix = pytest.mark.skip(reason="requires a POSIX shell")

    for item in items:
        if "posix" in item.keywords and IS_WINDOWS:
            item.add_marker(skip_posix)


@pytest.fixture(autouse=True)
def _clear_iteration_overrides(monkeypatch):
    """Keep DEVBENCH_* overrides from the developer's shell out of tests."""
    monkeypatch.delenv("DEVBENCH_WARMUP_ITERATIONS", raising=False)
    monkeypatch.delenv("DEVBENCH_MEASURED_ITERATIONS", raising=False)


@pytest.fixture
def make_manifest():
    """Factory for BenchmarkManifest records with quick defaults."""
    from src.benchmark.models import BenchmarkManifest, BuildConfig, PhaseConfig

    def _make(name="sample", full="true", warmup=0, measured=1, **kwargs):
        build = kwargs.pop("build", None)
        if build is None:
            build = BuildConfig(full=PhaseConfig(command=full, timeout=10) if full else None)
        return BenchmarkManifest(
            name=name,
            folder_name=kwargs.pop("folder_name", name),
            build=build,
            warmup_iterations=warmup,
            measured_iterations=measured,
            **kwargs,
        )

    return _make


@pytest.fixture
def benchmarks_dir(tmp_path):
    """A benchmarks directory with two quick in-repo benchmarks."""
    root = tmp_path / "benchmarks"

    manifests = {
        "alpha": {
            "name": "Alpha",
            "description": "First sample",
            "build": {"full": {"command": "echo alpha", "timeout": 10}},
            "warmupIterations": 1,
            "measuredIterations": 2,
        },
        "beta": {
            "name": "Beta",
            "build": {
                "full": {"command": {"": "echo beta"}, "timeout": 10},
                "incremental": {"command": "echo inc", "touchFile": "src.txt"},
            },
            "warmupIterations": 0,
            "measuredIterations": 1,
        },
    }

    for folder, manifest in manifests.items():
        (root / folder).mkdir(parents=True)
        (root / folder / "benchmark.json").write_text(json.dumps(manifest))
    (root / "beta" / "src.txt").write_text("content")

    return root
