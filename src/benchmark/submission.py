"""
Submission assembly and persistence.

A submission bundles the host metadata with all benchmark results and is
written once, as indented camelCase JSON, into the results directory.
"""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .models import BenchmarkResult, Submission
from .process import run_command_output

ANONYMOUS_SUBMITTER = "anonymous"
GIT_USER_TIMEOUT = 5


def get_git_user_name() -> str:
    """Submitter name from git config, 'anonymous' if unavailable."""
    output = run_command_output("git config user.name", timeout=GIT_USER_TIMEOUT)
    name = output.strip() if output else ""
    return name or ANONYMOUS_SUBMITTER


def build_submission(
    results: List[BenchmarkResult],
    machine: Dict[str, Any],
    submitter: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Submission:
    """
    Combine benchmark results with host metadata.

    Args:
        results: Benchmark results in execution order
        machine: Opaque host metadata, attached as-is
        submitter: Submitter name (looked up from git when None)
        now: Timestamp to record (current UTC time when None)

    Returns:
        Submission record
    """
    now = now or datetime.now(timezone.utc)
    return Submission(
        submission_id=str(uuid.uuid4()),
        submitter=submitter if submitter is not None else get_git_user_name(),
        timestamp=now.isoformat(),
        machine=machine,
        benchmarks=list(results),
    )


def submission_filename(submission: Submission) -> str:
    """results-<yyyy-mm-dd-HHMMSS>-<id prefix>.json, from the submission timestamp."""
    timestamp = datetime.fromisoformat(submission.timestamp)
    return f"results-{timestamp:%Y-%m-%d-%H%M%S}-{submission.submission_id[:8]}.json"


def save_submission(submission: Submission, results_dir: Union[str, Path]) -> Path:
    """
    Write a submission to the results directory.

    Returns:
        Path of the written file

    Raises:
        OSError: If the directory or file cannot be written
        TypeError: If the machine metadata is not JSON serializable
    """
    results_dir = Path(results_dir)
    results_dir.mkdir(parents=True, exist_ok=True)

    # Serialize first so a bad payload never leaves a truncated file behind
    payload = json.dumps(submission.to_dict(), indent=2)

    output_path = results_dir / submission_filename(submission)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(payload)

    print(f"\n✓ Results saved to {output_path}")
    return output_path
