"""
Prerequisite checks for benchmarks.

Each prerequisite is a version probe (e.g. "dotnet --version") that must exit
successfully; when a minimum version is given, the first dotted version in the
probe output is compared against it.
"""

import re
from typing import Iterable, Optional, Tuple

from .models import Prerequisite
from .platform import PlatformKey, detect_platform, resolve_command
from .process import run_command_output

PREREQUISITE_TIMEOUT = 10

_VERSION_PATTERN = re.compile(r"(\d+\.\d+(?:\.\d+)?)")

Version = Tuple[int, ...]


def parse_version(text: Optional[str]) -> Optional[Version]:
    """
    Parse a dotted version string into a tuple of ints.

    Returns:
        Version tuple, or None if the text is not a plain dotted version
    """
    if not text:
        return None

    parts = text.strip().lstrip("vV").split(".")
    if len(parts) < 2 or not all(part.isdigit() for part in parts):
        return None
    return tuple(int(part) for part in parts)


def extract_version(output: str) -> Optional[Version]:
    """Extract the first major.minor(.patch) version found in command output."""
    match = _VERSION_PATTERN.search(output or "")
    if not match:
        return None
    return parse_version(match.group(1))


def _format_version(version: Version) -> str:
    return ".".join(str(part) for part in version)


class PrerequisiteChecker:
    """
    Runs prerequisite probes for the current platform.

    A prerequisite whose command has no variant for this platform does not
    apply and passes.
    """

    def __init__(
        self,
        platform: Optional[PlatformKey] = None,
        timeout: float = PREREQUISITE_TIMEOUT,
        verbose: bool = False,
    ):
        self.platform = platform or detect_platform()
        self.timeout = timeout
        self.verbose = verbose

    def check(self, prereq: Prerequisite) -> bool:
        """
        Check a single prerequisite.

        Returns:
            True if the tool is present and new enough (or not applicable)
        """
        command = resolve_command(prereq.command, self.platform)
        if command is None:
            if self.verbose:
                print(f"  Prerequisite not applicable on {self.platform.display_name}")
            return True

        output = run_command_output(command, timeout=self.timeout, verbose=self.verbose)
        if output is None:
            print(f"⚠️  {command}: not available")
            return False

        if prereq.min_version:
            min_version = parse_version(prereq.min_version)
            version = extract_version(output)
            if min_version is None and self.verbose:
                print(f"⚠️  {command}: cannot parse minVersion '{prereq.min_version}', not compared")
            if min_version is not None and version is not None and version < min_version:
                print(
                    f"⚠️  {command}: {_format_version(version)} < "
                    f"{_format_version(min_version)}"
                )
                return False

        return True

    def check_all(self, prereqs: Iterable[Prerequisite]) -> bool:
        """
        Check every prerequisite.

        All prerequisites are probed even after a failure so each problem is
        reported.

        Returns:
            True only if every prerequisite passes
        """
        results = [self.check(prereq) for prereq in prereqs]
        return all(results)
