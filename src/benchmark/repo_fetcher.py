"""
Shallow clones of external benchmark repositories.

Clones live in a cache directory shared across runs. An existing clone is
reused as-is: manifests pin exact refs, so no pull or freshness check is done.
"""

import os
import shlex
import shutil
import subprocess
import threading
from pathlib import Path, PurePosixPath
from typing import Optional, Union
from urllib.parse import urlparse

from .process import CommandStartError, run_command

CLONE_TIMEOUT = 600


def repo_dir_name(url: str) -> str:
    """
    Derive the cache directory name for a repository URL.

    The last path segment with its extension stripped, e.g.
    https://github.com/dotnet/runtime.git -> runtime. Also handles
    scp-style URLs (git@host:owner/repo.git).
    """
    if "://" not in url and ":" in url.split("/", 1)[0]:
        path = url.split(":", 1)[1]
    else:
        path = urlparse(url).path

    name = PurePosixPath(path.rstrip("/")).stem
    if not name or name in (".", ".."):
        raise ValueError(f"Cannot derive a directory name from repository URL: {url}")
    return name


def _quote(arg: str) -> str:
    if os.name == "nt":
        return subprocess.list2cmdline([arg])
    return shlex.quote(arg)


def build_clone_command(url: str, target_dir: Path, ref: Optional[str] = None) -> str:
    """Shallow clone command line, optionally pinned to a branch or tag."""
    parts = ["git", "clone", "--depth", "1"]
    if ref:
        parts += ["--branch", _quote(ref)]
    parts += [_quote(url), _quote(str(target_dir))]
    return " ".join(parts)


class RepoFetcher:
    """
    Fetches external repositories into a cache directory.

    Raises OSError from the constructor if the cache directory cannot be
    created, which aborts the whole run.
    """

    def __init__(
        self,
        cache_dir: Union[str, Path],
        timeout: float = CLONE_TIMEOUT,
        cancel_event: Optional[threading.Event] = None,
        verbose: bool = False,
    ):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.timeout = timeout
        self.cancel_event = cancel_event
        self.verbose = verbose

    def target_for(self, url: str) -> Path:
        return self.cache_dir / repo_dir_name(url)

    def fetch(self, url: str, ref: Optional[str] = None) -> Optional[Path]:
        """
        Return a local clone of the repository, cloning it if needed.

        Args:
            url: Repository URL
            ref: Optional branch or tag to clone

        Returns:
            Path to the clone, or None if the URL is unusable or cloning
            failed or timed out
        """
        try:
            target_dir = self.target_for(url)
        except ValueError as e:
            print(f"✗ {e}")
            return None

        if target_dir.is_dir():
            if self.verbose:
                print(f"  Using cached repo: {target_dir}")
            return target_dir

        print(f"  Cloning {url}...")
        command = build_clone_command(url, target_dir, ref)

        try:
            result = run_command(
                command,
                work_dir=self.cache_dir,
                timeout=self.timeout,
                cancel_event=self.cancel_event,
                verbose=self.verbose,
            )
        except CommandStartError as e:
            print(f"✗ {e}")
            return None

        if not result.success:
            if result.stderr.strip():
                print(result.stderr.rstrip())
            # A partial clone would otherwise be reused by the next run
            if target_dir.exists():
                shutil.rmtree(target_dir, ignore_errors=True)
            return None

        print(f"✓ Cloned into {target_dir}")
        return target_dir
