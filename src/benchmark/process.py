"""
Subprocess execution for benchmark phases.

Commands are free-form shell snippets, so they run through the platform shell
(/bin/sh on POSIX, cmd.exe on Windows). Output is drained on background
threads while the caller waits for exit, and a timeout or cancellation kills
the whole process tree rather than just the shell.
"""

import os
import signal
import subprocess
import threading
import time
from pathlib import Path
from typing import IO, Dict, List, Optional, Union

import psutil

from .models import DEFAULT_PHASE_TIMEOUT, CommandResult

POLL_INTERVAL = 0.1
READER_JOIN_TIMEOUT = 5.0


class CommandError(Exception):
    """Base exception for subprocess errors."""

    pass


class CommandStartError(CommandError):
    """Raised when the shell process cannot be started at all."""

    pass


def _drain(stream: IO[str], sink: List[str]) -> None:
    """Read a pipe to EOF; runs on its own thread."""
    try:
        for chunk in iter(lambda: stream.read(8192), ""):
            sink.append(chunk)
    except (OSError, ValueError):
        # Stream closed underneath us after a kill
        pass
    finally:
        try:
            stream.close()
        except OSError:
            pass


class _ProcessTree:
    """
    Records descendants of a spawned shell while it runs.

    Used where there is no process-group kill (Windows): children that
    outlive their parent can still be found and killed.
    """

    def __init__(self, pid: int):
        self.pid = pid
        self.known: Dict[int, psutil.Process] = {}

    def refresh(self) -> None:
        try:
            for child in psutil.Process(self.pid).children(recursive=True):
                self.known.setdefault(child.pid, child)
        except psutil.Error:
            pass


def kill_process_tree(pid: int, known_descendants: Optional[List[psutil.Process]] = None) -> None:
    """
    Forcefully terminate a process and all of its descendants.

    Args:
        pid: PID of the root process (the shell)
        known_descendants: Descendants recorded earlier, killed even if they
            have been re-parented since
    """
    try:
        parent: Optional[psutil.Process] = psutil.Process(pid)
        children = parent.children(recursive=True)
    except psutil.Error:
        parent = None
        children = []

    if os.name != "nt":
        # Shells are started in their own session, so the group id is the pid
        try:
            os.killpg(pid, signal.SIGKILL)
        except (ProcessLookupError, PermissionError):
            pass

    for proc in [*children, *(known_descendants or [])]:
        try:
            proc.kill()
        except psutil.Error:
            pass

    if parent is not None:
        try:
            parent.kill()
        except psutil.Error:
            pass


def run_command(
    command: str,
    work_dir: Optional[Union[str, Path]] = None,
    timeout: float = DEFAULT_PHASE_TIMEOUT,
    env: Optional[Dict[str, str]] = None,
    cancel_event: Optional[threading.Event] = None,
    verbose: bool = False,
) -> CommandResult:
    """
    Run a shell command with a hard timeout.

    Args:
        command: Shell command line
        work_dir: Working directory (current directory when None)
        timeout: Timeout in seconds
        env: Environment overrides applied to the child only
        cancel_event: When set, the running command is killed
        verbose: Echo captured stdout/stderr

    Returns:
        CommandResult; a non-zero exit or timeout is reported through
        success=False, never raised

    Raises:
        CommandStartError: If the shell process could not be started
    """
    child_env = os.environ.copy()
    if env:
        child_env.update({key: str(value) for key, value in env.items()})

    popen_kwargs = {
        "shell": True,
        "cwd": str(work_dir) if work_dir else None,
        "env": child_env,
        "stdin": subprocess.DEVNULL,
        "stdout": subprocess.PIPE,
        "stderr": subprocess.PIPE,
        "text": True,
        "encoding": "utf-8",
        "errors": "replace",
    }
    if os.name == "nt":
        popen_kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        popen_kwargs["start_new_session"] = True

    # Fails before a child exists if the timeout is not a number
    deadline = time.monotonic() + timeout

    try:
        process = subprocess.Popen(command, **popen_kwargs)
    except (OSError, ValueError) as e:
        raise CommandStartError(f"Failed to start '{command}': {e}") from e

    stdout_chunks: List[str] = []
    stderr_chunks: List[str] = []
    readers = [
        threading.Thread(target=_drain, args=(process.stdout, stdout_chunks), daemon=True),
        threading.Thread(target=_drain, args=(process.stderr, stderr_chunks), daemon=True),
    ]
    for reader in readers:
        reader.start()

    tree = _ProcessTree(process.pid)
    timed_out = False
    cancelled = False

    try:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                timed_out = True
                break
            try:
                process.wait(timeout=min(POLL_INTERVAL, remaining))
                break
            except subprocess.TimeoutExpired:
                if os.name == "nt":
                    tree.refresh()
    except KeyboardInterrupt:
        # The child runs in its own session and never sees Ctrl-C
        kill_process_tree(process.pid, list(tree.known.values()))
        process.wait()
        raise

    if (timed_out or cancelled) and process.poll() is not None:
        # Exited between the last poll and the deadline check
        timed_out = cancelled = False

    if timed_out or cancelled:
        kill_process_tree(process.pid, list(tree.known.values()))
        process.wait()

    for reader in readers:
        reader.join(timeout=READER_JOIN_TIMEOUT)

    stdout = "".join(stdout_chunks)
    stderr = "".join(stderr_chunks)

    if verbose:
        if stdout.strip():
            print(stdout.rstrip())
        if stderr.strip():
            print(f"stderr: {stderr.rstrip()}")

    if timed_out:
        print(f"✗ Command timed out after {timeout:g}s: {command}")
        return CommandResult(success=False, stdout=stdout, stderr=stderr, timed_out=True)

    if cancelled:
        print(f"✗ Command cancelled: {command}")
        return CommandResult(success=False, stdout=stdout, stderr=stderr, cancelled=True)

    return CommandResult(
        success=process.returncode == 0,
        exit_code=process.returncode,
        stdout=stdout,
        stderr=stderr,
    )


def run_command_output(
    command: str,
    timeout: float = 10,
    work_dir: Optional[Union[str, Path]] = None,
    verbose: bool = False,
) -> Optional[str]:
    """
    Run a probe command and return its stdout.

    Returns:
        Captured stdout when the command exits zero, otherwise None
        (including when it cannot be started)
    """
    try:
        result = run_command(command, work_dir=work_dir, timeout=timeout, verbose=verbose)
    except CommandStartError as e:
        if verbose:
            print(f"✗ {e}")
        return None

    return result.stdout if result.success else None
