"""System-info collectors package."""

from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..benchmark.platform import PlatformKey, detect_platform
from .base_collector import BaseSystemInfoCollector, GenericCollector
from .linux_collector import LinuxCollector
from .macos_collector import MacOSCollector
from .windows_collector import WindowsCollector

COLLECTORS = {
    PlatformKey.LINUX: LinuxCollector,
    PlatformKey.MACOS: MacOSCollector,
    PlatformKey.WINDOWS: WindowsCollector,
}


def create_collector(
    platform: Optional[PlatformKey] = None,
    work_dir: Optional[Union[str, Path]] = None,
    verbose: bool = False,
) -> BaseSystemInfoCollector:
    """
    Create the collector strategy for a platform.

    Args:
        platform: Platform tag (detected when None)
        work_dir: Directory whose volume is reported
        verbose: Echo probe output

    Returns:
        Collector instance; GenericCollector for unknown platforms
    """
    platform = platform or detect_platform()
    collector_class = COLLECTORS.get(platform, GenericCollector)
    return collector_class(work_dir=work_dir, verbose=verbose)


def collect_system_info(
    platform: Optional[PlatformKey] = None,
    work_dir: Optional[Union[str, Path]] = None,
    verbose: bool = False,
) -> Dict[str, Any]:
    """Collect host metadata for the current (or given) platform."""
    return create_collector(platform, work_dir=work_dir, verbose=verbose).collect()


__all__ = [
    "BaseSystemInfoCollector",
    "GenericCollector",
    "LinuxCollector",
    "MacOSCollector",
    "WindowsCollector",
    "COLLECTORS",
    "create_collector",
    "collect_system_info",
]
