"""
Base System-Info Collector for DevBench.

This module defines the abstract base class for host metadata collectors.
Each operating system gets its own strategy; the common fields (core count,
memory, free disk space, file system) come from psutil on every platform.
"""

import os
import platform as _platform
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import psutil

from ..benchmark.platform import PlatformKey
from ..benchmark.process import run_command_output

GIB = 1024.0 ** 3
PROBE_TIMEOUT = 10


class BaseSystemInfoCollector(ABC):
    """
    Abstract base class for system-info collectors.

    Every probe is best-effort: a failing probe leaves its field empty
    instead of raising.
    """

    platform_key = PlatformKey.UNKNOWN

    def __init__(self, work_dir: Optional[Union[str, Path]] = None, verbose: bool = False):
        """
        Initialize collector.

        Args:
            work_dir: Directory whose volume is reported under storage
            verbose: Echo probe command output
        """
        self.work_dir = Path(work_dir) if work_dir else Path.cwd()
        self.verbose = verbose

    @abstractmethod
    def get_cpu_model(self) -> Optional[str]:
        """
        Get the CPU model name.

        Returns:
            Model string or None if it cannot be determined
        """
        pass

    @abstractmethod
    def get_platform_specific(self) -> Dict[str, Any]:
        """
        Get platform-only details (distribution, Apple Silicon, Dev Drive...).

        Returns:
            Dictionary of extra fields, empty when nothing is known
        """
        pass

    def get_storage_type(self) -> Optional[str]:
        """Storage media type (SSD/HDD) where the platform can tell."""
        return None

    def collect(self) -> Dict[str, Any]:
        """
        Collect host metadata.

        Returns:
            Dictionary with os, cpu, memory, storage, dotNetSdks and
            platformSpecific sections
        """
        return {
            "os": self.get_os_info(),
            "cpu": self.get_cpu_info(),
            "memory": self.get_memory_info(),
            "storage": self.get_storage_info(),
            "dotNetSdks": self.get_dotnet_sdks(),
            "platformSpecific": self.get_platform_specific(),
        }

    def get_os_info(self) -> Dict[str, Any]:
        return {
            "platform": self.platform_key.display_name,
            "version": _platform.platform(),
            "architecture": _platform.machine(),
        }

    def get_cpu_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "model": self.get_cpu_model(),
            "cores": psutil.cpu_count(logical=True) or os.cpu_count(),
        }

        try:
            freq = psutil.cpu_freq()
        except (psutil.Error, OSError, NotImplementedError):
            freq = None
        if freq is not None:
            mhz = freq.max or freq.current
            if mhz:
                info["frequency"] = f"{mhz:.0f} MHz"

        return info

    def get_memory_info(self) -> Dict[str, Any]:
        return {"capacityGB": round(psutil.virtual_memory().total / GIB, 2)}

    def get_storage_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {}

        try:
            info["freeSpaceGB"] = round(psutil.disk_usage(str(self.work_dir)).free / GIB, 2)
        except OSError:
            pass

        partition = self.find_partition()
        if partition is not None and partition.fstype:
            info["fileSystem"] = partition.fstype

        storage_type = self.get_storage_type()
        if storage_type:
            info["type"] = storage_type

        return info

    def find_partition(self) -> Optional[Any]:
        """
        Find the mounted partition holding the working directory.

        Returns:
            psutil partition record with the longest matching mountpoint
        """
        try:
            target = os.path.normcase(str(self.work_dir.resolve()))
            partitions = psutil.disk_partitions(all=True)
        except (OSError, psutil.Error):
            return None

        best = None
        for partition in partitions:
            mountpoint = os.path.normcase(partition.mountpoint)
            if not target.startswith(mountpoint):
                continue
            if best is None or len(mountpoint) > len(os.path.normcase(best.mountpoint)):
                best = partition
        return best

    def get_dotnet_sdks(self) -> List[str]:
        output = self.probe("dotnet --list-sdks")
        if not output:
            return []
        return [line.split(" ")[0] for line in output.splitlines() if line.strip()]

    def probe(self, command: str, timeout: float = PROBE_TIMEOUT) -> Optional[str]:
        """Run a probe command, returning stripped stdout or None."""
        output = run_command_output(command, timeout=timeout, verbose=self.verbose)
        if output is None:
            return None
        output = output.strip()
        return output or None

    def __repr__(self) -> str:
        """String representation of the collector."""
        return f"{self.__class__.__name__}(platform='{self.platform_key.value}')"


class GenericCollector(BaseSystemInfoCollector):
    """Collector for unrecognised platforms: common fields only."""

    def get_cpu_model(self) -> Optional[str]:
        return _platform.processor() or None

    def get_platform_specific(self) -> Dict[str, Any]:
        return {}
