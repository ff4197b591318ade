"""
Linux System-Info Collector.

Reads /proc and /sys for CPU model, distribution and disk rotation.
"""

import platform as _platform
import re
from pathlib import Path
from typing import Any, Dict, Optional

from ..benchmark.platform import PlatformKey
from .base_collector import BaseSystemInfoCollector

_MODEL_NAME = re.compile(r"^model name\s*:\s*(.+)$", re.MULTILINE)
_PRETTY_NAME = re.compile(r'^PRETTY_NAME="?([^"\n]+)"?$', re.MULTILINE)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ""


class LinuxCollector(BaseSystemInfoCollector):
    """Collector for Linux hosts."""

    platform_key = PlatformKey.LINUX

    proc_cpuinfo = Path("/proc/cpuinfo")
    os_release = Path("/etc/os-release")
    sys_block = Path("/sys/class/block")

    def get_cpu_model(self) -> Optional[str]:
        match = _MODEL_NAME.search(_read_text(self.proc_cpuinfo))
        return match.group(1).strip() if match else None

    def get_storage_type(self) -> Optional[str]:
        """SSD/HDD from the block device's rotational flag."""
        partition = self.find_partition()
        if partition is None or not partition.device.startswith("/dev/"):
            return None

        device = self.sys_block / Path(partition.device).name
        try:
            device = device.resolve()
        except OSError:
            return None

        # Partitions keep their queue settings on the parent disk
        for candidate in (device / "queue" / "rotational", device.parent / "queue" / "rotational"):
            value = _read_text(candidate).strip()
            if value in ("0", "1"):
                return "HDD" if value == "1" else "SSD"
        return None

    def get_platform_specific(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {}

        match = _PRETTY_NAME.search(_read_text(self.os_release))
        if match:
            info["Distribution"] = match.group(1)

        info["KernelVersion"] = _platform.release() or "Unknown"
        return info
