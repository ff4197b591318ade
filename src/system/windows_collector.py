"""
Windows System-Info Collector.

Queries CIM through PowerShell for the CPU name and disk media type, and
detects Dev Drive (ReFS) volumes.
"""

import sys
from typing import Any, Dict, Optional

from ..benchmark.platform import PlatformKey
from .base_collector import BaseSystemInfoCollector

DEV_DRIVE_FILESYSTEM = "refs"


def _powershell(script: str) -> str:
    return f'powershell -NoProfile -Command "{script}"'


class WindowsCollector(BaseSystemInfoCollector):
    """Collector for Windows hosts."""

    platform_key = PlatformKey.WINDOWS

    def get_cpu_model(self) -> Optional[str]:
        return self.probe(_powershell("(Get-CimInstance Win32_Processor).Name"))

    def get_storage_type(self) -> Optional[str]:
        return self.probe(
            _powershell("(Get-PhysicalDisk | Where-Object { $_.DeviceId -eq 0 }).MediaType")
        )

    def get_volume_filesystem(self) -> Optional[str]:
        """File system of the working directory's volume (more reliable for ReFS)."""
        return self.probe(
            _powershell(f"(Get-Volume -FilePath '{self.work_dir}').FileSystemType")
        )

    def get_storage_info(self) -> Dict[str, Any]:
        info = super().get_storage_info()
        filesystem = self.get_volume_filesystem()
        if filesystem:
            info["fileSystem"] = filesystem
        return info

    def get_platform_specific(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {}

        filesystem = self.get_volume_filesystem() or ""
        info["IsDevDrive"] = filesystem.lower() == DEV_DRIVE_FILESYSTEM

        if hasattr(sys, "getwindowsversion"):
            info["WindowsBuild"] = sys.getwindowsversion().build

        return info
