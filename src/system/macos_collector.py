"""
macOS System-Info Collector.

Uses sysctl for the chip name and reports Apple Silicon hosts.
"""

import platform as _platform
from typing import Any, Dict, Optional

from ..benchmark.platform import PlatformKey
from .base_collector import BaseSystemInfoCollector


class MacOSCollector(BaseSystemInfoCollector):
    """Collector for macOS hosts."""

    platform_key = PlatformKey.MACOS

    def get_cpu_model(self) -> Optional[str]:
        return self.probe("sysctl -n machdep.cpu.brand_string", timeout=5)

    def get_os_info(self) -> Dict[str, Any]:
        info = super().get_os_info()
        release = _platform.mac_ver()[0]
        if release:
            info["version"] = f"macOS {release}"
        return info

    def get_platform_specific(self) -> Dict[str, Any]:
        return {
            "IsAppleSilicon": _platform.machine() == "arm64",
            "ChipModel": self.get_cpu_model() or "Unknown",
        }
