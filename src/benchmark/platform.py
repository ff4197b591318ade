"""
Platform detection and command resolution.

Manifest commands are either plain strings (run everywhere) or maps keyed by
platform ("windows", "linux", "macos") with "" as a catch-all fallback.
"""

import platform as _platform
from enum import Enum
from typing import Optional

from .models import CommandSpec

FALLBACK_KEY = ""


class PlatformKey(str, Enum):
    """Operating system tag used to select commands and system-info strategies."""

    WINDOWS = "windows"
    MACOS = "macos"
    LINUX = "linux"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        return {
            PlatformKey.WINDOWS: "Windows",
            PlatformKey.MACOS: "macOS",
            PlatformKey.LINUX: "Linux",
        }.get(self, "Unknown")


def detect_platform(system: Optional[str] = None) -> PlatformKey:
    """
    Probe the running operating system.

    Args:
        system: Value of platform.system() to classify (probed when omitted)

    Returns:
        Matching PlatformKey, UNKNOWN for anything unrecognised
    """
    system = (system if system is not None else _platform.system()).lower()

    if system == "windows" or system.startswith(("cygwin", "msys", "mingw")):
        return PlatformKey.WINDOWS
    if system == "darwin":
        return PlatformKey.MACOS
    if system == "linux":
        return PlatformKey.LINUX
    return PlatformKey.UNKNOWN


def resolve_command(spec: Optional[CommandSpec], platform: PlatformKey) -> Optional[str]:
    """
    Resolve a command specification for a platform.

    Args:
        spec: Literal command or platform-keyed command map
        platform: Platform to resolve for

    Returns:
        Command string, or None when the map has neither the platform key
        nor the "" fallback (the phase does not apply on this platform)
    """
    if spec is None:
        return None

    if isinstance(spec, str):
        return spec

    key = platform.value if isinstance(platform, PlatformKey) else str(platform)
    if key in spec:
        return spec[key]
    if FALLBACK_KEY in spec:
        return spec[FALLBACK_KEY]
    return None
