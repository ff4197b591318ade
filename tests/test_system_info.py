"""Tests for the system-info collectors."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from src.benchmark.platform import PlatformKey
from src.system import (
    GenericCollector,
    LinuxCollector,
    MacOSCollector,
    WindowsCollector,
    collect_system_info,
    create_collector,
)

PROBE = "src.system.base_collector.run_command_output"


@pytest.mark.parametrize(
    "platform,expected",
    [
        (PlatformKey.LINUX, LinuxCollector),
        (PlatformKey.MACOS, MacOSCollector),
        (PlatformKey.WINDOWS, WindowsCollector),
        (PlatformKey.UNKNOWN, GenericCollector),
    ],
)
def test_create_collector(platform, expected):
    assert type(create_collector(platform)) is expected


def test_collect_has_all_sections(tmp_path):
    with patch(PROBE, return_value=None):
        info = collect_system_info(PlatformKey.UNKNOWN, work_dir=tmp_path)

    assert set(info) == {"os", "cpu", "memory", "storage", "dotNetSdks", "platformSpecific"}
    assert info["os"]["platform"] == PlatformKey.UNKNOWN.display_name
    assert info["cpu"]["cores"] >= 1
    assert info["memory"]["capacityGB"] > 0
    assert info["storage"]["freeSpaceGB"] >= 0
    assert info["dotNetSdks"] == []
    assert info["platformSpecific"] == {}


def test_dotnet_sdks_are_parsed():
    output = "8.0.100 [/usr/share/dotnet/sdk]\n10.0.100 [/usr/share/dotnet/sdk]\n"

    with patch(PROBE, return_value=output) as probe:
        sdks = GenericCollector().get_dotnet_sdks()

    assert sdks == ["8.0.100", "10.0.100"]
    assert probe.call_args.args[0] == "dotnet --list-sdks"


def test_probe_strips_and_treats_blank_as_missing():
    collector = GenericCollector()

    with patch(PROBE, return_value="  value \n"):
        assert collector.probe("x") == "value"
    with patch(PROBE, return_value="\n"):
        assert collector.probe("x") is None


def test_find_partition_prefers_longest_mountpoint(tmp_path):
    partitions = [
        SimpleNamespace(mountpoint="/", fstype="ext4", device="/dev/sda1"),
        SimpleNamespace(mountpoint=str(tmp_path.resolve()), fstype="tmpfs", device="tmpfs"),
    ]

    with patch("src.system.base_collector.psutil.disk_partitions", return_value=partitions):
        partition = GenericCollector(work_dir=tmp_path).find_partition()

    assert partition.fstype == "tmpfs"


class TestLinuxCollector:
    """Tests for LinuxCollector parsing."""

    @pytest.fixture
    def collector(self, tmp_path):
        collector = LinuxCollector(work_dir=tmp_path)
        collector.proc_cpuinfo = tmp_path / "cpuinfo"
        collector.os_release = tmp_path / "os-release"
        collector.sys_block = tmp_path / "block"
        return collector

    def test_cpu_model(self, collector):
        collector.proc_cpuinfo.write_text(
            "processor\t: 0\nmodel name\t: AMD Ryzen 9 7950X 16-Core Processor\nflags\t: fpu\n"
        )

        assert collector.get_cpu_model() == "AMD Ryzen 9 7950X 16-Core Processor"

    def test_cpu_model_missing(self, collector):
        assert collector.get_cpu_model() is None

    def test_distribution(self, collector):
        collector.os_release.write_text('NAME="Ubuntu"\nPRETTY_NAME="Ubuntu 24.04 LTS"\n')

        info = collector.get_platform_specific()

        assert info["Distribution"] == "Ubuntu 24.04 LTS"
        assert "KernelVersion" in info

    @pytest.mark.parametrize("flag,expected", [("0", "SSD"), ("1", "HDD")])
    def test_storage_type_from_rotational_flag(self, collector, flag, expected):
        queue = collector.sys_block / "nvme0n1" / "queue"
        queue.mkdir(parents=True)
        (queue / "rotational").write_text(flag + "\n")
        partition = SimpleNamespace(mountpoint="/", fstype="ext4", device="/dev/nvme0n1")

        with patch.object(collector, "find_partition", return_value=partition):
            assert collector.get_storage_type() == expected

    def test_storage_type_unknown_for_virtual_device(self, collector):
        partition = SimpleNamespace(mountpoint="/", fstype="overlay", device="overlay")

        with patch.object(collector, "find_partition", return_value=partition):
            assert collector.get_storage_type() is None


class TestMacOSCollector:
    """Tests for MacOSCollector probes."""

    def test_cpu_model_from_sysctl(self):
        with patch(PROBE, return_value="Apple M3 Max\n") as probe:
            assert MacOSCollector().get_cpu_model() == "Apple M3 Max"

        assert "sysctl" in probe.call_args.args[0]


class TestWindowsCollector:
    """Tests for WindowsCollector probes."""

    def test_cpu_model_from_powershell(self):
        with patch(PROBE, return_value="Intel(R) Core(TM) i9-14900K\n") as probe:
            assert WindowsCollector().get_cpu_model() == "Intel(R) Core(TM) i9-14900K"

        assert probe.call_args.args[0].startswith("powershell")

    def test_failed_probe_leaves_field_empty(self):
        with patch(PROBE, return_value=None):
            assert WindowsCollector().get_cpu_model() is None

    @pytest.mark.parametrize("filesystem,expected", [("ReFS", True), ("NTFS", False), (None, False)])
    def test_dev_drive_detection(self, filesystem, expected):
        with patch(PROBE, return_value=filesystem):
            assert WindowsCollector().get_platform_specific()["IsDevDrive"] is expected
