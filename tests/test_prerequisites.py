"""Tests for prerequisite checking."""

from unittest.mock import patch

import pytest

from src.benchmark.models import Prerequisite
from src.benchmark.platform import PlatformKey
from src.benchmark.prerequisites import PrerequisiteChecker, extract_version, parse_version

PROBE = "src.benchmark.prerequisites.run_command_output"


class TestVersionParsing:
    """Tests for version extraction and comparison."""

    @pytest.mark.parametrize(
        "output,expected",
        [
            ("10.0.100", (10, 0, 100)),
            ("git version 2.43.0\n", (2, 43, 0)),
            ("node v20.11", (20, 11)),
            ("Python 3.12.1 (main)", (3, 12, 1)),
            ("1.2.3.4", (1, 2, 3)),
        ],
    )
    def test_extract_first_version(self, output, expected):
        assert extract_version(output) == expected

    def test_extract_without_version(self):
        assert extract_version("no digits here") is None
        assert extract_version("") is None

    def test_parse_version(self):
        assert parse_version("8.0") == (8, 0)
        assert parse_version("v1.2.3") == (1, 2, 3)
        assert parse_version("latest") is None
        assert parse_version("8") is None

    def test_field_by_field_comparison(self):
        assert parse_version("10.0.100") > parse_version("9.9.999")
        assert parse_version("2.10") > parse_version("2.9")


class TestPrerequisiteChecker:
    """Tests for PrerequisiteChecker."""

    @pytest.fixture
    def checker(self):
        return PrerequisiteChecker(platform=PlatformKey.LINUX)

    def test_empty_list_passes(self, checker):
        assert checker.check_all([])

    def test_present_tool_without_min_version(self, checker):
        with patch(PROBE, return_value="anything") as probe:
            assert checker.check(Prerequisite(command="make --version"))

        probe.assert_called_once()
        assert probe.call_args.kwargs["timeout"] == 10

    def test_missing_tool_fails(self, checker):
        with patch(PROBE, return_value=None):
            assert not checker.check(Prerequisite(command="missing-tool --version"))

    def test_version_below_minimum_fails(self, checker):
        with patch(PROBE, return_value="9.0.100"):
            assert not checker.check(Prerequisite(command="dotnet --version", min_version="10.0"))

    def test_version_at_or_above_minimum_passes(self, checker):
        with patch(PROBE, return_value="10.0.100"):
            assert checker.check(Prerequisite(command="dotnet --version", min_version="10.0"))

    def test_unparseable_output_passes(self, checker):
        """Presence is proven by a zero exit even if no version is printed."""
        with patch(PROBE, return_value="tool ok"):
            assert checker.check(Prerequisite(command="tool", min_version="1.0"))

    def test_unresolved_platform_command_is_not_applicable(self, checker):
        prereq = Prerequisite(command={"windows": "where cl"})

        with patch(PROBE) as probe:
            assert checker.check(prereq)

        probe.assert_not_called()

    def test_platform_variant_is_resolved(self, checker):
        prereq = Prerequisite(command={"linux": "gcc --version", "": "cc --version"})

        with patch(PROBE, return_value="gcc 13.2.0") as probe:
            assert checker.check(prereq)

        assert probe.call_args.args[0] == "gcc --version"

    def test_any_failure_fails_all_but_every_prerequisite_runs(self, checker):
        prereqs = [
            Prerequisite(command="a"),
            Prerequisite(command="b"),
            Prerequisite(command="c"),
        ]

        with patch(PROBE, side_effect=["ok", None, "ok"]) as probe:
            assert not checker.check_all(prereqs)

        assert probe.call_count == 3

    def test_unparseable_min_version_warns_when_verbose(self, capsys):
        checker = PrerequisiteChecker(platform=PlatformKey.LINUX, verbose=True)
        prereq = Prerequisite(command="dotnet --version", min_version="8.0.100-rc.1")

        with patch(PROBE, return_value="7.0.100"):
            assert checker.check(prereq)

        assert "cannot parse minVersion '8.0.100-rc.1'" in capsys.readouterr().out

    def test_unparseable_min_version_is_quiet_by_default(self, checker, capsys):
        prereq = Prerequisite(command="dotnet --version", min_version="latest")

        with patch(PROBE, return_value="7.0.100"):
            assert checker.check(prereq)

        assert "minVersion" not in capsys.readouterr().out
