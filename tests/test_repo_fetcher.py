"""Tests for the external repository fetcher."""

from unittest.mock import patch

import pytest

from src.benchmark.models import CommandResult
from src.benchmark.process import CommandStartError
from src.benchmark.repo_fetcher import (
    CLONE_TIMEOUT,
    RepoFetcher,
    build_clone_command,
    repo_dir_name,
)

RUN = "src.benchmark.repo_fetcher.run_command"


@pytest.mark.parametrize(
    "url,expected",
    [
        ("https://github.com/dotnet/runtime.git", "runtime"),
        ("https://github.com/dotnet/aspnetcore", "aspnetcore"),
        ("https://github.com/owner/repo/", "repo"),
        ("git@github.com:owner/tool.git", "tool"),
        ("file:///srv/git/local-repo.git", "local-repo"),
    ],
)
def test_repo_dir_name(url, expected):
    assert repo_dir_name(url) == expected


def test_repo_dir_name_rejects_url_without_path():
    with pytest.raises(ValueError):
        repo_dir_name("https://example.com/")


@pytest.mark.parametrize("url", ["https://example.com/..", "https://example.com/owner/../", "git@host:.."])
def test_repo_dir_name_rejects_relative_segments(url):
    with pytest.raises(ValueError):
        repo_dir_name(url)


def test_build_clone_command_is_shallow_and_pinned(tmp_path):
    command = build_clone_command("https://x/y.git", tmp_path / "y", ref="v1.0")

    assert command.startswith("git clone --depth 1 --branch v1.0 ")
    assert "https://x/y.git" in command


def test_build_clone_command_without_ref(tmp_path):
    assert "--branch" not in build_clone_command("https://x/y.git", tmp_path / "y")


class TestRepoFetcher:
    """Tests for RepoFetcher."""

    def test_creates_cache_dir(self, tmp_path):
        cache = tmp_path / "nested" / ".cache"

        RepoFetcher(cache)

        assert cache.is_dir()

    def test_clones_into_cache(self, tmp_path):
        fetcher = RepoFetcher(tmp_path)

        with patch(RUN, return_value=CommandResult(success=True, exit_code=0)) as run:
            path = fetcher.fetch("https://github.com/owner/proj.git", "main")

        assert path == tmp_path / "proj"
        run.assert_called_once()
        assert run.call_args.kwargs["timeout"] == CLONE_TIMEOUT
        assert run.call_args.kwargs["work_dir"] == tmp_path
        assert "--branch main" in run.call_args.args[0]

    def test_cached_clone_is_reused_without_network(self, tmp_path):
        fetcher = RepoFetcher(tmp_path)
        url = "https://github.com/owner/proj.git"

        def fake_clone(command, **kwargs):
            (tmp_path / "proj").mkdir()
            return CommandResult(success=True, exit_code=0)

        with patch(RUN, side_effect=fake_clone) as run:
            first = fetcher.fetch(url)
            second = fetcher.fetch(url)

        assert first == second == tmp_path / "proj"
        assert run.call_count == 1

    def test_failed_clone_returns_none_and_removes_partial_clone(self, tmp_path):
        fetcher = RepoFetcher(tmp_path)

        def failing_clone(command, **kwargs):
            (tmp_path / "proj").mkdir()
            return CommandResult(success=False, exit_code=128, stderr="fatal: not found")

        with patch(RUN, side_effect=failing_clone):
            assert fetcher.fetch("https://github.com/owner/proj.git") is None

        assert not (tmp_path / "proj").exists()

    def test_timed_out_clone_returns_none(self, tmp_path):
        fetcher = RepoFetcher(tmp_path)

        with patch(RUN, return_value=CommandResult(success=False, timed_out=True)):
            assert fetcher.fetch("https://github.com/owner/proj.git") is None

    def test_git_not_startable_returns_none(self, tmp_path):
        fetcher = RepoFetcher(tmp_path)

        with patch(RUN, side_effect=CommandStartError("no shell")):
            assert fetcher.fetch("https://github.com/owner/proj.git") is None

    def test_unusable_url_returns_none_without_cloning(self, tmp_path, capsys):
        fetcher = RepoFetcher(tmp_path / "cache")

        with patch(RUN) as run:
            assert fetcher.fetch("https://github.com/") is None
            assert fetcher.fetch("https://github.com/..") is None

        run.assert_not_called()
        assert "Cannot derive a directory name" in capsys.readouterr().out
