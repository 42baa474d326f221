"""Tests for git/gateway.py."""

from __future__ import annotations

from pathlib import Path

import pytest

from selfrelease.core.result import Err, Ok
from selfrelease.git.gateway import GitGateway, GitStatusSnapshot, StatusEntry
from selfrelease.platform.process import MockRunner, ProcessError


@pytest.fixture
def runner() -> MockRunner:
    return MockRunner()


@pytest.fixture
def git(tmp_path: Path, runner: MockRunner) -> GitGateway:
    return GitGateway(tmp_path, runner)


# =============================================================================
# GitStatusSnapshot Tests
# =============================================================================


class TestGitStatusSnapshot:
    def test_parse_keeps_leading_space_codes(self) -> None:
        snapshot = GitStatusSnapshot.parse(" M config.toml\n?? notes.txt\nA  src/new.py\n")
        assert snapshot.entries == (
            StatusEntry(xy=" M", path="config.toml"),
            StatusEntry(xy="??", path="notes.txt"),
            StatusEntry(xy="A ", path="src/new.py"),
        )

    def test_parse_rename_uses_new_path(self) -> None:
        snapshot = GitStatusSnapshot.parse("R  old.py -> new.py\n")
        assert snapshot.entries == (StatusEntry(xy="R ", path="new.py"),)

    def test_parse_empty(self) -> None:
        assert GitStatusSnapshot.parse("").is_clean

    def test_others_than(self) -> None:
        snapshot = GitStatusSnapshot.parse(" M config.toml\n M src/app.py\n")
        assert [e.path for e in snapshot.others_than("config.toml")] == ["src/app.py"]


# =============================================================================
# GitGateway Tests
# =============================================================================


class TestQueries:
    def test_current_branch(self, git: GitGateway, runner: MockRunner) -> None:
        runner.set(["git", "rev-parse"], "master\n")
        assert git.current_branch() == Ok("master")
        assert runner.commands() == [("git", "rev-parse", "--abbrev-ref", "HEAD")]

    def test_commands_run_in_repo_dir(
        self, git: GitGateway, runner: MockRunner, tmp_path: Path
    ) -> None:
        git.current_branch()
        assert runner.calls[0].cwd == tmp_path

    def test_has_diff(self, git: GitGateway, runner: MockRunner) -> None:
        runner.set(["git", "diff"], "src/app.py\n")
        assert git.has_diff("master...development") == Ok(True)
        assert runner.commands() == [("git", "diff", "--name-only", "master...development")]

    def test_has_no_diff(self, git: GitGateway, runner: MockRunner) -> None:
        runner.set(["git", "diff"], "\n")
        assert git.has_diff("master...development") == Ok(False)

    def test_status(self, git: GitGateway, runner: MockRunner) -> None:
        runner.set(["git", "status"], " M release.toml\n")
        result = git.status()
        assert isinstance(result, Ok)
        assert result.value.entries == (StatusEntry(xy=" M", path="release.toml"),)

    def test_log_strips_bullets_and_passes_filters(
        self, git: GitGateway, runner: MockRunner
    ) -> None:
        runner.set(["git", "log"], "* Fix bug\n* Improve docs")

        result = git.log("v1.1.0", "HEAD", "(Release v|\\[skip changelog\\])")

        assert result == Ok(["Fix bug", "Improve docs"])
        (cmd,) = runner.commands()
        assert "--pretty=format:* %s" in cmd
        assert "--no-merges" in cmd
        assert "--invert-grep" in cmd
        assert "--grep=(Release v|\\[skip changelog\\])" in cmd
        assert "--perl-regexp" in cmd
        assert "--regexp-ignore-case" in cmd
        assert "--reverse" in cmd
        assert cmd[-1] == "v1.1.0...HEAD"


class TestMutations:
    def test_merge(self, git: GitGateway, runner: MockRunner) -> None:
        assert git.merge("development") == Ok(None)
        assert runner.commands() == [("git", "merge", "development")]

    def test_tag_force_by_default(self, git: GitGateway, runner: MockRunner) -> None:
        git.tag("v1.2.0")
        assert runner.commands() == [("git", "tag", "--force", "v1.2.0")]

    def test_push(self, git: GitGateway, runner: MockRunner) -> None:
        git.push("git@github.com:a/b.git", "HEAD:master")
        git.push("git@github.com:a/b.git", "v1.2.0", force=True)
        assert runner.commands() == [
            ("git", "push", "git@github.com:a/b.git", "HEAD:master"),
            ("git", "push", "--force", "git@github.com:a/b.git", "v1.2.0"),
        ]

    def test_commit_patch_is_interactive(self, git: GitGateway, runner: MockRunner) -> None:
        assert git.commit_patch(["release.toml", "dist/manifest.json"], "Release v1.2.0") == Ok(
            None
        )
        (call,) = runner.calls
        assert call.interactive
        assert call.cmd == (
            "git",
            "commit",
            "--patch",
            "release.toml",
            "dist/manifest.json",
            "--message",
            "Release v1.2.0",
            "--edit",
        )


class TestFailures:
    def test_failure_is_vcs_command_error(self, git: GitGateway, runner: MockRunner) -> None:
        runner.set(
            ["git", "push"],
            ProcessError(("git", "push"), 128, "", "fatal: Authentication failed\n"),
        )

        result = git.push("git@github.com:a/b.git", "HEAD:master")

        assert isinstance(result, Err)
        assert result.error.kind == "vcs_command_error"
        assert result.error.returncode == 128
        assert result.error.hint == "fatal: Authentication failed"

    def test_commit_failure(self, git: GitGateway, runner: MockRunner) -> None:
        runner.set(["git", "commit"], ProcessError(("git", "commit"), 1, "", ""))
        result = git.commit_patch(["release.toml"], "Release v1.2.0")
        assert isinstance(result, Err)
        assert result.error.kind == "vcs_command_error"
        assert result.error.returncode == 1
