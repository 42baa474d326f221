"""Tests for selfrelease.platform.process module."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from selfrelease.core.result import Err, Ok
from selfrelease.platform.process import (
    MockRunner,
    ProcessError,
    ProcessRunner,
    SubprocessRunner,
    run,
    run_interactive,
)


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(
            command=("git", "status"),
            returncode=1,
            stdout="",
            stderr="fatal: not a git repository",
        )
        assert str(error) == "git status failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(("git", "push", "--force", "origin", "v1.2.0"), 128, "", "")
        assert str(error) == "git push --force ... failed (exit 128)"


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "print('hello')"], cwd=tmp_path)
        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad'); sys.exit(3)"],
            cwd=tmp_path,
        )
        assert isinstance(result, Err)
        assert result.error.returncode == 3
        assert "bad" in result.error.stderr

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == -1

    def test_timeout(self, tmp_path: Path) -> None:
        result = run([sys.executable, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)
        assert isinstance(result, Err)
        assert "timed out" in result.error.stderr


class TestRunInteractive:
    def test_success(self, tmp_path: Path) -> None:
        assert run_interactive([sys.executable, "-c", "pass"], cwd=tmp_path) == Ok(None)

    def test_failure_carries_exit_code(self, tmp_path: Path) -> None:
        result = run_interactive([sys.executable, "-c", "raise SystemExit(5)"], cwd=tmp_path)
        assert isinstance(result, Err)
        assert result.error.returncode == 5


class TestMockRunner:
    def test_is_a_process_runner(self) -> None:
        assert isinstance(MockRunner(), ProcessRunner)
        assert isinstance(SubprocessRunner(), ProcessRunner)

    def test_unregistered_commands_succeed_empty(self, tmp_path: Path) -> None:
        runner = MockRunner()
        assert runner.run(["git", "tag", "v1"], tmp_path) == Ok("")
        assert runner.commands() == [("git", "tag", "v1")]

    def test_longest_prefix_wins(self, tmp_path: Path) -> None:
        runner = MockRunner()
        runner.set(["git"], "generic")
        runner.set(["git", "status"], "specific")
        assert runner.run(["git", "status", "--porcelain"], tmp_path) == Ok("specific")
        assert runner.run(["git", "log"], tmp_path) == Ok("generic")

    def test_error_response(self, tmp_path: Path) -> None:
        runner = MockRunner()
        error = ProcessError(("git", "push"), 128, "", "denied")
        runner.set(["git", "push"], error)
        assert runner.run(["git", "push", "origin"], tmp_path) == Err(error)

    def test_callable_response(self, tmp_path: Path) -> None:
        runner = MockRunner()
        runner.set(["echo"], lambda cmd: Ok(" ".join(cmd[1:])))
        assert runner.run(["echo", "a", "b"], tmp_path) == Ok("a b")

    def test_interactive_calls_are_flagged(self, tmp_path: Path) -> None:
        runner = MockRunner()
        runner.set(["git", "commit"], ProcessError(("git", "commit"), 1, "", ""))

        result = runner.run_interactive(["git", "commit", "--patch"], tmp_path)

        assert isinstance(result, Err)
        (call,) = runner.find("git", "commit")
        assert call.interactive is True
        assert call.cwd == tmp_path


@pytest.mark.parametrize("cmd", [["git"], ["git", "status", "--porcelain"]])
def test_find_matches_prefix(tmp_path: Path, cmd: list[str]) -> None:
    runner = MockRunner()
    runner.run(cmd, tmp_path)
    assert len(runner.find("git")) == 1
