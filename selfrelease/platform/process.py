"""Subprocess execution with Result-based error handling.

Provides the ``ProcessRunner`` capability used by the git gateway and the
artifact provider:

- SubprocessRunner: real implementation using subprocess
- MockRunner: records commands and returns canned output, for tests

Usage:
    runner = SubprocessRunner()
    match runner.run(["git", "status", "--porcelain"], cwd=repo_dir):
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from selfrelease.core.result import Err, Ok, Result

__all__ = [
    "MockRunner",
    "ProcessError",
    "ProcessRunner",
    "RecordedCall",
    "SubprocessRunner",
    "run",
    "run_interactive",
]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it never ran).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"


def run(
    cmd: Sequence[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).

    Returns:
        Ok(stdout) on success, Err(ProcessError) on failure.
    """
    try:
        proc = subprocess.run(
            list(cmd),
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)


def run_interactive(
    cmd: Sequence[str],
    cwd: Path,
    env: dict[str, str] | None = None,
) -> Result[None, ProcessError]:
    """Execute a command attached to the terminal.

    Output streams straight to the user and stdin stays connected, so
    editors and ``--patch`` prompts work. Nothing is captured.

    Returns:
        Ok(None) on success, Err(ProcessError) on failure.
    """
    try:
        proc = subprocess.run(list(cmd), cwd=str(cwd), env=env, check=False)
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    if proc.returncode != 0:
        return Err(
            ProcessError(command=tuple(cmd), returncode=proc.returncode, stdout="", stderr="")
        )

    return Ok(None)


@runtime_checkable
class ProcessRunner(Protocol):
    """Capability for running external commands.

    Injected wherever the release shells out, so tests never invoke real
    git or build binaries.
    """

    def run(
        self, cmd: Sequence[str], cwd: Path, *, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        """Run a command capturing output."""
        ...

    def run_interactive(self, cmd: Sequence[str], cwd: Path) -> Result[None, ProcessError]:
        """Run a command attached to the terminal."""
        ...


class SubprocessRunner:
    """ProcessRunner backed by :func:`run` and :func:`run_interactive`."""

    def run(
        self, cmd: Sequence[str], cwd: Path, *, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        return run(cmd, cwd, timeout=timeout)

    def run_interactive(self, cmd: Sequence[str], cwd: Path) -> Result[None, ProcessError]:
        return run_interactive(cmd, cwd)


@dataclass(frozen=True, slots=True)
class RecordedCall:
    """A command seen by MockRunner."""

    cmd: tuple[str, ...]
    cwd: Path
    interactive: bool = False


MockResponse = str | ProcessError | Callable[[tuple[str, ...]], Result[str, ProcessError]]


def _empty_calls() -> list[RecordedCall]:
    return []


def _empty_responses() -> dict[tuple[str, ...], MockResponse]:
    return {}


@dataclass
class MockRunner:
    """ProcessRunner that records commands and replays canned responses.

    Responses are registered by command prefix; the longest matching prefix
    wins. Unregistered commands succeed with empty output.

    Usage:
        runner = MockRunner()
        runner.set(["git", "rev-parse"], "master\\n")
        runner.set(["git", "push"], ProcessError(("git", "push"), 128, "", "denied"))
    """

    calls: list[RecordedCall] = field(default_factory=_empty_calls)
    _responses: dict[tuple[str, ...], MockResponse] = field(default_factory=_empty_responses)

    def set(self, prefix: Sequence[str], response: MockResponse) -> None:
        """Register the response for commands starting with ``prefix``."""
        self._responses[tuple(prefix)] = response

    def run(
        self, cmd: Sequence[str], cwd: Path, *, timeout: float | None = None
    ) -> Result[str, ProcessError]:
        self.calls.append(RecordedCall(cmd=tuple(cmd), cwd=cwd))
        return self._respond(tuple(cmd))

    def run_interactive(self, cmd: Sequence[str], cwd: Path) -> Result[None, ProcessError]:
        self.calls.append(RecordedCall(cmd=tuple(cmd), cwd=cwd, interactive=True))
        result = self._respond(tuple(cmd))
        if isinstance(result, Err):
            return result
        return Ok(None)

    def _respond(self, cmd: tuple[str, ...]) -> Result[str, ProcessError]:
        best: tuple[str, ...] | None = None
        for prefix in self._responses:
            if cmd[: len(prefix)] == prefix and (best is None or len(prefix) > len(best)):
                best = prefix

        if best is None:
            return Ok("")

        response = self._responses[best]
        if isinstance(response, ProcessError):
            return Err(response)
        if isinstance(response, str):
            return Ok(response)
        return response(cmd)

    # Test helper methods

    def commands(self) -> list[tuple[str, ...]]:
        """All recorded commands, in order."""
        return [c.cmd for c in self.calls]

    def find(self, *prefix: str) -> list[RecordedCall]:
        """Recorded calls whose command starts with ``prefix``."""
        return [c for c in self.calls if c.cmd[: len(prefix)] == prefix]
