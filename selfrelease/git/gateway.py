"""Git gateway for the release pipeline.

``GitGateway`` runs the handful of git commands a release needs against one
repository directory. Every method returns a Result; a failing command
becomes a ``vcs_command_error`` carrying git's exit status and stderr.

Usage:
    git = GitGateway(Path("/path/to/cli"), SubprocessRunner())

    match git.status():
        case Ok(snapshot):
            print(snapshot.is_clean)
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from selfrelease.core.result import Err, Ok, Result
from selfrelease.platform.process import ProcessError, ProcessRunner
from selfrelease.release.errors import ReleaseError

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

__all__ = [
    "GitGateway",
    "GitStatusSnapshot",
    "StatusEntry",
]


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry in ``git status --porcelain``.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str


@dataclass(frozen=True, slots=True)
class GitStatusSnapshot:
    """Working-tree status, in the order git reported it."""

    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return len(self.entries) == 0

    def others_than(self, allowed: str) -> list[StatusEntry]:
        """Entries for any file other than ``allowed``."""
        return [e for e in self.entries if e.path != allowed]

    @classmethod
    def parse(cls, output: str) -> GitStatusSnapshot:
        """Parse ``git status --porcelain`` (v1) output."""
        entries: list[StatusEntry] = []
        for line in output.splitlines():
            if len(line) < 4:
                continue
            path = line[3:]
            # Renames are reported as "old -> new"; the new path is what changed.
            if " -> " in path:
                path = path.split(" -> ", 1)[1]
            entries.append(StatusEntry(xy=line[:2], path=path.strip('"')))
        return cls(entries=tuple(entries))


class GitGateway:
    """Release-oriented git operations on a single repository.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path, runner: ProcessRunner) -> None:
        self.path = path
        self._runner = runner

    def current_branch(self) -> Result[str, ReleaseError]:
        """Current branch name; ``HEAD`` when detached."""
        result = self._git(["rev-parse", "--abbrev-ref", "HEAD"])
        if isinstance(result, Err):
            return result
        return Ok(result.value.strip())

    def has_diff(self, ref_range: str) -> Result[bool, ReleaseError]:
        """True if ``ref_range`` (e.g. ``master...development``) changes any file."""
        result = self._git(["diff", "--name-only", ref_range])
        if isinstance(result, Err):
            return result
        return Ok(bool(result.value.strip()))

    def merge(self, branch: str) -> Result[None, ReleaseError]:
        result = self._git(["merge", branch])
        if isinstance(result, Err):
            return result
        return Ok(None)

    def status(self) -> Result[GitStatusSnapshot, ReleaseError]:
        result = self._git(["status", "--porcelain"])
        if isinstance(result, Err):
            return result
        return Ok(GitStatusSnapshot.parse(result.value))

    def commit_patch(self, paths: Sequence[str], message: str) -> Result[None, ReleaseError]:
        """Commit hunks from ``paths`` interactively.

        Runs attached to the terminal: the operator picks hunks and edits
        the prefilled ``message`` in their editor.
        """
        cmd = ["git", "commit", "--patch", *paths, "--message", message, "--edit"]
        result = self._runner.run_interactive(cmd, self.path)
        if isinstance(result, Err):
            return Err(_vcs_error("commit", result.error))
        return Ok(None)

    def log(
        self, from_ref: str, to_ref: str, exclude_pattern: str
    ) -> Result[list[str], ReleaseError]:
        """Commit subjects in ``from_ref...to_ref``, oldest first.

        Merge commits and subjects matching ``exclude_pattern`` (Perl regex,
        case-insensitive) are left out by git itself.
        """
        result = self._git(
            [
                "log",
                "--pretty=format:* %s",
                "--no-merges",
                "--invert-grep",
                f"--grep={exclude_pattern}",
                "--perl-regexp",
                "--regexp-ignore-case",
                "--reverse",
                f"{from_ref}...{to_ref}",
            ]
        )
        if isinstance(result, Err):
            return result

        subjects: list[str] = []
        for line in result.value.splitlines():
            line = line.strip()
            if not line:
                continue
            subjects.append(line[2:] if line.startswith("* ") else line)
        return Ok(subjects)

    def tag(self, tag_name: str, *, force: bool = True) -> Result[None, ReleaseError]:
        args = ["tag", "--force", tag_name] if force else ["tag", tag_name]
        result = self._git(args)
        if isinstance(result, Err):
            return result
        return Ok(None)

    def push(self, remote_url: str, ref: str, *, force: bool = False) -> Result[None, ReleaseError]:
        args = ["push", "--force", remote_url, ref] if force else ["push", remote_url, ref]
        result = self._git(args)
        if isinstance(result, Err):
            return result
        return Ok(None)

    def _git(self, args: list[str]) -> Result[str, ReleaseError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "pull", "push", "merge"}
            else _GIT_TIMEOUT_SECONDS
        )
        result = self._runner.run(["git", *args], self.path, timeout=timeout)
        if isinstance(result, Err):
            return Err(_vcs_error(command, result.error))
        return Ok(result.value)


def _vcs_error(command: str, error: ProcessError) -> ReleaseError:
    return ReleaseError(
        kind="vcs_command_error",
        message=f"git {command} failed (exit {error.returncode})",
        hint=error.stderr.strip() or error.stdout.strip() or None,
        returncode=error.returncode,
    )
