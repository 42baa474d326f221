"""Build or validate the artifact attached to a release."""

from __future__ import annotations

import hashlib
from collections.abc import Callable, Sequence
from pathlib import Path

from selfrelease.core.result import Err, Ok, Result
from selfrelease.platform.process import ProcessRunner
from selfrelease.release.errors import ReleaseError
from selfrelease.release.model import Artifact

BuildFn = Callable[[Path], int]


def compute_checksum(path: Path) -> str:
    """SHA-256 hex digest of the file at ``path``."""
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def command_build(runner: ProcessRunner, command: Sequence[str], *, cwd: Path) -> BuildFn:
    """Wrap a configured build command line as a ``BuildFn``.

    ``{output}`` in any argument is replaced with the artifact path. The
    build runs attached to the terminal so its progress stays visible.
    """

    def build(output: Path) -> int:
        cmd = [arg.replace("{output}", str(output)) for arg in command]
        result = runner.run_interactive(cmd, cwd)
        if isinstance(result, Err):
            return result.error.returncode or 1
        return 0

    return build


class ArtifactProvider:
    """Produces a fresh artifact or vets an existing one.

    Args:
        runner: Used to ask an existing artifact for its version.
        build: Build callable; ``None`` when no build command is configured.
        version_command: Command line printing the artifact's version;
            ``{artifact}`` is replaced with the artifact path.
        cwd: Working directory for the version command.
    """

    def __init__(
        self,
        *,
        runner: ProcessRunner,
        build: BuildFn | None,
        version_command: Sequence[str],
        cwd: Path,
    ) -> None:
        self._runner = runner
        self._build = build
        self._version_command = tuple(version_command)
        self._cwd = cwd

    def resolve(
        self,
        explicit_path: Path | None,
        expected_version: str,
        output_path: Path,
    ) -> Result[Artifact, ReleaseError]:
        if explicit_path is not None:
            return self._validate(explicit_path, expected_version)
        return self._build_fresh(output_path)

    def _validate(self, path: Path, expected_version: str) -> Result[Artifact, ReleaseError]:
        # Relative to the invocation directory, not the repository.
        path = path.expanduser().resolve()
        if not path.exists():
            return Err(
                ReleaseError(
                    kind="artifact_not_found",
                    message=f"File not found: {path}",
                )
            )

        cmd = [arg.replace("{artifact}", str(path)) for arg in self._version_command]
        result = self._runner.run(cmd, self._cwd)
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="version_mismatch",
                    message=f"The file {path} could not report its version",
                    hint=result.error.stderr.strip() or None,
                    returncode=result.error.returncode,
                )
            )

        reported = result.value.strip()
        if expected_version not in reported:
            return Err(
                ReleaseError(
                    kind="version_mismatch",
                    message=f'The file {path} reports a different version: "{reported}"',
                    hint=f"expected {expected_version}",
                )
            )

        return Ok(Artifact(path=path, reported_version=reported))

    def _build_fresh(self, output_path: Path) -> Result[Artifact, ReleaseError]:
        if self._build is None:
            return Err(
                ReleaseError(
                    kind="build_failed",
                    message="No build command configured",
                    hint="set release.build_command or pass --phar",
                )
            )

        code = self._build(output_path)
        if code != 0:
            return Err(
                ReleaseError(
                    kind="build_failed",
                    message="The build failed",
                    returncode=code,
                )
            )

        return Ok(Artifact(path=output_path))
