from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from selfrelease.core.result import Err, Ok
from selfrelease.platform.process import MockRunner, ProcessError
from selfrelease.release.artifact import (
    ArtifactProvider,
    BuildFn,
    command_build,
    compute_checksum,
)
from selfrelease.release.model import Artifact


def _provider(
    runner: MockRunner, tmp_path: Path, build: BuildFn | None = None
) -> ArtifactProvider:
    return ArtifactProvider(
        runner=runner,
        build=build,
        version_command=("php", "{artifact}", "--version"),
        cwd=tmp_path,
    )


class TestExplicitArtifact:
    def test_missing_file(self, tmp_path: Path) -> None:
        provider = _provider(MockRunner(), tmp_path)
        result = provider.resolve(tmp_path / "platform.phar", "1.2.0", tmp_path / "out.phar")
        assert isinstance(result, Err)
        assert result.error.kind == "artifact_not_found"

    def test_reported_version_matches(self, tmp_path: Path) -> None:
        phar = tmp_path.resolve() / "platform.phar"
        phar.write_bytes(b"phar")
        runner = MockRunner()
        runner.set(["php"], "Platform.sh CLI 1.2.0\n")

        result = _provider(runner, tmp_path).resolve(phar, "1.2.0", tmp_path / "out.phar")

        assert result == Ok(Artifact(path=phar, reported_version="Platform.sh CLI 1.2.0"))
        assert runner.commands() == [("php", str(phar), "--version")]

    def test_reported_version_mismatch(self, tmp_path: Path) -> None:
        phar = tmp_path.resolve() / "platform.phar"
        phar.write_bytes(b"phar")
        runner = MockRunner()
        runner.set(["php"], "Platform.sh CLI 1.1.9\n")

        result = _provider(runner, tmp_path).resolve(phar, "1.2.0", tmp_path / "out.phar")

        assert isinstance(result, Err)
        assert result.error.kind == "version_mismatch"
        assert "1.1.9" in result.error.message

    def test_version_command_failure(self, tmp_path: Path) -> None:
        phar = tmp_path.resolve() / "platform.phar"
        phar.write_bytes(b"phar")
        runner = MockRunner()
        runner.set(["php"], ProcessError(("php",), 255, "", "PHP Fatal error"))

        result = _provider(runner, tmp_path).resolve(phar, "1.2.0", tmp_path / "out.phar")

        assert isinstance(result, Err)
        assert result.error.kind == "version_mismatch"
        assert result.error.hint == "PHP Fatal error"

    def test_relative_path_is_taken_from_invocation_dir(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        invocation = tmp_path.resolve() / "build"
        invocation.mkdir()
        repo = tmp_path.resolve() / "repo"
        repo.mkdir()
        (invocation / "platform.phar").write_bytes(b"phar")
        monkeypatch.chdir(invocation)
        runner = MockRunner()
        runner.set([str(invocation / "platform.phar")], "CLI 1.2.0\n")
        provider = ArtifactProvider(
            runner=runner,
            build=None,
            version_command=("{artifact}", "--version"),
            cwd=repo,
        )

        result = provider.resolve(Path("platform.phar"), "1.2.0", repo / "out.phar")

        assert result == Ok(
            Artifact(path=invocation / "platform.phar", reported_version="CLI 1.2.0")
        )
        assert runner.commands() == [(str(invocation / "platform.phar"), "--version")]


class TestBuild:
    def test_build_success(self, tmp_path: Path) -> None:
        built: list[Path] = []

        def build(output: Path) -> int:
            built.append(output)
            output.write_bytes(b"fresh")
            return 0

        out = tmp_path / "platform.phar"
        result = _provider(MockRunner(), tmp_path, build).resolve(None, "1.2.0", out)

        assert result == Ok(Artifact(path=out))
        assert built == [out]

    def test_build_failure(self, tmp_path: Path) -> None:
        result = _provider(MockRunner(), tmp_path, lambda output: 2).resolve(
            None, "1.2.0", tmp_path / "platform.phar"
        )
        assert isinstance(result, Err)
        assert result.error.kind == "build_failed"
        assert result.error.returncode == 2

    def test_no_build_configured(self, tmp_path: Path) -> None:
        result = _provider(MockRunner(), tmp_path).resolve(None, "1.2.0", tmp_path / "x.phar")
        assert isinstance(result, Err)
        assert result.error.kind == "build_failed"

    def test_command_build_substitutes_output(self, tmp_path: Path) -> None:
        runner = MockRunner()
        build = command_build(runner, ["bin/build", "--output", "{output}"], cwd=tmp_path)

        assert build(tmp_path / "platform.phar") == 0
        (call,) = runner.calls
        assert call.interactive
        assert call.cmd == ("bin/build", "--output", str(tmp_path / "platform.phar"))

    def test_command_build_exit_code(self, tmp_path: Path) -> None:
        runner = MockRunner()
        runner.set(["bin/build"], ProcessError(("bin/build",), 4, "", ""))
        build = command_build(runner, ["bin/build"], cwd=tmp_path)
        assert build(tmp_path / "platform.phar") == 4


class TestChecksum:
    def test_deterministic(self, tmp_path: Path) -> None:
        payload = bytes(range(256)) * 10_000
        path = tmp_path / "platform.phar"
        path.write_bytes(payload)

        first = compute_checksum(path)
        second = compute_checksum(path)

        assert first == second
        assert first == hashlib.sha256(payload).hexdigest()

    def test_known_value(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.phar"
        path.write_bytes(b"")
        assert (
            compute_checksum(path)
            == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        )

    def test_with_checksum_keeps_other_fields(self, tmp_path: Path) -> None:
        artifact = Artifact(path=tmp_path / "a.phar", reported_version="1.2.0")
        updated = artifact.with_checksum("abc")
        assert updated.checksum == "abc"
        assert updated.reported_version == "1.2.0"
        assert artifact.checksum is None
