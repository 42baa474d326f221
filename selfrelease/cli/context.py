from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import typer

from selfrelease.core.config import DEFAULT_CONFIG_NAME, Config, load_config
from selfrelease.core.errors import ErrorCode
from selfrelease.core.result import Err
from selfrelease.git.gateway import GitGateway
from selfrelease.output.console import (
    Confirmer,
    ConsoleProtocol,
    RichConfirmer,
    RichConsole,
    Style,
)
from selfrelease.platform.process import ProcessRunner, SubprocessRunner
from selfrelease.release.artifact import ArtifactProvider, command_build
from selfrelease.release.host import GitHubReleaseHost, ReleaseHostClient
from selfrelease.release.model import ReleaseContext
from selfrelease.release.orchestrator import ReleaseOrchestrator


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    repo: str
    repo_dir: Path
    console: ConsoleProtocol
    confirmer: Confirmer
    runner: ProcessRunner


def build_context(
    *,
    repo_dir: Path,
    config_path: Path | None,
    repo_override: str | None,
    debug: bool,
) -> CLIContext:
    console = RichConsole(debug=debug)
    root = repo_dir.expanduser().resolve()

    config_result = load_config(config_path or root / DEFAULT_CONFIG_NAME, repo_root=root)
    if isinstance(config_result, Err):
        console.error(config_result.error.message)
        raise typer.Exit(code=int(ErrorCode.FAILURE))
    config = config_result.value

    repo = (repo_override or "").strip() or config.application.github_repo
    if not repo or "/" not in repo:
        console.error("No GitHub repository configured")
        console.print("hint: set application.github_repo or pass --repo owner/name", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    return CLIContext(
        config=config,
        repo=repo,
        repo_dir=root,
        console=console,
        confirmer=RichConfirmer(console),
        runner=SubprocessRunner(),
    )


def build_orchestrator(
    ctx: CLIContext, *, env: Mapping[str, str] | None = None
) -> ReleaseOrchestrator:
    settings = ctx.config.release
    build = (
        command_build(ctx.runner, settings.build_command, cwd=ctx.repo_dir)
        if settings.build_command
        else None
    )

    def host_factory(context: ReleaseContext) -> ReleaseHostClient:
        return GitHubReleaseHost(
            api_url=ctx.config.host.api_url,
            repo=context.repo_coordinate,
            token=context.auth_token,
            console=ctx.console,
        )

    return ReleaseOrchestrator(
        config=ctx.config,
        repo=ctx.repo,
        repo_dir=ctx.repo_dir,
        git=GitGateway(ctx.repo_dir, ctx.runner),
        artifacts=ArtifactProvider(
            runner=ctx.runner,
            build=build,
            version_command=settings.version_command,
            cwd=ctx.repo_dir,
        ),
        host_factory=host_factory,
        confirmer=ctx.confirmer,
        console=ctx.console,
        env=os.environ if env is None else env,
    )
