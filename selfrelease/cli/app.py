from __future__ import annotations

from pathlib import Path

import typer

from selfrelease import __version__
from selfrelease.cli.context import build_context, build_orchestrator
from selfrelease.core.errors import ErrorCode
from selfrelease.core.result import Err
from selfrelease.output.console import Style

app = typer.Typer(
    add_completion=False,
    rich_markup_mode="rich",
    help="Build and release a new version of the CLI on GitHub.",
)


@app.command()
def release(
    phar: Path | None = typer.Option(
        None,
        "--phar",
        help="The path to a newly built artifact (skips the build)",
    ),
    repo: str | None = typer.Option(
        None,
        "--repo",
        help="The GitHub repository (owner/name); overrides application.github_repo",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Release config file (default: <repo-dir>/release.toml)",
    ),
    repo_dir: Path = typer.Option(
        Path("."),
        "--repo-dir",
        help="Root of the repository to release",
    ),
    debug: bool = typer.Option(False, "--debug", help="Print each host request."),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Build and release a new version."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=int(ErrorCode.OK))

    ctx = build_context(repo_dir=repo_dir, config_path=config, repo_override=repo, debug=debug)
    orchestrator = build_orchestrator(ctx)

    result = orchestrator.run(explicit_artifact=phar)
    if isinstance(result, Err):
        failure = result.error
        ctx.console.error(failure.error.message)
        if failure.error.hint:
            ctx.console.print(f"hint: {failure.error.hint}", Style.DIM)
        ctx.console.print(f"aborted at stage: {failure.stage}", Style.DIM)
        ctx.console.debug(f"failure category: {failure.error.category}")
        raise typer.Exit(code=int(ErrorCode.FAILURE))


def main() -> None:
    app()
