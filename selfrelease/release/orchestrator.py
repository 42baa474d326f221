"""End-to-end release workflow.

``ReleaseOrchestrator`` lays the release out as an ordered list of stages
(see :meth:`ReleaseOrchestrator.stages`) and runs them with
:func:`run_pipeline`. Every stage is a gate: it either hands the next stage
an updated :class:`ReleaseState` or aborts the run with a ``ReleaseError``.

Nothing is rolled back. A run that fails after the push leaves the pushed
tag in place; one that fails after the draft was created leaves the draft
on the host for manual cleanup.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import replace
from pathlib import Path

from selfrelease.core.config import Config
from selfrelease.core.result import Err, Ok, Result
from selfrelease.git.gateway import GitGateway
from selfrelease.output.console import Confirmer, ConsoleProtocol, Style
from selfrelease.release.artifact import ArtifactProvider, compute_checksum
from selfrelease.release.changelog import ChangelogGenerator
from selfrelease.release.errors import ReleaseError
from selfrelease.release.host import ReleaseHostClient, encode_repo
from selfrelease.release.model import ReleaseContext, ReleaseState, tag_for_version
from selfrelease.release.notes import indent_body, latest_release_url, render_release_body
from selfrelease.release.pipeline import Stage, StageFailure, run_pipeline

HostFactory = Callable[[ReleaseContext], ReleaseHostClient]

StageResult = Result[ReleaseState, ReleaseError]

_AFTER_PUSH = frozenset({"release-body", "body-confirm", "create-draft"})
_AFTER_DRAFT = frozenset({"upload", "publish"})


class ReleaseOrchestrator:
    """Runs the release gates in order against injected collaborators.

    Args:
        config: Release configuration (version, branches, host URLs).
        repo: Repository coordinate ``owner/name`` on the release host.
        repo_dir: Root of the repository being released.
        git: Git gateway bound to ``repo_dir``.
        artifacts: Builds or validates the release artifact.
        host_factory: Creates the host client once the token is known.
        confirmer: Answers the operator questions.
        console: Progress and error output.
        env: Environment the token is read from.
    """

    def __init__(
        self,
        *,
        config: Config,
        repo: str,
        repo_dir: Path,
        git: GitGateway,
        artifacts: ArtifactProvider,
        host_factory: HostFactory,
        confirmer: Confirmer,
        console: ConsoleProtocol,
        env: Mapping[str, str],
    ) -> None:
        self._config = config
        self._repo = repo
        self._repo_dir = repo_dir
        self._git = git
        self._artifacts = artifacts
        self._host_factory = host_factory
        self._confirmer = confirmer
        self._console = console
        self._env = env
        self._changelog = ChangelogGenerator(git)
        self._host: ReleaseHostClient | None = None
        self._branch_pushed = False

    def stages(self) -> list[Stage[ReleaseState]]:
        return [
            Stage("branch-check", self._check_branch),
            Stage("sync", self._sync_integration_branch),
            Stage("clean-tree", self._check_clean_tree),
            Stage("token", self._check_token),
            Stage("version-confirm", self._confirm_version),
            Stage("existence", self._check_release_absent),
            Stage("artifact", self._resolve_artifact),
            Stage("commit", self._commit_changes),
            Stage("changelog", self._generate_changelog),
            Stage("tag", self._create_tag),
            Stage("push-confirm", self._confirm_push),
            Stage("push", self._push),
            Stage("release-body", self._assemble_body),
            Stage("body-confirm", self._confirm_body),
            Stage("create-draft", self._create_draft),
            Stage("upload", self._upload_asset),
            Stage("publish", self._publish),
        ]

    def run(self, *, explicit_artifact: Path | None = None) -> Result[ReleaseState, StageFailure]:
        self._branch_pushed = False
        initial = ReleaseState(
            target_version=self._config.application.version,
            explicit_artifact=explicit_artifact,
        )
        result = run_pipeline(
            initial_state=initial,
            stages=self.stages(),
            on_stage=lambda name: self._console.debug(f"stage: {name}"),
        )
        if isinstance(result, Err):
            self._report_partial_state(result.error)
            return result

        context = result.value.require_context()
        self._console.newline()
        self._console.success("Release successfully published")
        self._console.print(latest_release_url(context.repo_web_url))
        return result

    # Stages

    def _check_branch(self, state: ReleaseState) -> StageResult:
        branch = self._git.current_branch()
        if isinstance(branch, Err):
            return branch

        expected = self._config.release.branch
        if branch.value != expected:
            return Err(
                ReleaseError(
                    kind="wrong_branch",
                    message=f"You must be on the {expected} branch to make a release.",
                    hint=f"current branch: {branch.value}",
                )
            )
        return Ok(state)

    def _sync_integration_branch(self, state: ReleaseState) -> StageResult:
        settings = self._config.release
        diverged = self._git.has_diff(f"{settings.branch}...{settings.integration_branch}")
        if isinstance(diverged, Err):
            return diverged

        if diverged.value and self._confirmer.confirm(
            f"Merge changes from {settings.integration_branch}?"
        ):
            merged = self._git.merge(settings.integration_branch)
            if isinstance(merged, Err):
                return merged
        return Ok(state)

    def _check_clean_tree(self, state: ReleaseState) -> StageResult:
        status = self._git.status()
        if isinstance(status, Err):
            return status

        others = status.value.others_than(self._config.release.allowed_dirty_file)
        if others:
            return Err(
                ReleaseError(
                    kind="dirty_tree",
                    message="There are uncommitted changes in Git. Cannot proceed.",
                    hint=", ".join(e.path for e in others),
                )
            )
        return Ok(state)

    def _check_token(self, state: ReleaseState) -> StageResult:
        token_env = self._config.release.token_env
        token = self._env.get(token_env, "").strip()
        if not token:
            return Err(
                ReleaseError(
                    kind="token_missing",
                    message=f"The {token_env} environment variable must be set",
                )
            )

        host = self._config.host
        encoded = encode_repo(self._repo)
        context = ReleaseContext(
            target_version=state.target_version,
            tag_name=tag_for_version(state.target_version),
            repo_coordinate=self._repo,
            repo_api_base_url=f"{host.api_url}/repos/{encoded}",
            repo_push_url=host.git_url.format(repo=self._repo),
            repo_web_url=f"{host.web_url}/{encoded}",
            auth_token=token,
        )
        self._host = self._host_factory(context)
        return Ok(replace(state, context=context))

    def _confirm_version(self, state: ReleaseState) -> StageResult:
        version = state.target_version
        self._console.print(f"The version number defined in the config file is: {version}")

        if version.startswith("v"):
            return Err(
                ReleaseError(
                    kind="bad_version",
                    message="The version number should not be prefixed by `v`.",
                )
            )

        if not self._confirmer.confirm(f"Is {version} the correct new version number?"):
            return Err(
                ReleaseError(
                    kind="declined",
                    message="Update the version number in the config file and re-run this command.",
                )
            )
        return Ok(state)

    def _check_release_absent(self, state: ReleaseState) -> StageResult:
        tag = state.require_context().tag_name
        found = self._require_host().find_release_by_tag(tag)
        if isinstance(found, Err):
            return found

        if found.value is not None:
            return Err(
                ReleaseError(
                    kind="release_exists",
                    message=f"A release tagged {tag} already exists on GitHub.",
                )
            )
        return Ok(state)

    def _resolve_artifact(self, state: ReleaseState) -> StageResult:
        output = self._repo_dir / self._config.asset_filename
        artifact = self._artifacts.resolve(state.explicit_artifact, state.target_version, output)
        if isinstance(artifact, Err):
            return artifact
        return Ok(replace(state, artifact=artifact.value))

    def _commit_changes(self, state: ReleaseState) -> StageResult:
        status = self._git.status()
        if isinstance(status, Err):
            return status
        if status.value.is_clean:
            return Ok(state)

        self._console.info("Committing changes to Git")
        committed = self._git.commit_patch(
            self._config.release.commit_paths,
            f"Release {state.require_context().tag_name}",
        )
        if isinstance(committed, Err):
            return committed
        return Ok(state)

    def _generate_changelog(self, state: ReleaseState) -> StageResult:
        latest = self._require_host().latest_release()
        if isinstance(latest, Err):
            return latest

        last_tag = latest.value.tag_name
        # The new tag is created on HEAD in the next stage.
        changelog = self._changelog.generate(last_tag, "HEAD")
        if isinstance(changelog, Err):
            return changelog
        return Ok(replace(state, last_tag_name=last_tag, changelog_text=changelog.value))

    def _create_tag(self, state: ReleaseState) -> StageResult:
        tag = state.require_context().tag_name
        self._console.info(f"Creating tag {tag}")
        tagged = self._git.tag(tag, force=True)
        if isinstance(tagged, Err):
            return tagged
        return Ok(state)

    def _confirm_push(self, state: ReleaseState) -> StageResult:
        context = state.require_context()
        branch = self._config.release.branch
        if not self._confirmer.confirm(
            f"Push changes and tag to {branch} branch on {context.repo_push_url}?"
        ):
            return Err(
                ReleaseError(
                    kind="declined",
                    message="Push cancelled; nothing was published.",
                    hint=f"the local tag {context.tag_name} was kept",
                )
            )
        return Ok(state)

    def _push(self, state: ReleaseState) -> StageResult:
        context = state.require_context()
        pushed = self._git.push(context.repo_push_url, f"HEAD:{self._config.release.branch}")
        if isinstance(pushed, Err):
            return pushed
        self._branch_pushed = True

        pushed = self._git.push(context.repo_push_url, context.tag_name, force=True)
        if isinstance(pushed, Err):
            return pushed
        return Ok(state)

    def _assemble_body(self, state: ReleaseState) -> StageResult:
        context = state.require_context()
        artifact = state.require_artifact()
        try:
            checksum = compute_checksum(artifact.path)
        except OSError as e:
            return Err(
                ReleaseError(
                    kind="artifact_not_found",
                    message=f"Failed to read {artifact.path}",
                    hint=str(e),
                )
            )

        body = render_release_body(
            changelog=state.changelog_text or "",
            previous_tag=state.last_tag_name or "",
            repo_web_url=context.repo_web_url,
            asset_filename=self._config.asset_filename,
            checksum=checksum,
        )
        return Ok(replace(state, artifact=artifact.with_checksum(checksum), body=body))

    def _confirm_body(self, state: ReleaseState) -> StageResult:
        context = state.require_context()
        self._console.newline()
        self._console.info(f"Creating new release {context.tag_name} on GitHub")
        self._console.print("Release description:")
        self._console.print(indent_body(state.body or ""), Style.DIM)
        self._console.newline()

        if not self._confirmer.confirm("Is this OK?"):
            return Err(
                ReleaseError(
                    kind="declined",
                    message="Release cancelled.",
                    hint=f"{context.tag_name} was already pushed",
                )
            )
        return Ok(state)

    def _create_draft(self, state: ReleaseState) -> StageResult:
        tag = state.require_context().tag_name
        created = self._require_host().create_draft(tag, tag, state.body or "")
        if isinstance(created, Err):
            return created
        return Ok(replace(state, release=created.value))

    def _upload_asset(self, state: ReleaseState) -> StageResult:
        release = state.require_release()
        artifact = state.require_artifact()
        self._console.info("Uploading the artifact to the release")
        uploaded = self._require_host().upload_asset(
            release.upload_url, self._config.asset_filename, artifact.path
        )
        if isinstance(uploaded, Err):
            return uploaded
        return Ok(state)

    def _publish(self, state: ReleaseState) -> StageResult:
        release = state.require_release()
        self._console.info("Publishing the release")
        published = self._require_host().publish(release.id)
        if isinstance(published, Err):
            return published
        return Ok(replace(state, release=replace(release, draft=False)))

    # Helpers

    def _require_host(self) -> ReleaseHostClient:
        if self._host is None:
            raise RuntimeError("release host is not available before the token check")
        return self._host

    def _report_partial_state(self, failure: StageFailure) -> None:
        if failure.stage in _AFTER_DRAFT:
            self._console.warning(
                "A draft release was created but not published; delete or finish it manually."
            )
        elif failure.stage in _AFTER_PUSH:
            self._console.warning("The branch and tag were already pushed.")
        elif failure.stage == "push" and self._branch_pushed:
            self._console.warning(
                f"The {self._config.release.branch} branch was already pushed; the tag was not."
            )
