from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path


def tag_for_version(version: str) -> str:
    return f"v{version}"


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    """Fixed facts about the release being published."""

    target_version: str
    tag_name: str
    repo_coordinate: str  # owner/name
    repo_api_base_url: str
    repo_push_url: str
    repo_web_url: str
    auth_token: str


@dataclass(frozen=True, slots=True)
class Artifact:
    path: Path
    reported_version: str | None = None
    # Filled once, right before the release body is assembled.
    checksum: str | None = None

    def with_checksum(self, checksum: str) -> Artifact:
        return replace(self, checksum=checksum)


@dataclass(frozen=True, slots=True)
class Release:
    """A release record on the host."""

    id: int
    tag_name: str
    body: str
    draft: bool
    upload_url_template: str
    html_url: str | None = None

    @property
    def upload_url(self) -> str:
        """Upload URL with the ``{?name,label}`` template suffix removed."""
        url = self.upload_url_template
        brace = url.find("{")
        return url[:brace] if brace != -1 else url


@dataclass(frozen=True, slots=True)
class ReleaseState:
    """Value threaded through the release stages.

    Starts with only the target version; each stage returns a copy with the
    fields it is responsible for filled in.
    """

    target_version: str
    explicit_artifact: Path | None = None
    context: ReleaseContext | None = None
    artifact: Artifact | None = None
    last_tag_name: str | None = None
    changelog_text: str | None = None
    body: str | None = None
    release: Release | None = None

    def require_context(self) -> ReleaseContext:
        if self.context is None:
            raise RuntimeError("release context is not available before the token check")
        return self.context

    def require_artifact(self) -> Artifact:
        if self.artifact is None:
            raise RuntimeError("artifact is not available before it is resolved")
        return self.artifact

    def require_release(self) -> Release:
        if self.release is None:
            raise RuntimeError("release is not available before the draft is created")
        return self.release
