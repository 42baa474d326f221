"""Error types for the release pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    # Preflight failures
    "config_invalid",
    "wrong_branch",
    "dirty_tree",
    "token_missing",
    "declined",
    "release_exists",
    # Version errors
    "bad_version",
    "version_mismatch",
    "artifact_not_found",
    # Build
    "build_failed",
    # Release host
    "host_query_failed",
    "host_transport_error",
    # Changelog
    "empty_changelog",
    # Version control
    "vcs_command_error",
]

_CATEGORIES: dict[str, str] = {
    "config_invalid": "preflight",
    "wrong_branch": "preflight",
    "dirty_tree": "preflight",
    "token_missing": "preflight",
    "declined": "preflight",
    "release_exists": "preflight",
    "bad_version": "version",
    "version_mismatch": "version",
    "artifact_not_found": "version",
    "build_failed": "build",
    "host_query_failed": "host",
    "host_transport_error": "host",
    "empty_changelog": "changelog",
    "vcs_command_error": "vcs",
}


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    Every stage failure is one of these; the CLI renders it without needing
    to know which component produced it.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    returncode: int | None = None

    @property
    def category(self) -> str:
        """Coarse failure family: preflight, version, build, host, changelog or vcs."""
        return _CATEGORIES.get(self.kind, "preflight")
