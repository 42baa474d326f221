from __future__ import annotations

import re

from selfrelease.core.result import Err, Ok, Result
from selfrelease.git.gateway import GitGateway
from selfrelease.release.errors import ReleaseError

# Subjects left out of release notes: release commits and opted-out changes.
EXCLUDE_PATTERN = r"(Release v|\[skip changelog\])"

_EXCLUDE_RE = re.compile(EXCLUDE_PATTERN, re.IGNORECASE)


def filter_subjects(subjects: list[str]) -> list[str]:
    """Drop subjects matching the exclusion pattern, keeping order."""
    return [s for s in subjects if s.strip() and not _EXCLUDE_RE.search(s)]


def render_changelog(subjects: list[str]) -> str:
    return "\n".join(f"* {s}" for s in subjects)


class ChangelogGenerator:
    """Builds the bullet-list changelog between two refs."""

    def __init__(self, git: GitGateway) -> None:
        self._git = git

    def generate(self, from_tag: str, to_ref: str) -> Result[str, ReleaseError]:
        """Changelog for ``from_tag...to_ref``, oldest commit first.

        An empty result is an error: it almost always means the range is
        wrong (e.g. ``from_tag`` is not known locally).
        """
        result = self._git.log(from_tag, to_ref, EXCLUDE_PATTERN)
        if isinstance(result, Err):
            return result

        # Same rule as the --invert-grep filter git applied.
        subjects = filter_subjects(result.value)
        if not subjects:
            return Err(
                ReleaseError(
                    kind="empty_changelog",
                    message=f"Failed to find changelog for {from_tag}...{to_ref}",
                    hint=f"check that {from_tag} exists locally (git fetch --tags)",
                )
            )

        return Ok(render_changelog(subjects))
