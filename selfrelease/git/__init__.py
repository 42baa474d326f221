"""Git operations used by a release.

Usage:
    from selfrelease.git import GitGateway

    git = GitGateway(repo_dir, runner)
    snapshot = git.status()
"""

from selfrelease.git.gateway import GitGateway, GitStatusSnapshot, StatusEntry

__all__ = [
    "GitGateway",
    "GitStatusSnapshot",
    "StatusEntry",
]
