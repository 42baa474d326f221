from __future__ import annotations

import textwrap


def release_page_url(repo_web_url: str, tag: str) -> str:
    return f"{repo_web_url}/releases/tag/{tag}"


def latest_release_url(repo_web_url: str) -> str:
    return f"{repo_web_url}/releases/latest"


def render_release_body(
    *,
    changelog: str,
    previous_tag: str,
    repo_web_url: str,
    asset_filename: str,
    checksum: str,
) -> str:
    """Markdown release description.

    Links the previous release, lists the changelog and ends with the
    artifact checksum so users can verify their download.
    """
    previous_url = release_page_url(repo_web_url, previous_tag)
    return (
        f"Changes since [{previous_tag}]({previous_url}):"
        f"\n\n{changelog}"
        f"\n\nSHA-256 checksum for `{asset_filename}`:"
        f"\n`{checksum}`"
    )


def indent_body(body: str) -> str:
    """Body as shown to the operator before confirmation."""
    return textwrap.indent(body, "  ", lambda line: True)
