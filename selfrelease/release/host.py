"""Release host client.

This module provides:
- ReleaseHostClient: Protocol for release-host operations (injectable for tests)
- GitHubReleaseHost: Real implementation over the GitHub REST API using urllib
- MockReleaseHost: In-memory implementation for testing

Status handling is the same for every call: network failures become
``host_transport_error``, non-2xx answers without a defined meaning become
``host_query_failed``. Nothing is retried.
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from selfrelease.core.result import Err, Ok, Result
from selfrelease.core.structured import as_str_dict, get_bool, get_int, get_str
from selfrelease.release.errors import ReleaseError
from selfrelease.release.model import Release

if TYPE_CHECKING:
    from selfrelease.output.console import ConsoleProtocol

__all__ = [
    "GitHubReleaseHost",
    "HostResponse",
    "MockReleaseHost",
    "ReleaseHostClient",
    "encode_repo",
]

ACCEPT = "application/vnd.github.v3+json"
USER_AGENT = "selfrelease/0.1.0"


def encode_repo(repo: str) -> str:
    """URL-encode each segment of an ``owner/name`` coordinate."""
    return "/".join(urllib.parse.quote(part, safe="") for part in repo.split("/"))


@runtime_checkable
class ReleaseHostClient(Protocol):
    """Protocol for release-host operations.

    This abstraction allows injecting a recording fake in tests, avoiding
    real network calls.
    """

    def find_release_by_tag(self, tag: str) -> Result[Release | None, ReleaseError]:
        """Look up the release for ``tag``; Ok(None) if the host has none."""
        ...

    def latest_release(self) -> Result[Release, ReleaseError]:
        """Most recent published (non-draft) release."""
        ...

    def create_draft(self, tag: str, name: str, body: str) -> Result[Release, ReleaseError]:
        """Create a draft release for ``tag``."""
        ...

    def upload_asset(
        self, upload_url: str, filename: str, path: Path
    ) -> Result[None, ReleaseError]:
        """Stream the file at ``path`` to the release as ``filename``."""
        ...

    def publish(self, release_id: int) -> Result[None, ReleaseError]:
        """Flip a draft release to published."""
        ...


@dataclass(frozen=True, slots=True)
class HostResponse:
    """Status and raw body of a host answer."""

    status: int
    body: bytes

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> object:
        return json.loads(self.body.decode("utf-8"))


def _parse_release(obj: object) -> Release | None:
    data = as_str_dict(obj)
    if data is None:
        return None

    release_id = get_int(data, "id")
    tag = get_str(data, "tag_name")
    if release_id is None or tag is None:
        return None

    return Release(
        id=release_id,
        tag_name=tag,
        body=get_str(data, "body") or "",
        draft=bool(get_bool(data, "draft")),
        upload_url_template=get_str(data, "upload_url") or "",
        html_url=get_str(data, "html_url"),
    )


class GitHubReleaseHost:
    """ReleaseHostClient for the GitHub REST API.

    Args:
        api_url: API root (e.g. ``https://api.github.com``)
        repo: Repository coordinate ``owner/name``
        token: Bearer token
        console: Receives one debug line per request, if given
        timeout: Request timeout in seconds; None keeps the transport default
    """

    def __init__(
        self,
        *,
        api_url: str,
        repo: str,
        token: str,
        console: ConsoleProtocol | None = None,
        timeout: float | None = None,
        user_agent: str = USER_AGENT,
    ) -> None:
        self.repo_api_url = f"{api_url.rstrip('/')}/repos/{encode_repo(repo)}"
        self._token = token
        self._console = console
        self._timeout = timeout
        self._user_agent = user_agent
        # Use system certificates
        self._ssl_context = ssl.create_default_context()

    def find_release_by_tag(self, tag: str) -> Result[Release | None, ReleaseError]:
        url = f"{self.repo_api_url}/releases/tags/{urllib.parse.quote(tag, safe='')}"
        result = self._request("GET", url)
        if isinstance(result, Err):
            return result

        response = result.value
        if response.status == 404:
            return Ok(None)
        if not response.ok:
            return Err(
                ReleaseError(
                    kind="host_query_failed",
                    message="Failed to check for an existing release on GitHub",
                    hint=f"HTTP {response.status} from {url}",
                )
            )
        return self._release_from(response, url)

    def latest_release(self) -> Result[Release, ReleaseError]:
        url = f"{self.repo_api_url}/releases/latest"
        result = self._request("GET", url)
        if isinstance(result, Err):
            return result

        response = result.value
        if not response.ok:
            return Err(
                ReleaseError(
                    kind="host_query_failed",
                    message="Failed to find the latest release on GitHub",
                    hint=f"HTTP {response.status} from {url}",
                )
            )
        return self._release_from(response, url)

    def create_draft(self, tag: str, name: str, body: str) -> Result[Release, ReleaseError]:
        url = f"{self.repo_api_url}/releases"
        payload = {"tag_name": tag, "name": name, "body": body, "draft": True}
        result = self._request("POST", url, json_body=payload)
        if isinstance(result, Err):
            return result

        response = result.value
        if not response.ok:
            return Err(
                ReleaseError(
                    kind="host_query_failed",
                    message=f"Failed to create release {tag} on GitHub",
                    hint=f"HTTP {response.status} from {url}",
                )
            )
        return self._release_from(response, url)

    def upload_asset(
        self, upload_url: str, filename: str, path: Path
    ) -> Result[None, ReleaseError]:
        url = f"{upload_url}?name={urllib.parse.quote(filename)}"
        try:
            size = path.stat().st_size
            with path.open("rb") as f:
                result = self._request(
                    "POST",
                    url,
                    data=f,
                    headers={
                        "Content-Type": "application/octet-stream",
                        "Content-Length": str(size),
                    },
                )
        except OSError as e:
            return Err(
                ReleaseError(
                    kind="artifact_not_found",
                    message=f"Failed to open file for reading: {path}",
                    hint=str(e),
                )
            )
        if isinstance(result, Err):
            return result

        response = result.value
        if not response.ok:
            return Err(
                ReleaseError(
                    kind="host_query_failed",
                    message=f"Failed to upload {filename} to the release",
                    hint=f"HTTP {response.status} from {url}",
                )
            )
        return Ok(None)

    def publish(self, release_id: int) -> Result[None, ReleaseError]:
        url = f"{self.repo_api_url}/releases/{release_id}"
        result = self._request("PATCH", url, json_body={"draft": False})
        if isinstance(result, Err):
            return result

        response = result.value
        if not response.ok:
            return Err(
                ReleaseError(
                    kind="host_query_failed",
                    message=f"Failed to publish release {release_id}",
                    hint=f"HTTP {response.status} from {url}",
                )
            )
        return Ok(None)

    def _release_from(self, response: HostResponse, url: str) -> Result[Release, ReleaseError]:
        try:
            obj = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            return Err(
                ReleaseError(
                    kind="host_query_failed",
                    message=f"Invalid JSON from release host: {e}",
                    hint=url,
                )
            )

        release = _parse_release(obj)
        if release is None:
            return Err(
                ReleaseError(
                    kind="host_query_failed",
                    message="Unexpected release payload from release host",
                    hint=url,
                )
            )
        return Ok(release)

    def _request(
        self,
        method: str,
        url: str,
        *,
        json_body: Mapping[str, object] | None = None,
        data: object = None,
        headers: Mapping[str, str] | None = None,
    ) -> Result[HostResponse, ReleaseError]:
        """Send one request; any HTTP status is an Ok, transport failures are Err."""
        all_headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": ACCEPT,
            "User-Agent": self._user_agent,
        }
        if json_body is not None:
            data = json.dumps(json_body).encode("utf-8")
            all_headers["Content-Type"] = "application/json"
        if headers:
            all_headers.update(headers)

        if self._console is not None:
            self._console.debug(f"{method} {url}")

        req = urllib.request.Request(url, data=data, headers=all_headers, method=method)  # type: ignore[arg-type]
        try:
            with urllib.request.urlopen(
                req,
                timeout=self._timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(HostResponse(status=response.status, body=response.read()))
        except urllib.error.HTTPError as e:
            return Ok(HostResponse(status=e.code, body=e.read() or b""))
        except urllib.error.URLError as e:
            return Err(_transport_error(url, str(e.reason)))
        except TimeoutError:
            return Err(_transport_error(url, "Request timed out"))
        except OSError as e:
            return Err(_transport_error(url, str(e)))


def _transport_error(url: str, message: str) -> ReleaseError:
    return ReleaseError(
        kind="host_transport_error",
        message=f"Could not reach the release host: {message}",
        hint=url,
    )


def _empty_calls() -> list[tuple[str, ...]]:
    return []


def _empty_releases() -> dict[str, Release | ReleaseError]:
    return {}


@dataclass
class MockReleaseHost:
    """ReleaseHostClient that records calls and returns canned answers.

    Usage:
        host = MockReleaseHost(latest=Release(id=1, tag_name="v1.1.0", ...))
        host.set_release("v1.2.0", ReleaseError(kind="host_query_failed", message="HTTP 500"))
        result = host.find_release_by_tag("v1.2.0")
    """

    latest: Release | ReleaseError | None = None
    releases: dict[str, Release | ReleaseError] = field(default_factory=_empty_releases)
    create_error: ReleaseError | None = None
    upload_error: ReleaseError | None = None
    publish_error: ReleaseError | None = None
    upload_url_template: str = "https://uploads.example.test/releases/1/assets{?name,label}"
    calls: list[tuple[str, ...]] = field(default_factory=_empty_calls)
    uploaded: dict[str, bytes] = field(default_factory=dict)
    _next_id: int = 1

    def set_release(self, tag: str, release: Release | ReleaseError) -> None:
        self.releases[tag] = release

    def find_release_by_tag(self, tag: str) -> Result[Release | None, ReleaseError]:
        self.calls.append(("find_release_by_tag", tag))
        found = self.releases.get(tag)
        if isinstance(found, ReleaseError):
            return Err(found)
        return Ok(found)

    def latest_release(self) -> Result[Release, ReleaseError]:
        self.calls.append(("latest_release",))
        if isinstance(self.latest, ReleaseError):
            return Err(self.latest)
        if self.latest is None:
            return Err(ReleaseError(kind="host_query_failed", message="no releases (mock)"))
        return Ok(self.latest)

    def create_draft(self, tag: str, name: str, body: str) -> Result[Release, ReleaseError]:
        self.calls.append(("create_draft", tag, name, body))
        if self.create_error is not None:
            return Err(self.create_error)

        release = Release(
            id=self._next_id,
            tag_name=tag,
            body=body,
            draft=True,
            upload_url_template=self.upload_url_template,
        )
        self._next_id += 1
        self.releases[tag] = release
        return Ok(release)

    def upload_asset(
        self, upload_url: str, filename: str, path: Path
    ) -> Result[None, ReleaseError]:
        self.calls.append(("upload_asset", upload_url, filename))
        if self.upload_error is not None:
            return Err(self.upload_error)
        self.uploaded[filename] = path.read_bytes()
        return Ok(None)

    def publish(self, release_id: int) -> Result[None, ReleaseError]:
        self.calls.append(("publish", str(release_id)))
        if self.publish_error is not None:
            return Err(self.publish_error)
        for tag, release in self.releases.items():
            if isinstance(release, Release) and release.id == release_id:
                self.releases[tag] = replace(release, draft=False)
        return Ok(None)

    # Test helper methods

    def call_names(self) -> list[str]:
        return [c[0] for c in self.calls]
