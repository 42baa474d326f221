"""Typed configuration loading for the release command.

The release reads its settings from the same TOML file that carries the
application version, so a version bump in that file is the one change the
clean-tree check tolerates.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_str_list, get_table

__all__ = [
    "ApplicationConfig",
    "Config",
    "ConfigError",
    "DEFAULT_CONFIG_NAME",
    "HostConfig",
    "ReleaseSettings",
    "load_config",
]

DEFAULT_CONFIG_NAME = "release.toml"

DEFAULT_RELEASE_BRANCH = "master"
DEFAULT_INTEGRATION_BRANCH = "development"
DEFAULT_TOKEN_ENV = "GITHUB_TOKEN"
DEFAULT_ARTIFACT_SUFFIX = ".phar"
DEFAULT_VERSION_COMMAND = ("{artifact}", "--version")

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_WEB_URL = "https://github.com"
DEFAULT_GIT_URL = "git@github.com:{repo}.git"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ApplicationConfig:
    """The application being released."""

    version: str
    executable: str
    github_repo: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseSettings:
    """Branch names, file allowances and external commands for a release.

    ``build_command`` and ``version_command`` may contain ``{output}`` and
    ``{artifact}`` placeholders respectively.
    """

    branch: str = DEFAULT_RELEASE_BRANCH
    integration_branch: str = DEFAULT_INTEGRATION_BRANCH
    token_env: str = DEFAULT_TOKEN_ENV
    allowed_dirty_file: str = DEFAULT_CONFIG_NAME
    commit_paths: tuple[str, ...] = (DEFAULT_CONFIG_NAME,)
    build_command: tuple[str, ...] = ()
    version_command: tuple[str, ...] = DEFAULT_VERSION_COMMAND
    artifact_suffix: str = DEFAULT_ARTIFACT_SUFFIX


@dataclass(frozen=True, slots=True)
class HostConfig:
    """Where the release host lives."""

    api_url: str = DEFAULT_API_URL
    web_url: str = DEFAULT_WEB_URL
    git_url: str = DEFAULT_GIT_URL


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    application: ApplicationConfig
    release: ReleaseSettings = field(default_factory=ReleaseSettings)
    host: HostConfig = field(default_factory=HostConfig)

    @property
    def asset_filename(self) -> str:
        """Public name of the uploaded artifact."""
        return f"{self.application.executable}{self.release.artifact_suffix}"

    @classmethod
    def from_dict(
        cls, data: Mapping[str, object], *, config_name: str = DEFAULT_CONFIG_NAME
    ) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: If ``application.version`` is missing.
        """
        application: StrDict = get_table(data, "application") or {}
        release: StrDict = get_table(data, "release") or {}
        host: StrDict = get_table(data, "host") or {}

        version = get_str(application, "version")
        if version is None:
            raise ValueError("application.version is required")

        allowed = get_str(release, "allowed_dirty_file") or config_name
        commit_paths = get_str_list(release, "commit_paths") or [allowed]

        return cls(
            application=ApplicationConfig(
                version=version,
                executable=get_str(application, "executable") or "cli",
                github_repo=get_str(application, "github_repo"),
            ),
            release=ReleaseSettings(
                branch=get_str(release, "branch") or DEFAULT_RELEASE_BRANCH,
                integration_branch=get_str(release, "integration_branch")
                or DEFAULT_INTEGRATION_BRANCH,
                token_env=get_str(release, "token_env") or DEFAULT_TOKEN_ENV,
                allowed_dirty_file=allowed,
                commit_paths=tuple(commit_paths),
                build_command=tuple(get_str_list(release, "build_command") or ()),
                version_command=tuple(
                    get_str_list(release, "version_command") or DEFAULT_VERSION_COMMAND
                ),
                artifact_suffix=get_str(release, "artifact_suffix") or DEFAULT_ARTIFACT_SUFFIX,
            ),
            host=HostConfig(
                api_url=(get_str(host, "api_url") or DEFAULT_API_URL).rstrip("/"),
                web_url=(get_str(host, "web_url") or DEFAULT_WEB_URL).rstrip("/"),
                git_url=get_str(host, "git_url") or DEFAULT_GIT_URL,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path, *, repo_root: Path | None = None) -> Result[Config, ConfigError]:
    """Load and parse release configuration from a TOML file.

    Args:
        path: Path to the config file. It is the default
            ``allowed_dirty_file`` and commit path.
        repo_root: Repository the config belongs to. Those defaults are
            written relative to it, the way git reports paths.

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    config_name = _repo_relative_name(path, repo_root)
    try:
        return Ok(Config.from_dict(result.value, config_name=config_name))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def _repo_relative_name(path: Path, repo_root: Path | None) -> str:
    if repo_root is None:
        return path.name
    try:
        return path.resolve().relative_to(repo_root.resolve()).as_posix()
    except ValueError:
        return path.name
