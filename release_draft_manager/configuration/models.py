"""Models for configuration between CLI arguments and environment variables."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class GitHubAuthenticationType(str, Enum):
    """Enum for GitHub authentication types."""

    PAT = "pat"
    APP = "app"


@dataclass(frozen=True)
class BaseConfig:
    """Configuration shared by every command that talks to GitHub."""

    debug: bool
    github_api_url: str
    github_authentication_type: GitHubAuthenticationType
    github_pat_token: str | None
    github_app_id: int | None
    github_app_private_key_path: Path | None
    github_app_installation_id: int | None
    repo: str
    request_timeout: float = 30.0


@dataclass(frozen=True)
class DraftReleaseRunConfig(BaseConfig):
    """Configuration for the draft and render commands."""

    branch: str = ""
    languages: tuple[str, ...] = ()
    directories: tuple[str, ...] = ("",)
    tag_prefix: str = "v"
    config_file: Path | None = None
    working_directory: Path = field(default_factory=Path.cwd)
    prune_duplicate_drafts: bool = True
    max_concurrency: int = 4
