"""Reconciles configuration between CLI arguments and environment variables."""

from pathlib import Path

import structlog

from release_draft_manager.configuration.env import settings
from release_draft_manager.configuration.exceptions import (
    ConfigInvalidError,
    GitHubAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
)
from release_draft_manager.configuration.models import DraftReleaseRunConfig, GitHubAuthenticationType
from release_draft_manager.release_notes.models import normalize_directory
from release_draft_manager.versioning import parse_archetypes

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_GITHUB_APP_SETTINGS: tuple[tuple[str, str, str], ...] = (
    ("GitHub App ID", "--github-app-id", "GITHUB_APP_ID"),
    ("GitHub App private key path", "--github-app-private-key-path", "GITHUB_APP_PRIVATE_KEY_PATH"),
    ("GitHub App installation ID", "--github-app-installation-id", "GITHUB_APP_INSTALLATION_ID"),
)


async def validate_github_authentication_configuration(
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> GitHubAuthenticationType:
    """Validates the GitHub authentication configuration.

    Args:
        github_pat_token (str | None): The GitHub PAT token.
        github_app_id (int | None): The GitHub App ID.
        github_app_private_key_path (Path | None): The path to the GitHub App private key.
        github_app_installation_id (int | None): The GitHub App installation ID.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If neither or both of PAT and App configurations are defined,
            or if the App configuration is incomplete.

    Returns:
        GitHubAuthenticationType: The type of GitHub authentication used.
    """
    app_values = (github_app_id, github_app_private_key_path, github_app_installation_id)
    if github_pat_token and any(app_values):
        raise GitHubAuthenticationConfigurationUndefinedError("Both PAT and GitHub App configurations are defined. Please use one or the other.")

    if github_pat_token:
        return GitHubAuthenticationType.PAT

    if all(app_values):
        return GitHubAuthenticationType.APP

    if any(app_values):
        missing = [
            f"{name} (command line option {cli_name}, environment variable {env_name})"
            for (name, cli_name, env_name), value in zip(_GITHUB_APP_SETTINGS, app_values, strict=True)
            if not value
        ]
        raise GitHubAuthenticationConfigurationUndefinedError("Incomplete GitHub App configuration - missing settings include " + ", ".join(missing))

    raise GitHubAuthenticationConfigurationUndefinedError(
        "No GitHub authentication configuration provided. Please provide either a token or a GitHub App configuration."
    )


def split_directories(values: list[str] | None) -> tuple[str, ...]:
    """Split repeated and comma separated directory inputs into normalized, unique directories.

    An empty result means the whole repository, represented by a single empty directory.
    """
    directories: list[str] = []
    for value in values or []:
        for part in value.split(","):
            if not part.strip():
                continue
            directory = normalize_directory(part)
            if directory not in directories:
                directories.append(directory)
    return tuple(directories) or ("",)


async def reconcile_draft_release_configuration(
    cli_debug: bool,
    cli_github_api_url: str | None,
    cli_github_pat_token: str | None,
    cli_github_app_id: int | None,
    cli_github_app_private_key_path: Path | None,
    cli_github_app_installation_id: int | None,
    cli_repo: str | None,
    cli_branch: str | None,
    cli_language: str | None,
    cli_directories: list[str] | None = None,
    cli_tag_prefix: str | None = None,
    cli_config_file: Path | None = None,
    cli_prune_duplicate_drafts: bool = True,
    cli_max_concurrency: int = 4,
    working_directory: Path | None = None,
) -> DraftReleaseRunConfig:
    """Reconcile CLI arguments with environment settings into a run configuration.

    CLI values take precedence over environment settings. The language may be
    left undefined here; it can still come from the release notes configuration
    file, which is checked later.
    """
    debug = cli_debug or settings.DEBUG
    github_api_url = cli_github_api_url or settings.GITHUB_API_URL
    github_pat_token = cli_github_pat_token or settings.GITHUB_PAT_TOKEN
    github_app_id = cli_github_app_id or settings.GITHUB_APP_ID
    github_app_private_key_path = cli_github_app_private_key_path or settings.GITHUB_APP_PRIVATE_KEY_PATH
    github_app_installation_id = cli_github_app_installation_id or settings.GITHUB_APP_INSTALLATION_ID
    if not github_pat_token and not (github_app_id or github_app_private_key_path or github_app_installation_id):
        # GitHub Actions exports GITHUB_TOKEN to every job; only fall back to it
        # when no App credentials were configured.
        github_pat_token = settings.GITHUB_TOKEN

    repo = cli_repo or settings.GITHUB_REPOSITORY
    if not repo:
        raise RequiredConfigurationElementError(name="repository", cli_name="--repo", env_name="GITHUB_REPOSITORY")

    branch = (cli_branch or settings.GITHUB_REF_NAME or "").strip()
    if not branch:
        raise RequiredConfigurationElementError(name="branch", cli_name="--branch", env_name="INPUT_BRANCH")

    github_authentication_type = await validate_github_authentication_configuration(
        github_pat_token=github_pat_token,
        github_app_id=github_app_id,
        github_app_private_key_path=github_app_private_key_path,
        github_app_installation_id=github_app_installation_id,
    )
    languages = tuple(archetype.value for archetype in parse_archetypes(cli_language)) if cli_language else ()

    if cli_max_concurrency < 1:
        raise ConfigInvalidError(f"Maximum concurrency must be at least 1, got {cli_max_concurrency}")

    tag_prefix = cli_tag_prefix.strip() if cli_tag_prefix is not None else "v"

    run_config = DraftReleaseRunConfig(
        debug=debug,
        github_api_url=github_api_url,
        github_authentication_type=github_authentication_type,
        github_pat_token=github_pat_token,
        github_app_id=github_app_id,
        github_app_private_key_path=github_app_private_key_path,
        github_app_installation_id=github_app_installation_id,
        repo=repo,
        request_timeout=settings.GITHUB_REQUEST_TIMEOUT,
        branch=branch,
        languages=languages,
        directories=split_directories(cli_directories),
        tag_prefix=tag_prefix,
        config_file=cli_config_file,
        working_directory=working_directory or Path.cwd(),
        prune_duplicate_drafts=cli_prune_duplicate_drafts,
        max_concurrency=cli_max_concurrency,
    )
    logger.debug(
        "Reconciled draft release configuration",
        repo=run_config.repo,
        branch=run_config.branch,
        languages=run_config.languages,
        directories=run_config.directories,
        authentication_type=run_config.github_authentication_type.value,
    )
    return run_config
