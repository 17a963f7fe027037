"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import sys
from pathlib import Path

import typer
from dotenv import load_dotenv
from typer import Option
from typing_extensions import Annotated

from release_draft_manager.configuration.exceptions import (
    ConfigInvalidError,
    GitHubAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
)
from release_draft_manager.configuration.models import DraftReleaseRunConfig
from release_draft_manager.configuration.reconcile import reconcile_draft_release_configuration
from release_draft_manager.configuration.release_config import ReleaseConfig, load_release_config
from release_draft_manager.synchronize.driver import release_keys_for, run_draft_release_workflow
from release_draft_manager.synchronize.results import DraftReleaseWorkflowResult
from release_draft_manager.utils.logging import configure_logging
from release_draft_manager.versioning import parse_archetypes

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Keep one draft GitHub release per branch and directory up to date.")

BranchOption = Annotated[str | None, Option("--branch", envvar=["INPUT_BRANCH", "GITHUB_REF_NAME"], help="Branch the draft release targets.")]
LanguageOption = Annotated[
    str | None,
    Option("--language", envvar="INPUT_LANGUAGE", help="Comma separated language archetypes whose manifests hold the version (rust, nodejs, python, dart)."),
]
TagPrefixOption = Annotated[str, Option("--tag-prefix", envvar="INPUT_TAG_PREFIX", help="Prefix of the default tag template.")]
ConfigFileOption = Annotated[Path | None, Option("--config-file", envvar="INPUT_CONFIG_FILE", help="Path to the release notes configuration file.")]
DirectoryOption = Annotated[
    list[str] | None,
    Option("--directory", envvar="INPUT_DIRECTORY", help="Directory holding the manifest; repeat or comma separate for several release streams."),
]
WorkingDirectoryOption = Annotated[
    Path | None, Option("--working-directory", envvar="INPUT_WORKING_DIRECTORY", help="Repository checkout directories are relative to.")
]
RepoOption = Annotated[str | None, Option("--repo", envvar="GITHUB_REPOSITORY", help="Repository name (owner/repo).")]
GitHubApiUrlOption = Annotated[str | None, Option("--github-api-url", envvar="GITHUB_API_URL", help="GitHub API URL.")]
GitHubTokenOption = Annotated[
    str | None, Option("--github-token", envvar=["INPUT_GITHUB_TOKEN", "GITHUB_PAT_TOKEN"], help="GitHub token. Falls back to GITHUB_TOKEN.")
]
GitHubAppIdOption = Annotated[int | None, Option("--github-app-id", envvar="GITHUB_APP_ID", help="GitHub App ID.")]
GitHubAppPrivateKeyPathOption = Annotated[
    Path | None, Option("--github-app-private-key-path", envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")
]
GitHubAppInstallationIdOption = Annotated[
    int | None, Option("--github-app-installation-id", envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")
]
PruneOption = Annotated[
    bool,
    Option("--prune-duplicate-drafts/--no-prune-duplicate-drafts", help="Delete older duplicate drafts of a release stream instead of failing."),
]
MaxConcurrencyOption = Annotated[int, Option("--max-concurrency", help="Maximum number of release streams reconciled at once.")]
DebugOption = Annotated[bool, Option("--debug", envvar="DEBUG", help="Enable debug mode.")]


def _load_run_configuration(
    debug: bool,
    github_api_url: str | None,
    github_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
    repo: str | None,
    branch: str | None,
    language: str | None,
    directory: list[str] | None,
    tag_prefix: str,
    config_file: Path | None,
    prune_duplicate_drafts: bool,
    max_concurrency: int,
    working_directory: Path | None,
) -> tuple[DraftReleaseRunConfig, ReleaseConfig]:
    """Reconcile run inputs and load the configuration file, exiting on invalid input."""
    try:
        run_config = asyncio.run(
            reconcile_draft_release_configuration(
                cli_debug=debug,
                cli_github_api_url=github_api_url,
                cli_github_pat_token=github_token,
                cli_github_app_id=github_app_id,
                cli_github_app_private_key_path=github_app_private_key_path,
                cli_github_app_installation_id=github_app_installation_id,
                cli_repo=repo,
                cli_branch=branch,
                cli_language=language,
                cli_directories=directory,
                cli_tag_prefix=tag_prefix,
                cli_config_file=config_file,
                cli_prune_duplicate_drafts=prune_duplicate_drafts,
                cli_max_concurrency=max_concurrency,
                working_directory=working_directory,
            )
        )
    except (RequiredConfigurationElementError, GitHubAuthenticationConfigurationUndefinedError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc
    except ConfigInvalidError as exc:
        typer.echo(f"{exc.kind}: {exc.message}", err=True)
        raise typer.Exit(1) from exc

    try:
        release_config = load_release_config(run_config.config_file, run_config.working_directory)
    except ConfigInvalidError as exc:
        # The configuration file applies to every release stream, so each one fails.
        for key in release_keys_for(run_config):
            typer.echo(f"{key}: {exc.kind}: {exc.message}", err=True)
        raise typer.Exit(1) from exc
    return run_config, release_config


def _report_errors(result: DraftReleaseWorkflowResult) -> None:
    if result.errors:
        for failed in result.errors:
            typer.echo(failed.error_line(), err=True)
        sys.exit(1)


@typer_app.command(name="draft")
def draft_cli(
    branch: BranchOption = None,
    language: LanguageOption = None,
    tag_prefix: TagPrefixOption = "v",
    config_file: ConfigFileOption = None,
    directory: DirectoryOption = None,
    working_directory: WorkingDirectoryOption = None,
    repo: RepoOption = None,
    github_api_url: GitHubApiUrlOption = None,
    github_token: GitHubTokenOption = None,
    github_app_id: GitHubAppIdOption = None,
    github_app_private_key_path: GitHubAppPrivateKeyPathOption = None,
    github_app_installation_id: GitHubAppInstallationIdOption = None,
    prune_duplicate_drafts: PruneOption = True,
    max_concurrency: MaxConcurrencyOption = 4,
    debug: DebugOption = False,
) -> None:
    """Create or update the draft release of every release stream."""
    configure_logging(debug)
    run_config, release_config = _load_run_configuration(
        debug,
        github_api_url,
        github_token,
        github_app_id,
        github_app_private_key_path,
        github_app_installation_id,
        repo,
        branch,
        language,
        directory,
        tag_prefix,
        config_file,
        prune_duplicate_drafts,
        max_concurrency,
        working_directory,
    )
    result = asyncio.run(run_draft_release_workflow(run_config, release_config))
    for reconciled in result.results:
        if reconciled.succeeded and reconciled.decision is not None:
            typer.echo(f"{reconciled.key}: {reconciled.decision.value} draft release {reconciled.release_id} ({reconciled.version})")
    _report_errors(result)


@typer_app.command(name="render")
def render_cli(
    branch: BranchOption = None,
    language: LanguageOption = None,
    tag_prefix: TagPrefixOption = "v",
    config_file: ConfigFileOption = None,
    directory: DirectoryOption = None,
    working_directory: WorkingDirectoryOption = None,
    repo: RepoOption = None,
    github_api_url: GitHubApiUrlOption = None,
    github_token: GitHubTokenOption = None,
    github_app_id: GitHubAppIdOption = None,
    github_app_private_key_path: GitHubAppPrivateKeyPathOption = None,
    github_app_installation_id: GitHubAppInstallationIdOption = None,
    debug: DebugOption = False,
) -> None:
    """Print the draft release every release stream would get, without writing it."""
    configure_logging(debug)
    run_config, release_config = _load_run_configuration(
        debug,
        github_api_url,
        github_token,
        github_app_id,
        github_app_private_key_path,
        github_app_installation_id,
        repo,
        branch,
        language,
        directory,
        tag_prefix,
        config_file,
        True,
        4,
        working_directory,
    )
    result = asyncio.run(run_draft_release_workflow(run_config, release_config, dry_run=True))
    for rendered in result.results:
        if rendered.desired is None or rendered.decision is None:
            continue
        typer.echo(f"# {rendered.key} ({rendered.decision.value})")
        typer.echo(f"tag: {rendered.desired.tag_name}")
        typer.echo(f"name: {rendered.desired.name}")
        typer.echo("")
        typer.echo(rendered.desired.body)
        typer.echo("")
    _report_errors(result)


@typer_app.command(name="check-config")
def check_config_cli(
    config_file: ConfigFileOption = None,
    language: LanguageOption = None,
    working_directory: WorkingDirectoryOption = None,
    debug: DebugOption = False,
) -> None:
    """Validate the release notes configuration file and summarize it."""
    configure_logging(debug)
    cwd = working_directory or Path.cwd()
    try:
        release_config = load_release_config(config_file, cwd)
        archetypes = parse_archetypes(language) if language else []
    except ConfigInvalidError as exc:
        typer.echo(f"{exc.kind}: {exc.message}", err=True)
        raise typer.Exit(1) from exc

    configured_language = ", ".join(archetype.value for archetype in archetypes) or release_config.language or "(not set)"
    typer.echo(f"language: {configured_language}")
    typer.echo(f"tag-template: {release_config.tag_template or release_config.resolve_tag_template()}")
    typer.echo(f"name-template: {release_config.name_template}")
    typer.echo(f"change-template: {release_config.change_template}")
    typer.echo(f"exclude-labels: {', '.join(release_config.exclude_labels) or '(none)'}")
    typer.echo(f"categories: {len(release_config.categories)}")
    for category in release_config.categories:
        typer.echo(f"  {category.heading} <- {', '.join(category.labels)}")


if __name__ == "__main__":
    typer_app()
