"""Unit tests for the draft release configuration reconciliation process."""

from pathlib import Path
from typing import Iterator
from unittest.mock import MagicMock, patch

import pytest

from release_draft_manager.configuration.exceptions import (
    ConfigInvalidError,
    GitHubAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
)
from release_draft_manager.configuration.models import DraftReleaseRunConfig, GitHubAuthenticationType
from release_draft_manager.configuration.reconcile import reconcile_draft_release_configuration, split_directories


@pytest.fixture
def mock_settings() -> Iterator[MagicMock]:
    """Environment settings with nothing configured."""
    with patch("release_draft_manager.configuration.reconcile.settings") as mock_settings:
        mock_settings.DEBUG = False
        mock_settings.GITHUB_API_URL = "https://api.github.com"
        mock_settings.GITHUB_REPOSITORY = None
        mock_settings.GITHUB_REF_NAME = None
        mock_settings.GITHUB_REQUEST_TIMEOUT = 30.0
        mock_settings.GITHUB_TOKEN = None
        mock_settings.GITHUB_PAT_TOKEN = None
        mock_settings.GITHUB_APP_ID = None
        mock_settings.GITHUB_APP_PRIVATE_KEY_PATH = None
        mock_settings.GITHUB_APP_INSTALLATION_ID = None
        yield mock_settings


async def reconcile(**overrides: object) -> DraftReleaseRunConfig:
    """Call reconcile_draft_release_configuration with CLI values defaulting to unset."""
    arguments: dict[str, object] = {
        "cli_debug": False,
        "cli_github_api_url": None,
        "cli_github_pat_token": None,
        "cli_github_app_id": None,
        "cli_github_app_private_key_path": None,
        "cli_github_app_installation_id": None,
        "cli_repo": None,
        "cli_branch": None,
        "cli_language": None,
    }
    arguments.update(overrides)
    return await reconcile_draft_release_configuration(**arguments)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_reconcile_with_cli_args(mock_settings: MagicMock, tmp_path: Path) -> None:
    """Test reconciliation when all values are provided via CLI arguments."""
    # Given
    mock_settings.GITHUB_REPOSITORY = "env/repo"
    mock_settings.GITHUB_REF_NAME = "env-branch"

    # When
    result = await reconcile(
        cli_debug=True,
        cli_github_api_url="https://ghe.example.com/api/v3",
        cli_github_pat_token="cli-token",
        cli_repo="octo/widgets",
        cli_branch="main",
        cli_language="node,rust",
        cli_directories=["packages/api,packages/web", "./packages/api/"],
        cli_tag_prefix="release-",
        cli_config_file=Path("notes.yml"),
        working_directory=tmp_path,
    )

    # Then
    assert result.debug is True
    assert result.github_api_url == "https://ghe.example.com/api/v3"
    assert result.github_authentication_type == GitHubAuthenticationType.PAT
    assert result.github_pat_token == "cli-token"
    assert result.repo == "octo/widgets"
    assert result.branch == "main"
    assert result.languages == ("nodejs", "rust")
    assert result.directories == ("packages/api", "packages/web")
    assert result.tag_prefix == "release-"
    assert result.config_file == Path("notes.yml")
    assert result.working_directory == tmp_path


@pytest.mark.asyncio
async def test_reconcile_with_env_vars(mock_settings: MagicMock) -> None:
    """Test reconciliation when values come from the GitHub Actions environment."""
    # Given
    mock_settings.GITHUB_REPOSITORY = "octo/widgets"
    mock_settings.GITHUB_REF_NAME = "release/2.x"
    mock_settings.GITHUB_TOKEN = "actions-token"

    # When
    result = await reconcile()

    # Then
    assert result.repo == "octo/widgets"
    assert result.branch == "release/2.x"
    assert result.github_pat_token == "actions-token"
    assert result.languages == ()
    assert result.directories == ("",)
    assert result.tag_prefix == "v"


@pytest.mark.asyncio
async def test_actions_token_ignored_with_app_credentials(mock_settings: MagicMock) -> None:
    """Test that GITHUB_TOKEN does not clash with a configured GitHub App."""
    # Given
    mock_settings.GITHUB_TOKEN = "actions-token"
    mock_settings.GITHUB_APP_ID = 12345
    mock_settings.GITHUB_APP_PRIVATE_KEY_PATH = Path("/path/to/key.pem")
    mock_settings.GITHUB_APP_INSTALLATION_ID = 67890

    # When
    result = await reconcile(cli_repo="octo/widgets", cli_branch="main")

    # Then
    assert result.github_authentication_type == GitHubAuthenticationType.APP
    assert result.github_pat_token is None


@pytest.mark.asyncio
async def test_missing_repository(mock_settings: MagicMock) -> None:
    """Test that a missing repository raises RequiredConfigurationElementError."""
    with pytest.raises(RequiredConfigurationElementError) as exc_info:
        await reconcile(cli_github_pat_token="token", cli_branch="main")

    assert exc_info.value.env_name == "GITHUB_REPOSITORY"


@pytest.mark.asyncio
async def test_missing_branch(mock_settings: MagicMock) -> None:
    """Test that a missing branch raises RequiredConfigurationElementError."""
    with pytest.raises(RequiredConfigurationElementError) as exc_info:
        await reconcile(cli_github_pat_token="token", cli_repo="octo/widgets", cli_branch="  ")

    assert exc_info.value.cli_name == "--branch"


@pytest.mark.asyncio
async def test_missing_authentication(mock_settings: MagicMock) -> None:
    """Test that running without any credentials is rejected."""
    with pytest.raises(GitHubAuthenticationConfigurationUndefinedError):
        await reconcile(cli_repo="octo/widgets", cli_branch="main")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        pytest.param({"cli_language": "cobol"}, id="unknown language"),
        pytest.param({"cli_max_concurrency": 0}, id="no concurrency"),
    ],
)
async def test_invalid_values(mock_settings: MagicMock, overrides: dict[str, object]) -> None:
    """Test that invalid run inputs raise ConfigInvalidError."""
    with pytest.raises(ConfigInvalidError):
        await reconcile(cli_github_pat_token="token", cli_repo="octo/widgets", cli_branch="main", **overrides)


@pytest.mark.parametrize(
    "values,expected",
    [
        pytest.param(None, ("",), id="unset"),
        pytest.param([""], ("",), id="empty"),
        pytest.param([".", "./"], ("",), id="repository root"),
        pytest.param(["a, b", "b"], ("a", "b"), id="comma separated and repeated"),
        pytest.param(["crates/core/"], ("crates/core",), id="trailing slash"),
    ],
)
def test_split_directories(values: list[str] | None, expected: tuple[str, ...]) -> None:
    """Test directory input splitting and normalization."""
    assert split_directories(values) == expected
