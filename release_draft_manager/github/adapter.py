"""GitHub client adapter for the githubkit library."""

from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Any, Awaitable, Callable, Self, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import GitHubException, RequestFailed
from githubkit.versions.latest.models import DiffEntry, PullRequestSimple, Release

from release_draft_manager.configuration.models import GitHubAuthenticationType
from release_draft_manager.release_notes.models import ChangeRequest, DraftRelease
from release_draft_manager.utils.constants import DEFAULT_REQUEST_TIMEOUT, GITHUB_MAX_PER_PAGE
from release_draft_manager.utils.github import split_repository_in_configuration
from release_draft_manager.utils.retry import retry_on_transient_error

from .abc import GitHubClientBase
from .client import GitHubClient, get_github_client
from .exceptions import translate_github_exception

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def translate_github_errors(func: F) -> F:
    """Decorator converting githubkit errors into GitHubApiTransientError or GitHubApiFatalError.

    422 Unprocessable Entity responses are logged with GitHub's error details.
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except GitHubException as exc:
            if isinstance(exc, RequestFailed) and exc.response.status_code == 422:
                try:
                    error_data = exc.response.json()
                except ValueError:
                    error_data = {}
                logger.error(
                    "GitHub 422 Unprocessable Entity",
                    function=func.__name__,
                    message=error_data.get("message", "Unprocessable Entity"),
                    errors=error_data.get("errors", []),
                    status_code=422,
                )
            raise translate_github_exception(exc, func.__name__) from exc

    return wrapper  # type: ignore


def change_request_from_pull_request(pull_request: PullRequestSimple) -> ChangeRequest:
    """Build a ChangeRequest snapshot from a merged pull request."""
    if pull_request.merged_at is None:
        raise ValueError(f"Pull request #{pull_request.number} is not merged")
    return ChangeRequest(
        title=pull_request.title,
        author=pull_request.user.login if pull_request.user else "ghost",
        number=pull_request.number,
        url=pull_request.html_url,
        labels=[label.name for label in pull_request.labels],
        merged_at=pull_request.merged_at,
    )


def draft_release_from_release(release: Release) -> DraftRelease:
    """Build a DraftRelease snapshot from a githubkit Release."""
    return DraftRelease(
        id=release.id,
        tag_name=release.tag_name,
        name=release.name,
        body=release.body,
        draft=release.draft,
        prerelease=release.prerelease,
        target_commitish=release.target_commitish,
        created_at=release.created_at,
        published_at=release.published_at,
    )


class GitHubKitAdapter(GitHubClientBase):
    """GitHub client adapter for the githubkit library."""

    def __init__(self, client: GitHubClient, owner: str, repo_name: str) -> None:
        """Initialize the GitHub client adapter with an already-initialized client."""
        self.client = client
        self.owner = owner
        self.repo_name = repo_name

    @classmethod
    async def create(
        cls,
        repo: str,
        github_auth_type: GitHubAuthenticationType,
        github_pat_token: str | None = None,
        github_app_id: int | None = None,
        github_app_private_key_path: Path | None = None,
        github_app_installation_id: int | None = None,
        github_api_url: str = "https://api.github.com",
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> Self:
        """Create a new GitHub client adapter.

        Args:
            repo: Repository in 'owner/repo' format
            github_auth_type: Type of authentication (PAT or APP)
            github_pat_token: Personal access token (required for PAT auth)
            github_app_id: GitHub App ID (required for APP auth)
            github_app_private_key_path: Path to private key file (required for APP auth)
            github_app_installation_id: Installation ID (required for APP auth)
            github_api_url: GitHub API URL (defaults to https://api.github.com)
            timeout: Seconds before a single request is abandoned

        Returns:
            Configured GitHubKitAdapter instance
        """
        owner, repo_name = await split_repository_in_configuration(repo=repo)
        logger.info(
            "Creating client for GitHub instance and repository",
            github_api_url=github_api_url,
            owner=owner,
            repo_name=repo_name,
        )
        client = get_github_client(
            github_auth_type=github_auth_type,
            github_pat_token=github_pat_token,
            github_app_id=github_app_id,
            github_app_private_key_path=github_app_private_key_path,
            github_app_installation_id=github_app_installation_id,
            github_api_url=github_api_url,
            timeout=timeout,
        )
        return cls(client, owner, repo_name)

    # Pull Request Operations
    @translate_github_errors
    async def list_merged_pull_requests(self, base: str, since: datetime | None = None, per_page: int = GITHUB_MAX_PER_PAGE) -> list[ChangeRequest]:
        """List pull requests merged into a base branch, handling pagination.

        Pull requests are fetched most recently updated first. A pull request is
        always updated at or after its merge, so pagination stops at the first
        pull request last updated before ``since``.
        """

        @retry_on_transient_error()
        async def _fetch_page(page: int) -> list[PullRequestSimple]:
            response: Response[list[PullRequestSimple]] = await self.client.rest.pulls.async_list(
                owner=self.owner,
                repo=self.repo_name,
                state="closed",
                base=base,
                sort="updated",
                direction="desc",
                per_page=per_page,
                page=page,
            )
            return response.parsed_data

        logger.info("Fetching merged pull requests", owner=self.owner, repo=self.repo_name, base=base, since=since.isoformat() if since else None)
        change_requests: list[ChangeRequest] = []
        page: int = 1
        while True:
            logger.debug(f"Fetching closed pull requests page {page}")
            pull_requests = await _fetch_page(page)
            reached_since = False
            for pull_request in pull_requests:
                if since is not None and pull_request.updated_at < since:
                    reached_since = True
                    break
                if pull_request.merged_at is None:
                    continue
                if since is not None and pull_request.merged_at <= since:
                    continue
                change_requests.append(change_request_from_pull_request(pull_request))
            if reached_since or len(pull_requests) < per_page:
                break
            page += 1

        logger.info("Fetched merged pull requests", base=base, total_pull_requests=len(change_requests))
        return change_requests

    @translate_github_errors
    async def list_pull_request_file_paths(self, pull_number: int, per_page: int = GITHUB_MAX_PER_PAGE) -> list[str]:
        """List the paths of files changed by a pull request, including the old path of renamed files."""

        @retry_on_transient_error()
        async def _fetch_page(page: int) -> list[DiffEntry]:
            response: Response[list[DiffEntry]] = await self.client.rest.pulls.async_list_files(
                owner=self.owner,
                repo=self.repo_name,
                pull_number=pull_number,
                per_page=per_page,
                page=page,
            )
            return response.parsed_data

        paths: list[str] = []
        page: int = 1
        while True:
            files = await _fetch_page(page)
            for file in files:
                paths.append(file.filename)
                previous_filename = getattr(file, "previous_filename", None)
                if isinstance(previous_filename, str) and previous_filename:
                    paths.append(previous_filename)
            if len(files) < per_page:
                break
            page += 1
        logger.debug("Fetched pull request files", pull_number=pull_number, file_count=len(paths))
        return paths

    # Release Operations
    @translate_github_errors
    async def list_releases(self, per_page: int = GITHUB_MAX_PER_PAGE) -> list[DraftRelease]:
        """List all releases for a repository, handling pagination."""

        @retry_on_transient_error()
        async def _fetch_page(page: int) -> list[Release]:
            response: Response[list[Release]] = await self.client.rest.repos.async_list_releases(
                owner=self.owner,
                repo=self.repo_name,
                per_page=per_page,
                page=page,
            )
            return response.parsed_data

        logger.debug("Fetching releases", owner=self.owner, repo=self.repo_name, per_page=per_page)
        all_releases: list[DraftRelease] = []
        page: int = 1
        while True:
            releases = await _fetch_page(page)
            logger.debug(f"Got {len(releases)} releases on page {page}")
            for release in releases:
                logger.debug(
                    "Release found",
                    release_id=release.id,
                    tag_name=release.tag_name,
                    draft=release.draft,
                    created_at=release.created_at.isoformat() if release.created_at else "N/A",
                    published_at=release.published_at.isoformat() if release.published_at else "N/A",
                )
                all_releases.append(draft_release_from_release(release))
            if len(releases) < per_page:
                break
            page += 1

        logger.info(f"Total releases found: {len(all_releases)}")
        return all_releases

    @translate_github_errors
    @retry_on_transient_error()
    async def create_release(self, tag_name: str, name: str, body: str, target_commitish: str, draft: bool = True) -> DraftRelease:
        """Create a release targeting a branch."""
        response: Response[Release] = await self.client.rest.repos.async_create_release(
            owner=self.owner,
            repo=self.repo_name,
            tag_name=tag_name,
            name=name,
            body=body,
            draft=draft,
            target_commitish=target_commitish,
        )
        return draft_release_from_release(response.parsed_data)

    @translate_github_errors
    @retry_on_transient_error()
    async def update_release(self, release_id: int, tag_name: str, name: str, body: str) -> DraftRelease:
        """Replace the tag, name and body of a draft release; it stays a draft."""
        response: Response[Release] = await self.client.rest.repos.async_update_release(
            owner=self.owner,
            repo=self.repo_name,
            release_id=release_id,
            tag_name=tag_name,
            name=name,
            body=body,
            draft=True,
        )
        return draft_release_from_release(response.parsed_data)

    @translate_github_errors
    @retry_on_transient_error()
    async def delete_release(self, release_id: int) -> None:
        """Delete a release."""
        await self.client.rest.repos.async_delete_release(owner=self.owner, repo=self.repo_name, release_id=release_id)
        return None
