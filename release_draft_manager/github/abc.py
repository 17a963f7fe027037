"""Base ABC for GitHub clients."""

from abc import ABC, abstractmethod
from datetime import datetime

from release_draft_manager.release_notes.models import ChangeRequest, DraftRelease


class GitHubClientBase(ABC):
    """Operations the draft release workflow needs from GitHub."""

    # Pull Request Operations
    @abstractmethod
    async def list_merged_pull_requests(self, base: str, since: datetime | None = None) -> list[ChangeRequest]:
        """List pull requests merged into a base branch, optionally only those merged after ``since``."""
        pass

    @abstractmethod
    async def list_pull_request_file_paths(self, pull_number: int) -> list[str]:
        """List the paths of files changed by a pull request."""
        pass

    # Release Operations
    @abstractmethod
    async def list_releases(self) -> list[DraftRelease]:
        """List all releases for a repository, drafts included."""
        pass

    @abstractmethod
    async def create_release(self, tag_name: str, name: str, body: str, target_commitish: str, draft: bool = True) -> DraftRelease:
        """Create a release."""
        pass

    @abstractmethod
    async def update_release(self, release_id: int, tag_name: str, name: str, body: str) -> DraftRelease:
        """Replace the tag, name and body of a release."""
        pass

    @abstractmethod
    async def delete_release(self, release_id: int) -> None:
        """Delete a release."""
        pass
