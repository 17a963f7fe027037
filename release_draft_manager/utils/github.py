"""Contains utility functions for GitHub interactions."""


async def split_repository_in_configuration(repo: str | None) -> tuple[str, str]:
    """Splits an 'owner/repo' repository name into owner and repository."""
    if not repo:
        raise ValueError("A repository in the format 'owner/repo' is required.")
    parts = repo.strip().strip("/").split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError(f"Repository must be in the format 'owner/repo', got '{repo}'.")
    owner, repository = parts
    return owner, repository
