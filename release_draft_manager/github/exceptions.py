"""Exceptions raised by the GitHub adapter, and classification of githubkit errors."""

from githubkit.exception import (
    GitHubException,
    RateLimitExceeded,
    RequestError,
    RequestFailed,
    RequestTimeout,
)

from release_draft_manager.exceptions import DraftReleaseError

TRANSIENT_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class GitHubApiError(DraftReleaseError):
    """Base class for GitHub API failures."""

    def __init__(self, message: str, status_code: int | None = None, reason: str = "request") -> None:
        """Initializes the exception with the HTTP status code and a short reason."""
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class GitHubApiTransientError(GitHubApiError):
    """Raised when a retryable failure (rate limit, timeout, server error) persists after all retries."""

    kind = "ApiTransient"


class GitHubApiFatalError(GitHubApiError):
    """Raised for failures that retrying cannot fix (authentication, permissions, invalid requests)."""

    kind = "ApiFatal"


def is_rate_limit_error(exc: BaseException) -> bool:
    """Whether a githubkit error reports a primary or secondary rate limit."""
    if isinstance(exc, RateLimitExceeded):
        return True
    if isinstance(exc, RequestFailed):
        status_code = exc.response.status_code
        if status_code == 429:
            return True
        if status_code == 403:
            remaining = exc.response.headers.get("x-ratelimit-remaining")
            return remaining == "0" or "rate limit" in str(exc).lower()
    return False


def is_transient_error(exc: BaseException) -> bool:
    """Whether a githubkit error is worth retrying.

    ``RequestFailed`` derives from ``RequestError``, so HTTP failures are decided
    by status code before the remaining transport errors are treated as transient.
    """
    if is_rate_limit_error(exc):
        return True
    if isinstance(exc, RequestFailed):
        return exc.response.status_code in TRANSIENT_STATUS_CODES
    return isinstance(exc, (RequestTimeout, RequestError))


def fatal_reason(status_code: int | None) -> str:
    """Short reason for a non-retryable HTTP status code."""
    if status_code == 401:
        return "authentication"
    if status_code == 403:
        return "permission"
    if status_code == 404:
        return "not_found"
    if status_code == 422:
        return "validation"
    return "request"


def translate_github_exception(exc: GitHubException, operation: str) -> GitHubApiError:
    """Convert a githubkit exception into a transient or fatal GitHubApiError."""
    status_code = exc.response.status_code if isinstance(exc, RequestFailed) else None
    if is_transient_error(exc):
        reason = "rate_limit" if is_rate_limit_error(exc) else "timeout" if isinstance(exc, RequestTimeout) else "unavailable"
        return GitHubApiTransientError(f"GitHub API call {operation} failed after retries: {exc}", status_code=status_code, reason=reason)
    reason = fatal_reason(status_code)
    return GitHubApiFatalError(f"GitHub API call {operation} failed ({reason}): {exc}", status_code=status_code, reason=reason)
