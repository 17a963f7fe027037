"""Retry decorator for handling GitHub API rate limits and transient errors.

This module provides a decorator that retries async GitHub API calls a bounded
number of times, respecting rate limit headers and backing off exponentially
between attempts. Errors that retrying cannot fix are raised immediately.
"""

import asyncio
import functools
import time
from typing import Any, Callable, TypeVar

import structlog
from githubkit.exception import GitHubException, RateLimitExceeded, RequestFailed

from release_draft_manager.github.exceptions import is_rate_limit_error, is_transient_error
from release_draft_manager.utils.constants import DEFAULT_MAX_ATTEMPTS

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def wait_time_for(exc: GitHubException, delay: float, max_delay: float) -> float:
    """Seconds to wait before retrying, preferring what GitHub asked for."""
    wait_time = delay

    if isinstance(exc, RateLimitExceeded) and exc.retry_after:
        wait_time = exc.retry_after.total_seconds()
    elif isinstance(exc, RequestFailed):
        retry_after = exc.response.headers.get("retry-after")
        rate_limit_reset = exc.response.headers.get("x-ratelimit-reset")
        if retry_after:
            try:
                wait_time = float(retry_after)
            except ValueError:
                logger.warning("Invalid retry-after header value", retry_after=retry_after)
        elif rate_limit_reset and is_rate_limit_error(exc):
            try:
                reset_timestamp = int(rate_limit_reset)
                current_timestamp = int(time.time())
                if reset_timestamp > current_timestamp:
                    wait_time = reset_timestamp - current_timestamp + 1
            except ValueError:
                logger.warning("Invalid x-ratelimit-reset header value", rate_limit_reset=rate_limit_reset)

    return max(0.0, min(wait_time, max_delay))


def retry_on_transient_error(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
) -> Callable[[F], F]:
    """Decorator for retrying async functions when they hit transient GitHub errors.

    This decorator handles:
    - GitHub primary and secondary rate limits (403/429)
    - Server errors (500/502/503/504)
    - Request timeouts and connection errors

    Once ``max_attempts`` calls have failed, the last transient error is re-raised.

    Args:
        max_attempts: Total number of calls, including the first (default: 3)
        initial_delay: Delay in seconds before the first retry (default: 1.0)
        max_delay: Maximum delay in seconds between retries (default: 60.0)
        exponential_base: Base for exponential backoff calculation (default: 2.0)

    Returns:
        Decorated function with retry logic

    Example:
        @retry_on_transient_error()
        async def list_releases(self):
            return await self.client.rest.repos.async_list_releases(...)
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(func: F) -> F:
        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"Function {func.__name__} decorated with @retry_on_transient_error must be async.")

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except GitHubException as e:
                    if not is_transient_error(e):
                        raise

                    if attempt == max_attempts:
                        logger.error(
                            "Max attempts reached for transient GitHub error",
                            function=func.__name__,
                            attempt=attempt,
                            error_type=type(e).__name__,
                            error=str(e),
                        )
                        raise

                    wait_time = wait_time_for(e, delay, max_delay)
                    logger.warning(
                        f"Transient GitHub error, retrying in {wait_time} seconds",
                        function=func.__name__,
                        attempt=attempt,
                        max_attempts=max_attempts,
                        wait_time=wait_time,
                        error_type=type(e).__name__,
                        rate_limited=is_rate_limit_error(e),
                    )
                    await asyncio.sleep(wait_time)
                    delay = min(delay * exponential_base, max_delay)

        return async_wrapper  # type: ignore

    return decorator
