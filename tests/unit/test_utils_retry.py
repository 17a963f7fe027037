"""Unit tests for the transient error retry decorator."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from githubkit import Response
from githubkit.exception import RequestFailed, RequestTimeout

from release_draft_manager.utils.retry import retry_on_transient_error, wait_time_for

API_URL = "https://api.github.com/repos/octo/widgets/releases"


def request_failed(status_code: int, headers: dict[str, str] | None = None) -> RequestFailed:
    """Build the githubkit error raised for an unsuccessful HTTP response."""
    raw_response = httpx.Response(status_code, headers=headers or {}, request=httpx.Request("GET", API_URL))
    return RequestFailed(Response(raw_response, dict))


@pytest.mark.asyncio
async def test_retries_until_success() -> None:
    """Test that transient errors are retried and the eventual result returned."""
    func = AsyncMock(side_effect=[request_failed(502), request_failed(503), "ok"])
    func.__name__ = "list_releases"

    with patch("release_draft_manager.utils.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        result = await retry_on_transient_error(max_attempts=3, initial_delay=1.0)(func)()

    assert result == "ok"
    assert func.await_count == 3
    assert [call.args[0] for call in mock_sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts() -> None:
    """Test that the last transient error is re-raised once attempts are exhausted."""
    func = AsyncMock(side_effect=RequestTimeout(httpx.Request("GET", API_URL)))
    func.__name__ = "list_releases"

    with patch("release_draft_manager.utils.retry.asyncio.sleep", new_callable=AsyncMock):
        with pytest.raises(RequestTimeout):
            await retry_on_transient_error(max_attempts=3)(func)()

    assert func.await_count == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [401, 404, 422])
async def test_fatal_errors_are_not_retried(status_code: int) -> None:
    """Test that errors retrying cannot fix are raised on the first attempt."""
    func = AsyncMock(side_effect=request_failed(status_code))
    func.__name__ = "create_release"

    with patch("release_draft_manager.utils.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        with pytest.raises(RequestFailed):
            await retry_on_transient_error()(func)()

    assert func.await_count == 1
    mock_sleep.assert_not_awaited()


def test_rejects_sync_functions() -> None:
    """Test that decorating a regular function fails loudly."""

    def not_async() -> None:
        return None

    with pytest.raises(TypeError):
        retry_on_transient_error()(not_async)


@pytest.mark.parametrize(
    "headers,expected",
    [
        pytest.param({"retry-after": "7"}, 7.0, id="retry-after"),
        pytest.param({"retry-after": "600"}, 60.0, id="capped"),
        pytest.param({"retry-after": "soon"}, 2.0, id="invalid header"),
        pytest.param({}, 2.0, id="backoff delay"),
    ],
)
def test_wait_time_for(headers: dict[str, str], expected: float) -> None:
    """Test that GitHub's requested wait is honored and bounded."""
    assert wait_time_for(request_failed(429, headers), delay=2.0, max_delay=60.0) == expected
