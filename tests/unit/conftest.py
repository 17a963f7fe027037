"""Fixtures for unit tests."""

from datetime import datetime, timedelta, timezone
from typing import Callable, Generator
from unittest.mock import AsyncMock

import pytest
import structlog

from release_draft_manager.github.abc import GitHubClientBase
from release_draft_manager.release_notes.models import ChangeRequest

BASE_MERGE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def make_change_request() -> Callable[..., ChangeRequest]:
    """Factory for merged pull request snapshots; merge order follows the number by default."""

    def _make(
        number: int,
        title: str | None = None,
        labels: tuple[str, ...] = (),
        author: str = "alice",
        merged_at: datetime | None = None,
    ) -> ChangeRequest:
        return ChangeRequest(
            title=title or f"Change {number}",
            author=author,
            number=number,
            url=f"https://github.com/octo/widgets/pull/{number}",
            labels=list(labels),
            merged_at=merged_at or BASE_MERGE_TIME + timedelta(minutes=number),
        )

    return _make


@pytest.fixture
def github_adapter() -> AsyncMock:
    """GitHub adapter mock with an empty repository: no releases and no merged pull requests."""
    adapter = AsyncMock(spec=GitHubClientBase)
    adapter.list_releases.return_value = []
    adapter.list_merged_pull_requests.return_value = []
    adapter.list_pull_request_file_paths.return_value = []
    return adapter
