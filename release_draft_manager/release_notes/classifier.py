"""Assigns merged pull requests to release notes categories."""

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

import structlog

from release_draft_manager.configuration.release_config import Category

from .models import ChangeRequest

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CategoryBucket:
    """Pull requests claimed by one category, oldest merge first.

    ``category`` is None for the single heading-less bucket used when no
    categories are configured.
    """

    category: Category | None
    change_requests: tuple[ChangeRequest, ...]


def merge_order(change_request: ChangeRequest) -> tuple[datetime, int]:
    """Sort key: merge time, then pull request number for identical timestamps."""
    return (change_request.merged_at, change_request.number)


def is_excluded(change_request: ChangeRequest, exclude_labels: Iterable[str]) -> bool:
    """Whether a pull request carries any excluded label."""
    return not change_request.labels.isdisjoint(exclude_labels)


def match_category(change_request: ChangeRequest, categories: Sequence[Category]) -> int | None:
    """Index of the first category sharing a label with the pull request, if any."""
    for index, category in enumerate(categories):
        if not change_request.labels.isdisjoint(category.labels):
            return index
    return None


def deduplicate_change_requests(change_requests: Iterable[ChangeRequest]) -> list[ChangeRequest]:
    """Drop repeated pull request numbers, keeping the first occurrence."""
    seen: set[int] = set()
    unique: list[ChangeRequest] = []
    for change_request in change_requests:
        if change_request.number in seen:
            continue
        seen.add(change_request.number)
        unique.append(change_request)
    return unique


def classify_change_requests(
    change_requests: Iterable[ChangeRequest],
    categories: Sequence[Category],
    exclude_labels: Iterable[str] = (),
) -> tuple[CategoryBucket, ...]:
    """Partition pull requests into one bucket per category.

    Exclusion wins over any category match. Otherwise the first category in
    declaration order whose labels intersect the pull request's labels claims
    it, so a pull request lands in at most one bucket. Pull requests matching
    no category are left out. With no categories configured, every
    non-excluded pull request goes into a single bucket without a heading.
    """
    exclude = frozenset(exclude_labels)
    claimed: list[list[ChangeRequest]] = [[] for _ in categories]
    uncategorized: list[ChangeRequest] = []
    excluded_count = 0
    unmatched_count = 0

    for change_request in deduplicate_change_requests(sorted(change_requests, key=merge_order)):
        if is_excluded(change_request, exclude):
            excluded_count += 1
            logger.debug("Excluding pull request", number=change_request.number, labels=sorted(change_request.labels))
            continue
        if not categories:
            uncategorized.append(change_request)
            continue
        index = match_category(change_request, categories)
        if index is None:
            unmatched_count += 1
            logger.debug("Pull request matches no category", number=change_request.number, labels=sorted(change_request.labels))
            continue
        claimed[index].append(change_request)

    logger.debug("Classified pull requests", excluded=excluded_count, unmatched=unmatched_count, categories=len(categories))

    if not categories:
        return (CategoryBucket(category=None, change_requests=tuple(sorted(uncategorized, key=merge_order))),)
    return tuple(
        CategoryBucket(category=category, change_requests=tuple(sorted(bucket, key=merge_order)))
        for category, bucket in zip(categories, claimed, strict=True)
    )
