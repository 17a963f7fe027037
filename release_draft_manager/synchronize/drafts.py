"""Contains synchronization logic for draft releases.

One release stream (branch plus optional directory) owns at most one draft
release. Reconciling a stream lists the repository's releases, finds the draft
carrying the stream's key marker, renders the desired tag, name and body, and
issues at most one create or update.
"""

import asyncio
from typing import Iterable

import structlog

from release_draft_manager.configuration.release_config import ReleaseConfig
from release_draft_manager.github.abc import GitHubClientBase
from release_draft_manager.github.exceptions import GitHubApiError
from release_draft_manager.release_notes.classifier import classify_change_requests
from release_draft_manager.release_notes.markers import body_matches_key, build_body
from release_draft_manager.release_notes.models import ChangeRequest, DesiredRelease, DraftRelease, ReleaseKey
from release_draft_manager.release_notes.templates import render_body, render_name, render_sections, render_tag
from release_draft_manager.synchronize.exceptions import AmbiguousDraftStateError, ReconciliationAbortedError
from release_draft_manager.synchronize.models import DraftLookup, DraftState, SyncDecision
from release_draft_manager.synchronize.results import DraftReconciliationResult
from release_draft_manager.utils.constants import DEFAULT_TAG_PREFIX

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

COMPARED_FIELDS = ("tag_name", "name", "body")


def _creation_order(release: DraftRelease) -> tuple[float, int]:
    created = release.created_at.timestamp() if release.created_at else 0.0
    return (created, release.id)


def select_drafts(releases: Iterable[DraftRelease], key: ReleaseKey) -> DraftLookup:
    """Pick the newest draft carrying the stream's key marker; older matches are duplicates."""
    matches = sorted(
        (release for release in releases if release.draft and body_matches_key(release.body, key)),
        key=_creation_order,
        reverse=True,
    )
    if not matches:
        return DraftLookup(primary=None)
    return DraftLookup(primary=matches[0], duplicates=tuple(matches[1:]))


def latest_published_release(releases: Iterable[DraftRelease], key: ReleaseKey) -> DraftRelease | None:
    """Newest published release of a stream.

    Published releases carrying the stream's marker are preferred. For a stream
    without a directory, published releases targeting the branch also count.
    """
    published = [release for release in releases if not release.draft]
    candidates = [release for release in published if body_matches_key(release.body, key)]
    if not candidates and not key.directory:
        candidates = [release for release in published if release.target_commitish == key.branch]
    if not candidates:
        return None
    return max(candidates, key=lambda release: (release.published_at or release.created_at, release.id))


async def find_draft_for_key(github_adapter: GitHubClientBase, key: ReleaseKey) -> tuple[DraftLookup, list[DraftRelease]]:
    """List releases and look up the stream's draft.

    Raises:
        AmbiguousDraftStateError: The releases could not be listed, so whether a
            draft exists is unknown. Absence is never assumed.
    """
    try:
        releases = await github_adapter.list_releases()
    except GitHubApiError as exc:
        logger.error("Could not determine whether a draft release exists", release_key=str(key), kind=exc.kind, error=exc.message)
        raise AmbiguousDraftStateError(f"Could not determine whether a draft release exists for {key}: {exc.message}") from exc
    return select_drafts(releases, key), releases


def change_request_in_directory(paths: Iterable[str], directory: str) -> bool:
    """Whether any changed path lies under a directory."""
    prefix = f"{directory}/"
    return any(path == directory or path.startswith(prefix) for path in paths)


async def filter_change_requests_by_directory(
    github_adapter: GitHubClientBase, change_requests: list[ChangeRequest], directory: str
) -> list[ChangeRequest]:
    """Keep pull requests that changed at least one file under the directory."""
    if not directory:
        return change_requests
    kept: list[ChangeRequest] = []
    for change_request in change_requests:
        paths = await github_adapter.list_pull_request_file_paths(change_request.number)
        if change_request_in_directory(paths, directory):
            kept.append(change_request)
    logger.info("Filtered pull requests by directory", directory=directory, kept=len(kept), total=len(change_requests))
    return kept


def build_desired_release(
    key: ReleaseKey,
    version: str,
    release_config: ReleaseConfig,
    change_requests: Iterable[ChangeRequest],
    tag_prefix: str = DEFAULT_TAG_PREFIX,
    current_body: str | None = None,
) -> DesiredRelease:
    """Render the tag, name and body a stream's draft should have."""
    buckets = classify_change_requests(change_requests, release_config.categories, release_config.exclude_labels)
    changes = render_sections(buckets, release_config.change_template)
    content = render_body(release_config.template, changes=changes, version=version, directory=key.directory, branch=key.branch)
    tag_name = render_tag(release_config.resolve_tag_template(tag_prefix, key.directory), version=version, directory=key.directory, branch=key.branch)
    name = render_name(release_config.name_template, version=version, directory=key.directory, branch=key.branch, tag=tag_name)
    return DesiredRelease(
        tag_name=tag_name,
        name=name,
        body=build_body(key, content, current_body),
        target_commitish=key.branch,
    )


async def decide_draft_sync_action(desired: DesiredRelease, current: DraftRelease | None) -> SyncDecision:
    """Compare the desired release with the current draft field by field."""
    if current is None:
        return SyncDecision.CREATE
    for field_name in COMPARED_FIELDS:
        desired_value = getattr(desired, field_name)
        current_value = getattr(current, field_name) or ""
        if desired_value != current_value:
            logger.info("Draft release needs to be updated", release_id=current.id, field=field_name)
            return SyncDecision.UPDATE
    logger.info("Draft release is up to date", release_id=current.id)
    return SyncDecision.NOOP


def _check_not_aborted(key: ReleaseKey, abort_event: asyncio.Event | None) -> None:
    if abort_event is not None and abort_event.is_set():
        raise ReconciliationAbortedError(f"Skipped writing the draft release for {key} because another release stream failed")


async def reconcile_draft_release(
    github_adapter: GitHubClientBase,
    key: ReleaseKey,
    version: str,
    release_config: ReleaseConfig,
    tag_prefix: str = DEFAULT_TAG_PREFIX,
    prune_duplicate_drafts: bool = True,
    dry_run: bool = False,
    abort_event: asyncio.Event | None = None,
) -> DraftReconciliationResult:
    """Create, update, or leave alone the draft release of one stream.

    Errors propagate to the caller and leave the draft unmodified. Older
    duplicate drafts are deleted only after the single create or update succeeds.
    """
    lookup, releases = await find_draft_for_key(github_adapter, key)
    logger.info(
        "Looked up draft release",
        release_key=str(key),
        state=lookup.state.value,
        release_id=lookup.primary.id if lookup.primary else None,
        duplicates=len(lookup.duplicates),
    )
    if lookup.duplicates and not prune_duplicate_drafts:
        ids = ", ".join(str(release.id) for release in (lookup.primary, *lookup.duplicates) if release is not None)
        raise AmbiguousDraftStateError(f"Found more than one draft release for {key} (ids {ids}) and duplicate pruning is disabled")

    since_release = latest_published_release(releases, key)
    since = None
    if since_release is not None:
        since = since_release.published_at or since_release.created_at
        logger.info("Collecting pull requests merged since the last published release", release_key=str(key), tag_name=since_release.tag_name)

    change_requests = await github_adapter.list_merged_pull_requests(key.branch, since=since)
    change_requests = await filter_change_requests_by_directory(github_adapter, change_requests, key.directory)

    current = lookup.primary
    desired = build_desired_release(
        key,
        version,
        release_config,
        change_requests,
        tag_prefix=tag_prefix,
        current_body=current.body if current is not None else None,
    )
    decision = await decide_draft_sync_action(desired, current)

    if dry_run:
        logger.info("Dry run - not writing draft release", release_key=str(key), decision=decision.value)
        return DraftReconciliationResult(key=key, version=version, decision=decision, desired=desired, release_id=current.id if current else None)

    if decision != SyncDecision.NOOP or lookup.duplicates:
        _check_not_aborted(key, abort_event)

    release_id = current.id if current is not None else None
    if decision == SyncDecision.CREATE:
        created = await github_adapter.create_release(
            tag_name=desired.tag_name,
            name=desired.name,
            body=desired.body,
            target_commitish=desired.target_commitish,
            draft=True,
        )
        release_id = created.id
        logger.info("Created draft release", release_key=str(key), release_id=release_id, tag_name=desired.tag_name)
    elif decision == SyncDecision.UPDATE and current is not None:
        await github_adapter.update_release(current.id, tag_name=desired.tag_name, name=desired.name, body=desired.body)
        logger.info("Updated draft release", release_key=str(key), release_id=current.id, tag_name=desired.tag_name)

    # Duplicates go only once the kept draft is written.
    deleted: list[int] = []
    for duplicate in lookup.duplicates:
        await github_adapter.delete_release(duplicate.id)
        deleted.append(duplicate.id)
        logger.info("Deleted duplicate draft release", release_key=str(key), release_id=duplicate.id)

    logger.info("Release stream reconciled", release_key=str(key), state=DraftState.RECONCILED.value, decision=decision.value)
    return DraftReconciliationResult(
        key=key,
        version=version,
        decision=decision,
        desired=desired,
        release_id=release_id,
        deleted_release_ids=tuple(deleted),
    )
