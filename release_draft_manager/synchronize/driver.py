"""Orchestrates the reconciliation of draft releases across release streams."""

import asyncio
import time

import structlog

from release_draft_manager.configuration.exceptions import ConfigInvalidError
from release_draft_manager.configuration.models import DraftReleaseRunConfig
from release_draft_manager.configuration.release_config import ReleaseConfig
from release_draft_manager.exceptions import DraftReleaseError
from release_draft_manager.github.abc import GitHubClientBase
from release_draft_manager.github.adapter import GitHubKitAdapter
from release_draft_manager.github.exceptions import GitHubApiError
from release_draft_manager.release_notes.models import ReleaseKey
from release_draft_manager.synchronize.drafts import reconcile_draft_release
from release_draft_manager.synchronize.exceptions import AmbiguousDraftStateError, ReconciliationAbortedError
from release_draft_manager.synchronize.results import DraftReconciliationResult, DraftReleaseWorkflowResult
from release_draft_manager.versioning import Archetype, parse_archetypes, resolve_versions, select_version

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class ReleaseKeyLocks:
    """Registry handing out one lock per release stream."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._locks: dict[ReleaseKey, asyncio.Lock] = {}

    def lock_for(self, key: ReleaseKey) -> asyncio.Lock:
        """Return the lock guarding a release stream, creating it on first use."""
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock


def release_keys_for(run_config: DraftReleaseRunConfig) -> list[ReleaseKey]:
    """One release key per configured directory, in input order."""
    return [ReleaseKey(branch=run_config.branch, directory=directory) for directory in run_config.directories]


def resolve_archetypes(run_config: DraftReleaseRunConfig, release_config: ReleaseConfig) -> list[Archetype]:
    """Language archetypes from the run inputs, falling back to the configuration file."""
    if run_config.languages:
        return parse_archetypes(",".join(run_config.languages))
    if release_config.language:
        return parse_archetypes(release_config.language)
    raise ConfigInvalidError("No language configured. Set --language (INPUT_LANGUAGE) or 'language' in the configuration file.")


def resolve_key_version(run_config: DraftReleaseRunConfig, release_config: ReleaseConfig, key: ReleaseKey) -> str:
    """Resolve the version of a release stream from the manifests under its directory."""
    archetypes = resolve_archetypes(run_config, release_config)
    directory = run_config.working_directory / key.directory if key.directory else run_config.working_directory
    outcome = select_version(resolve_versions(archetypes, directory))
    assert outcome.version is not None
    logger.info("Resolved release version", release_key=str(key), archetype=outcome.archetype.value, version=outcome.version)
    return outcome.version


async def create_github_adapter(run_config: DraftReleaseRunConfig) -> GitHubKitAdapter:
    """Create the GitHub adapter described by a run configuration.

    Raises:
        ConfigInvalidError: The repository name or the credentials are unusable.
    """
    try:
        return await GitHubKitAdapter.create(
            repo=run_config.repo,
            github_auth_type=run_config.github_authentication_type,
            github_pat_token=run_config.github_pat_token,
            github_app_id=run_config.github_app_id,
            github_app_private_key_path=run_config.github_app_private_key_path,
            github_app_installation_id=run_config.github_app_installation_id,
            github_api_url=run_config.github_api_url,
            timeout=run_config.request_timeout,
        )
    except (ValueError, RuntimeError) as exc:
        raise ConfigInvalidError(str(exc)) from exc


async def run_draft_release_workflow(
    run_config: DraftReleaseRunConfig,
    release_config: ReleaseConfig,
    github_adapter: GitHubClientBase | None = None,
    dry_run: bool = False,
) -> DraftReleaseWorkflowResult:
    """Reconcile the draft release of every release stream of a run.

    Streams are reconciled concurrently, bounded by the run's maximum
    concurrency. A GitHub failure or an undeterminable draft state stops every
    stream that has not written yet; other errors only fail their own stream.
    """
    keys = release_keys_for(run_config)
    if github_adapter is None:
        try:
            github_adapter = await create_github_adapter(run_config)
        except ConfigInvalidError as exc:
            logger.error("Could not create GitHub client", repo=run_config.repo, error=exc.message)
            return DraftReleaseWorkflowResult([DraftReconciliationResult(key=key, error=exc) for key in keys])

    locks = ReleaseKeyLocks()
    semaphore = asyncio.Semaphore(run_config.max_concurrency)
    abort_event = asyncio.Event()

    async def _reconcile_key(key: ReleaseKey) -> DraftReconciliationResult:
        async with semaphore, locks.lock_for(key):
            try:
                if abort_event.is_set():
                    raise ReconciliationAbortedError(f"Skipped {key} because another release stream failed")
                version = resolve_key_version(run_config, release_config, key)
                return await reconcile_draft_release(
                    github_adapter,
                    key,
                    version,
                    release_config,
                    tag_prefix=run_config.tag_prefix,
                    prune_duplicate_drafts=run_config.prune_duplicate_drafts,
                    dry_run=dry_run,
                    abort_event=abort_event,
                )
            except (GitHubApiError, AmbiguousDraftStateError) as exc:
                abort_event.set()
                logger.error("Aborting run after release stream failure", release_key=str(key), kind=exc.kind, error=exc.message)
                return DraftReconciliationResult(key=key, error=exc)
            except DraftReleaseError as exc:
                logger.error("Release stream failed", release_key=str(key), kind=exc.kind, error=exc.message)
                return DraftReconciliationResult(key=key, error=exc)

    start_time = time.time()
    logger.info("Reconciling draft releases", repo=run_config.repo, branch=run_config.branch, release_keys=[str(key) for key in keys], dry_run=dry_run)
    results = await asyncio.gather(*(_reconcile_key(key) for key in keys))
    workflow_result = DraftReleaseWorkflowResult(list(results))
    logger.info(
        "Reconciled draft releases",
        duration=round(time.time() - start_time, 2),
        release_key_count=len(keys),
        failed_count=len(workflow_result.errors),
    )
    return workflow_result
