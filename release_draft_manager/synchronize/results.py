"""Contains results of application execution."""

from release_draft_manager.exceptions import DraftReleaseError
from release_draft_manager.release_notes.models import DesiredRelease, ReleaseKey
from release_draft_manager.synchronize.models import SyncDecision


class DraftReconciliationResult:
    """Contains the result of reconciling the draft release of one release stream."""

    def __init__(
        self,
        key: ReleaseKey,
        version: str | None = None,
        decision: SyncDecision | None = None,
        desired: DesiredRelease | None = None,
        release_id: int | None = None,
        deleted_release_ids: tuple[int, ...] = (),
        error: DraftReleaseError | None = None,
    ) -> None:
        """Initialize the result with the stream key and either its outcome or its error."""
        self.key = key
        self.version = version
        self.decision = decision
        self.desired = desired
        self.release_id = release_id
        self.deleted_release_ids = deleted_release_ids
        self.error = error

    @property
    def succeeded(self) -> bool:
        """Whether the stream was reconciled without error."""
        return self.error is None

    def error_line(self) -> str | None:
        """The user-visible ``<key>: <kind>: <message>`` line for a failed stream."""
        if self.error is None:
            return None
        return f"{self.key}: {self.error.kind}: {self.error.message}"


class DraftReleaseWorkflowResult:
    """Contains results of the draft release workflow for all release streams."""

    def __init__(self, results: list[DraftReconciliationResult]) -> None:
        """Initialize the workflow result with one result per release stream, in input order."""
        self.results = results

    @property
    def errors(self) -> list[DraftReconciliationResult]:
        """Results of the streams that failed."""
        return [result for result in self.results if not result.succeeded]

    @property
    def succeeded(self) -> bool:
        """Whether every stream was reconciled."""
        return not self.errors
