"""Models describing synchronization decisions and draft lookups."""

from dataclasses import dataclass, field
from enum import Enum

from release_draft_manager.release_notes.models import DraftRelease


class SyncDecision(str, Enum):
    """What to do with the draft release of a release stream."""

    CREATE = "create"
    UPDATE = "update"
    NOOP = "noop"


class DraftState(str, Enum):
    """Reconciliation states of a release stream."""

    NO_DRAFT_EXISTS = "NoDraftExists"
    DRAFT_EXISTS = "DraftExists"
    RECONCILED = "Reconciled"


@dataclass(frozen=True)
class DraftLookup:
    """Confirmed outcome of looking up the draft of a release stream.

    A lookup that could not be completed is never represented here; it raises
    AmbiguousDraftStateError instead, so absence is always confirmed absence.
    """

    primary: DraftRelease | None
    duplicates: tuple[DraftRelease, ...] = field(default_factory=tuple)

    @property
    def state(self) -> DraftState:
        """NoDraftExists or DraftExists."""
        return DraftState.DRAFT_EXISTS if self.primary is not None else DraftState.NO_DRAFT_EXISTS
