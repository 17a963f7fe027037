"""Exceptions raised while reconciling draft releases."""

from release_draft_manager.exceptions import DraftReleaseError


class AmbiguousDraftStateError(DraftReleaseError):
    """Raised when it cannot be established whether a release stream already has a draft."""

    kind = "AmbiguousDraftState"


class ReconciliationAbortedError(DraftReleaseError):
    """Raised for a release stream skipped because another stream hit an invocation-fatal error."""

    kind = "Aborted"
